"""Unit tests for the clocks."""

from __future__ import annotations

import time
from datetime import UTC, datetime

import pytest

from mp_eventlog.kernel.time import FrozenClock, SystemClock
from mp_eventlog.testing import FakeClock


class TestClocks:
    def test_system_clock_is_utc(self) -> None:
        assert SystemClock().now().tzinfo is UTC

    def test_system_clock_millis_tracks_wall_time(self) -> None:
        before = int(time.time() * 1000)
        assert SystemClock().millis() >= before

    def test_frozen_clock_is_fixed(self) -> None:
        fixed = datetime(2026, 1, 1, tzinfo=UTC)
        clock = FrozenClock(fixed)
        assert clock.now() == fixed
        assert clock.timestamp() == fixed.timestamp()
        assert clock.millis() == int(fixed.timestamp()) * 1000

    def test_frozen_clock_advance(self) -> None:
        clock = FrozenClock(datetime(2026, 1, 1, tzinfo=UTC))
        clock.advance(seconds=90)
        assert clock.now() == datetime(2026, 1, 1, 0, 1, 30, tzinfo=UTC)

    def test_frozen_clock_rejects_naive_datetime(self) -> None:
        with pytest.raises(ValueError):
            FrozenClock(datetime(2026, 1, 1))


class TestFakeClock:
    def test_default_start(self) -> None:
        assert FakeClock().now() == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_tick_moves_one_millisecond(self) -> None:
        clock = FakeClock()
        start = clock.millis()
        clock.tick()
        clock.tick(5)
        assert clock.millis() == start + 6
