"""Unit tests for the in-memory doubles in mp_eventlog.testing."""

from __future__ import annotations

import asyncio

import pytest

from mp_eventlog.kernel.errors import GroupMissingError, StoreUnavailableError
from mp_eventlog.testing import (
    FailureSwitches,
    FakeClock,
    FakeMetricsRegistry,
    InMemoryKeyValueStore,
    InMemoryOrderedLog,
)


# ---------------------------------------------------------------------------
# FailureSwitches
# ---------------------------------------------------------------------------


class TestFailureSwitches:
    def test_fail_until_healed(self) -> None:
        switches = FailureSwitches()
        switches.fail("append")
        for _ in range(3):
            with pytest.raises(StoreUnavailableError):
                switches._check("append")
        switches.heal("append")
        switches._check("append")

    def test_fail_n_times(self) -> None:
        switches = FailureSwitches()
        switches.fail("get", times=2)
        with pytest.raises(StoreUnavailableError):
            switches._check("get")
        with pytest.raises(StoreUnavailableError):
            switches._check("get")
        switches._check("get")
        assert switches.calls == ["get", "get", "get"]

    def test_heal_all(self) -> None:
        switches = FailureSwitches()
        switches.fail("a")
        switches.fail("b")
        switches.heal()
        switches._check("a")
        switches._check("b")


# ---------------------------------------------------------------------------
# InMemoryOrderedLog
# ---------------------------------------------------------------------------


class TestInMemoryOrderedLog:
    def test_ids_increase_under_a_frozen_clock(self) -> None:
        async def run() -> None:
            clock = FakeClock()
            log = InMemoryOrderedLog(clock)
            first = await log.append("s", {"n": b"1"})
            second = await log.append("s", {"n": b"2"})
            clock.advance(seconds=1)
            third = await log.append("s", {"n": b"3"})
            millis = int(clock.timestamp() * 1000) - 1000
            assert (first, second) == (f"{millis}-0", f"{millis}-1")
            assert third == f"{millis + 1000}-0"

        asyncio.run(run())

    def test_range_bounds(self) -> None:
        async def run() -> None:
            log = InMemoryOrderedLog(FakeClock())
            ids = [await log.append("s", {"n": str(i).encode()}) for i in range(5)]
            assert [e.id for e in await log.range("s")] == ids
            assert [e.id for e in await log.range("s", f"({ids[1]}")] == ids[2:]
            assert [e.id for e in await log.range("s", ids[1], ids[3])] == ids[1:4]
            assert [e.id for e in await log.range("s", count=2)] == ids[:2]
            assert await log.range("missing") == []

        asyncio.run(run())

    def test_group_delivery_and_pending(self) -> None:
        async def run() -> None:
            log = InMemoryOrderedLog(FakeClock())
            a = await log.append("s", {"n": b"a"})
            b = await log.append("s", {"n": b"b"})
            assert await log.create_group("s", "g") is True
            assert await log.create_group("s", "g") is False

            delivered = await log.read_group("s", "g", "c1", count=10)
            assert [e.id for e in delivered] == [a, b]
            assert await log.read_group("s", "g", "c1", count=10) == []

            backlog = await log.read_group("s", "g", "c1", count=10, pending=True)
            assert [e.id for e in backlog] == [a, b]
            assert await log.read_group("s", "g", "c2", count=10, pending=True) == []

            summary = await log.pending("s", "g")
            assert (summary.count, summary.min_id, summary.max_id) == (2, a, b)
            assert summary.consumers == {"c1": 2}

            assert await log.acknowledge("s", "g", a, a) == 1
            assert log.acknowledged == [a]
            assert log.pending_ids("s", "g") == [b]
            assert await log.last_delivered_id("s", "g") == b

        asyncio.run(run())

    def test_group_from_end(self) -> None:
        async def run() -> None:
            log = InMemoryOrderedLog(FakeClock())
            await log.append("s", {"n": b"old"})
            await log.create_group("s", "tail", "$")
            fresh = await log.append("s", {"n": b"new"})
            assert [e.id for e in await log.read_group("s", "tail", "c", count=10)] == [fresh]

        asyncio.run(run())

    def test_missing_group_raises_group_missing(self) -> None:
        async def run() -> None:
            log = InMemoryOrderedLog(FakeClock())
            with pytest.raises(GroupMissingError) as exc_info:
                await log.read_group("s", "nope", "c", count=1)
            assert exc_info.value.group == "nope"
            assert await log.last_delivered_id("s", "nope") is None
            assert await log.acknowledge("s", "nope", "1-0") == 0

        asyncio.run(run())

    def test_drop_stream_removes_its_groups(self) -> None:
        async def run() -> None:
            log = InMemoryOrderedLog(FakeClock())
            await log.create_group("s", "g")
            await log.append("s", {"n": b"1"})
            log.drop_stream("s")
            assert log.entries("s") == []
            with pytest.raises(GroupMissingError):
                await log.pending("s", "g")
            assert await log.create_group("s", "g")

        asyncio.run(run())

    def test_claim_idle_moves_ownership(self) -> None:
        async def run() -> None:
            clock = FakeClock()
            log = InMemoryOrderedLog(clock)
            entry_id = await log.append("s", {"n": b"x"})
            await log.create_group("s", "g")
            await log.read_group("s", "g", "dead", count=1)

            assert await log.claim_idle("s", "g", "alive", min_idle_ms=1000, count=10) == []
            clock.advance(seconds=2)
            claimed = await log.claim_idle("s", "g", "alive", min_idle_ms=1000, count=10)
            assert [e.id for e in claimed] == [entry_id]
            assert (await log.pending("s", "g")).consumers == {"alive": 1}

        asyncio.run(run())

    def test_injected_failure(self) -> None:
        async def run() -> None:
            log = InMemoryOrderedLog(FakeClock())
            log.fail("append", times=1)
            with pytest.raises(StoreUnavailableError, match="in-memory-log"):
                await log.append("s", {})
            await log.append("s", {})
            assert await log.length("s") == 1

        asyncio.run(run())


# ---------------------------------------------------------------------------
# InMemoryKeyValueStore
# ---------------------------------------------------------------------------


class TestInMemoryKeyValueStore:
    def test_set_if_absent_and_ttl(self) -> None:
        async def run() -> None:
            clock = FakeClock()
            kv = InMemoryKeyValueStore(clock)
            assert await kv.set_if_absent("k", b"1", ttl_seconds=10) is True
            assert await kv.set_if_absent("k", b"2", ttl_seconds=10) is False
            clock.advance(seconds=10)
            assert await kv.get("k") is None
            assert await kv.set_if_absent("k", b"3") is True
            assert await kv.get("k") == b"3"

        asyncio.run(run())

    def test_incr_keeps_expiry(self) -> None:
        async def run() -> None:
            clock = FakeClock()
            kv = InMemoryKeyValueStore(clock)
            assert await kv.incr("n") == 1
            await kv.set("t", b"5", ttl_seconds=5)
            assert await kv.incr("t") == 6
            clock.advance(seconds=5)
            assert await kv.get("t") is None

        asyncio.run(run())

    def test_keys_and_delete(self) -> None:
        async def run() -> None:
            kv = InMemoryKeyValueStore(FakeClock())
            await kv.set("a:1", b"x")
            await kv.set("a:2", b"x")
            await kv.set("b:1", b"x")
            assert kv.keys("a:") == ["a:1", "a:2"]
            await kv.delete("a:1")
            await kv.delete("never-set")
            assert kv.keys() == ["a:2", "b:1"]

        asyncio.run(run())


# ---------------------------------------------------------------------------
# FakeMetricsRegistry
# ---------------------------------------------------------------------------


class TestFakeMetricsRegistry:
    def test_counter_totals_by_labels(self) -> None:
        metrics = FakeMetricsRegistry()
        c = metrics.counter("entries")
        c.add(1, {"outcome": "processed"})
        c.add(2, {"outcome": "dead_lettered"})
        assert c.total == 3
        assert c.total_for({"outcome": "processed"}) == 1
        metrics.assert_counter_incremented("entries", 2)

    def test_assert_counter_never_created(self) -> None:
        with pytest.raises(AssertionError, match="never created"):
            FakeMetricsRegistry().assert_counter_incremented("missing")

    def test_gauge_and_histogram(self) -> None:
        metrics = FakeMetricsRegistry()
        g = metrics.gauge("lag")
        g.set(4, {"stream": "s"})
        g.set(1, {"stream": "t"})
        assert g.value({"stream": "s"}) == 4
        assert g.current == 1
        metrics.histogram("d").record(2.5)
        assert metrics.histogram("d").values == [2.5]

    def test_reset(self) -> None:
        metrics = FakeMetricsRegistry()
        first = metrics.counter("c")
        metrics.reset()
        assert metrics.counter("c") is not first

    def test_samples_keep_publication_order(self) -> None:
        metrics = FakeMetricsRegistry()
        metrics.gauge("lag").set(2, {"stream": "s"})
        metrics.counter("entries").add()
        metrics.gauge("lag").set(0, {"stream": "s"})
        assert metrics.names() == ["lag", "entries"]
        assert [s.value for s in metrics.samples] == [2, 1.0, 0]
        assert metrics.samples[0].labels == (("stream", "s"),)
        assert metrics.gauge("lag").set_count == 2
