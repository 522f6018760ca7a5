"""Unit tests for DeadLetterRouter."""

from __future__ import annotations

import asyncio

import pytest

from mp_eventlog.application.eventlog import DeadLetterRouter, EventLogStore
from mp_eventlog.kernel.errors import AppendFailed, DeadLetterFailed, NotFoundError, StoreUnavailableError
from mp_eventlog.resilience import RetryPolicy, StoreCallPolicy, no_retry
from mp_eventlog.resilience.retry import NoJitter
from mp_eventlog.testing import FakeClock, InMemoryOrderedLog


def _setup() -> tuple[InMemoryOrderedLog, EventLogStore, DeadLetterRouter]:
    clock = FakeClock()
    log = InMemoryOrderedLog(clock)
    store = EventLogStore(log, policy=no_retry(), clock=clock)
    router = DeadLetterRouter(log, suffix=":dlq", policy=no_retry(), clock=clock)
    return log, store, router


class _LostDeadLetterReplyLog(InMemoryOrderedLog):
    """Dead-letter appends are recorded, but the reply never arrives."""

    async def append(self, stream_key: str, fields: dict[str, bytes]) -> str:
        entry_id = await super().append(stream_key, fields)
        if stream_key.endswith(":dlq"):
            raise StoreUnavailableError("in-memory", "XADD timed out")
        return entry_id


async def _no_sleep(_: float) -> None:
    return None


class TestMove:
    def test_keeps_original_id_payload_and_reason(self) -> None:
        async def run() -> None:
            log, store, router = _setup()
            entry_id = await store.append("orders", b'{"id": "o-7"}', "ORDER_CREATED")
            [env] = await store.read_range("orders")

            dlq_id = await router.move(env, "ValueError: bad amount")
            [dead] = await router.list("orders")
            assert dead.id == dlq_id
            assert dead.original_id == entry_id
            assert dead.stream_key == "orders"
            assert dead.failure_reason == "ValueError: bad amount"
            assert dead.payload == b'{"id": "o-7"}'
            assert dead.type == "ORDER_CREATED"
            assert dead.moved_at == FakeClock().now()

        asyncio.run(run())

    def test_dead_letter_key(self) -> None:
        _, _, router = _setup()
        assert router.dead_letter_key("orders") == "orders:dlq"

    def test_failure_raises_dead_letter_failed(self) -> None:
        async def run() -> None:
            log, store, router = _setup()
            await store.append("orders", b"{}", "T")
            [env] = await store.read_range("orders")
            log.fail("append")
            with pytest.raises(DeadLetterFailed) as exc_info:
                await router.move(env, "boom")
            assert exc_info.value.entry_id == env.id
            assert log.entries("orders:dlq") == []

        asyncio.run(run())

    def test_move_is_not_resent_after_a_lost_reply(self) -> None:
        async def run() -> None:
            clock = FakeClock()
            log = _LostDeadLetterReplyLog(clock)
            retrying = StoreCallPolicy(retry=RetryPolicy(max_attempts=3, jitter=NoJitter(), sleep=_no_sleep))
            store = EventLogStore(log, policy=retrying, clock=clock)
            router = DeadLetterRouter(log, policy=retrying, clock=clock)
            await store.append("orders", b"{}", "T")
            [env] = await store.read_range("orders")
            with pytest.raises(DeadLetterFailed):
                await router.move(env, "boom")
            assert len(log.entries("orders:dlq")) == 1

        asyncio.run(run())


class TestReplay:
    def test_replay_appends_a_fresh_copy(self) -> None:
        async def run() -> None:
            log, store, router = _setup()
            original = await store.append("orders", b'{"id": "o-1"}', "ORDER_CREATED")
            [env] = await store.read_range("orders")
            dlq_id = await router.move(env, "boom")

            new_id = await router.replay("orders", dlq_id)
            assert new_id != original
            envs = await store.read_range("orders")
            assert [e.id for e in envs] == [original, new_id]
            assert envs[1].payload == b'{"id": "o-1"}'
            assert envs[1].type == "ORDER_CREATED"

        asyncio.run(run())

    def test_unknown_dlq_id(self) -> None:
        async def run() -> None:
            _, _, router = _setup()
            with pytest.raises(NotFoundError):
                await router.replay("orders", "1-0")

        asyncio.run(run())

    def test_replay_append_failure(self) -> None:
        async def run() -> None:
            log, store, router = _setup()
            await store.append("orders", b"{}", "T")
            [env] = await store.read_range("orders")
            dlq_id = await router.move(env, "boom")
            log.fail("append")
            with pytest.raises(AppendFailed):
                await router.replay("orders", dlq_id)

        asyncio.run(run())
