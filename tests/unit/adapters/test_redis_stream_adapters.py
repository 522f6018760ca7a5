"""Unit tests for the Redis adapters; no running Redis required."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from mp_eventlog.adapters.redis import (
    RedisClient,
    RedisKeyValueStore,
    RedisStreamLog,
    build_store_policy,
    build_stream_processor,
)
from mp_eventlog.application.scheduler import InMemoryScheduler
from mp_eventlog.config import EventLogSettings
from mp_eventlog.kernel.errors import GroupMissingError, StoreUnavailableError
from mp_eventlog.kernel.messaging import LogEntry
from mp_eventlog.resilience import RetryPolicy, TenacityRetryPolicy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_client(timeout: float = 1.0) -> tuple[RedisClient, MagicMock]:
    raw = MagicMock()
    for name in (
        "ping", "aclose", "xadd", "xrange", "xlen", "xgroup_create", "xreadgroup",
        "xack", "xpending", "xautoclaim", "xinfo_groups", "set", "get", "delete", "incr",
    ):
        setattr(raw, name, AsyncMock())
    return RedisClient(client=raw, command_timeout_seconds=timeout), raw


async def _noop_handler(envelope: Any) -> None:
    return None


# ---------------------------------------------------------------------------
# RedisClient
# ---------------------------------------------------------------------------


class TestRedisClient:
    def test_requires_url_or_client(self) -> None:
        with pytest.raises(ValueError):
            RedisClient()

    def test_builds_from_url(self) -> None:
        import mp_eventlog.adapters.redis.client as client_mod

        aioredis = MagicMock()
        with patch.object(client_mod, "_require_redis", return_value=aioredis):
            client = RedisClient("redis://localhost:6379/0", decode_responses=False)
        aioredis.from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=False)
        assert client.raw is aioredis.from_url.return_value

    def test_ping_and_close(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.ping.return_value = True
            assert await client.ping() is True
            await client.close()
            raw.aclose.assert_awaited_once()

        asyncio.run(run())

    def test_redis_error_becomes_store_unavailable(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xlen.side_effect = RedisConnectionError("refused")
            with pytest.raises(StoreUnavailableError, match="XLEN failed") as exc_info:
                await RedisStreamLog(client).length("orders")
            assert exc_info.value.store == "redis"

        asyncio.run(run())

    def test_timeout_becomes_store_unavailable(self) -> None:
        async def run() -> None:
            client, raw = _make_client(timeout=0.01)

            async def hang(*args: Any, **kwargs: Any) -> None:
                await asyncio.sleep(1.0)

            raw.get.side_effect = hang
            with pytest.raises(StoreUnavailableError, match="timed out"):
                await RedisKeyValueStore(client).get("k")

        asyncio.run(run())


# ---------------------------------------------------------------------------
# RedisStreamLog
# ---------------------------------------------------------------------------


class TestRedisStreamLog:
    def test_append(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xadd.return_value = b"1700-0"
            assert await RedisStreamLog(client).append("orders", {"type": b"T"}) == "1700-0"
            raw.xadd.assert_awaited_once_with("orders", {"type": b"T"})

        asyncio.run(run())

    def test_range(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xrange.return_value = [(b"1-0", {b"a": b"1"}), (b"2-0", {b"a": b"2"})]
            entries = await RedisStreamLog(client).range("orders", "(1-0", "+", 10)
            assert entries == [LogEntry("1-0", {"a": b"1"}), LogEntry("2-0", {"a": b"2"})]
            raw.xrange.assert_awaited_once_with("orders", min="(1-0", max="+", count=10)

        asyncio.run(run())

    def test_create_group(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            log = RedisStreamLog(client)
            assert await log.create_group("orders", "g") is True
            raw.xgroup_create.assert_awaited_once_with("orders", "g", id="0", mkstream=True)

            raw.xgroup_create.side_effect = ResponseError("BUSYGROUP Consumer Group name already exists")
            assert await log.create_group("orders", "g") is False

        asyncio.run(run())

    def test_create_group_other_response_error(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xgroup_create.side_effect = ResponseError("WRONGTYPE")
            with pytest.raises(StoreUnavailableError):
                await RedisStreamLog(client).create_group("orders", "g")

        asyncio.run(run())

    def test_nogroup_reply_raises_group_missing(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            log = RedisStreamLog(client)
            nogroup = ResponseError("NOGROUP No such key 'orders' or consumer group 'g'")
            raw.xreadgroup.side_effect = nogroup
            raw.xpending.side_effect = nogroup
            raw.xautoclaim.side_effect = nogroup

            with pytest.raises(GroupMissingError) as exc_info:
                await log.read_group("orders", "g", "c1", count=5)
            assert exc_info.value.detail == {"stream_key": "orders", "group": "g"}
            with pytest.raises(GroupMissingError):
                await log.read_group("orders", "g", "c1", count=5, pending=True)
            with pytest.raises(GroupMissingError):
                await log.pending("orders", "g")
            with pytest.raises(GroupMissingError):
                await log.claim_idle("orders", "g", "c1", min_idle_ms=10, count=5)

        asyncio.run(run())

    def test_other_group_command_errors_stay_unavailable(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xpending.side_effect = ResponseError("WRONGTYPE Operation against a key")
            with pytest.raises(StoreUnavailableError):
                await RedisStreamLog(client).pending("orders", "g")

        asyncio.run(run())

    def test_read_group_new_entries_resp2(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xreadgroup.return_value = [[b"orders", [(b"3-0", {b"payload": b"{}"})]]]
            entries = await RedisStreamLog(client).read_group("orders", "g", "c1", count=5, block_ms=2000)
            assert entries == [LogEntry("3-0", {"payload": b"{}"})]
            raw.xreadgroup.assert_awaited_once_with("g", "c1", {"orders": ">"}, count=5, block=2000)

        asyncio.run(run())

    def test_read_group_resp3_reply(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xreadgroup.return_value = {b"orders": [[(b"3-0", {b"payload": b"{}"})]]}
            entries = await RedisStreamLog(client).read_group("orders", "g", "c1", count=5)
            assert [e.id for e in entries] == ["3-0"]

        asyncio.run(run())

    def test_read_group_pending_backlog_and_zero_block(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xreadgroup.return_value = []
            log = RedisStreamLog(client)
            assert await log.read_group("orders", "g", "c1", count=5, pending=True) == []
            raw.xreadgroup.assert_awaited_with("g", "c1", {"orders": "0"}, count=5)
            await log.read_group("orders", "g", "c1", count=5, block_ms=0)
            raw.xreadgroup.assert_awaited_with("g", "c1", {"orders": ">"}, count=5, block=None)

        asyncio.run(run())

    def test_acknowledge(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xack.return_value = 2
            log = RedisStreamLog(client)
            assert await log.acknowledge("orders", "g", "1-0", "2-0") == 2
            assert await log.acknowledge("orders", "g") == 0
            raw.xack.assert_awaited_once_with("orders", "g", "1-0", "2-0")

        asyncio.run(run())

    def test_pending_summary(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xpending.return_value = {
                "pending": 3,
                "min": b"1-0",
                "max": b"4-0",
                "consumers": [{"name": b"c1", "pending": 2}, {"name": b"c2", "pending": "1"}],
            }
            summary = await RedisStreamLog(client).pending("orders", "g")
            assert summary.count == 3
            assert (summary.min_id, summary.max_id) == ("1-0", "4-0")
            assert summary.consumers == {"c1": 2, "c2": 1}

        asyncio.run(run())

    def test_pending_empty(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xpending.return_value = {"pending": 0, "min": None, "max": None, "consumers": []}
            summary = await RedisStreamLog(client).pending("orders", "g")
            assert summary.count == 0
            assert summary.min_id is None

        asyncio.run(run())

    def test_claim_idle_drops_deleted_entries(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xautoclaim.return_value = [b"0-0", [(b"1-0", {b"a": b"1"}), (b"2-0", None)], []]
            entries = await RedisStreamLog(client).claim_idle("orders", "g", "c2", min_idle_ms=500, count=10)
            assert [e.id for e in entries] == ["1-0"]
            raw.xautoclaim.assert_awaited_once_with("orders", "g", "c2", 500, start_id="0-0", count=10)

        asyncio.run(run())

    def test_last_delivered_id(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xinfo_groups.return_value = [
                {"name": b"other", "last-delivered-id": b"1-0"},
                {"name": b"g", "last-delivered-id": b"5-0"},
            ]
            log = RedisStreamLog(client)
            assert await log.last_delivered_id("orders", "g") == "5-0"
            assert await log.last_delivered_id("orders", "missing") is None

        asyncio.run(run())


# ---------------------------------------------------------------------------
# RedisKeyValueStore
# ---------------------------------------------------------------------------


class TestRedisKeyValueStore:
    def test_set_if_absent_uses_nx_ex(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.set.return_value = True
            kv = RedisKeyValueStore(client)
            assert await kv.set_if_absent("k", b"v", 60) is True
            raw.set.assert_awaited_once_with("k", b"v", nx=True, ex=60)
            raw.set.return_value = None
            assert await kv.set_if_absent("k", b"v", 60) is False

        asyncio.run(run())

    def test_get_set_delete_incr(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            kv = RedisKeyValueStore(client)
            raw.get.return_value = "text"
            assert await kv.get("k") == b"text"
            await kv.set("k", b"v")
            raw.set.assert_awaited_once_with("k", b"v", ex=None)
            await kv.delete("k")
            raw.delete.assert_awaited_once_with("k")
            raw.incr.return_value = 7
            assert await kv.incr("n") == 7

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


class TestFactory:
    def test_store_policy_backend(self) -> None:
        assert isinstance(build_store_policy(EventLogSettings()).retry, RetryPolicy)
        policy = build_store_policy(EventLogSettings(retry_backend="tenacity"))
        assert isinstance(policy.retry, TenacityRetryPolicy)

    def test_stream_processor_wiring(self) -> None:
        async def run() -> None:
            client, raw = _make_client()
            raw.xgroup_create.return_value = True
            scheduler = InMemoryScheduler()
            settings = EventLogSettings(stream_key="payments", member_name="m-2")
            processor = build_stream_processor(settings, _noop_handler, client=client, scheduler=scheduler)
            await processor.start()
            raw.xgroup_create.assert_awaited_once_with("payments", "order-processors", id="0", mkstream=True)
            assert [j.id for j in scheduler.list_jobs()] == ["stream-processor:payments:m-2"]

        asyncio.run(run())
