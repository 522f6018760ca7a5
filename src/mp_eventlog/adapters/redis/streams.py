"""Redis adapter – RedisStreamLog, the OrderedLog over Redis Streams."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from mp_eventlog.adapters.redis.client import RedisClient
from mp_eventlog.kernel.errors import GroupMissingError
from mp_eventlog.kernel.messaging import LogEntry, OrderedLog, PendingSummary
from mp_eventlog.kernel.messaging.envelope import to_str

T = TypeVar("T")


def _entries(raw: Any) -> list[LogEntry]:
    return [LogEntry.from_raw(entry_id, fields) for entry_id, fields in raw or []]


def _stream_entries(response: Any, stream_key: str) -> list[LogEntry]:
    """Pick *stream_key*'s entries out of an XREADGROUP reply (RESP2 list or RESP3 dict)."""
    if not response:
        return []
    if isinstance(response, dict):
        for name, value in response.items():
            if to_str(name) == stream_key:
                # RESP3 wraps the entries in one more list
                return _entries(value[0] if value and isinstance(value[0], list) else value)
        return []
    for name, entries in response:
        if to_str(name) == stream_key:
            return _entries(entries)
    return []


def _in_group(
    stream_key: str, group: str, call: Callable[[Any], Awaitable[T]]
) -> Callable[[Any], Awaitable[T]]:
    """Wrap a consumer-group command so a NOGROUP reply raises :class:`GroupMissingError`."""
    from redis.exceptions import ResponseError

    async def run(c: Any) -> T:
        try:
            return await call(c)
        except ResponseError as exc:
            if "NOGROUP" in str(exc):
                raise GroupMissingError(stream_key, group, cause=exc) from exc
            raise

    return run


class RedisStreamLog(OrderedLog):
    """XADD / XRANGE / XLEN / XGROUP / XREADGROUP / XACK / XPENDING / XAUTOCLAIM."""

    def __init__(self, client: RedisClient) -> None:
        self._client = client

    async def append(self, stream_key: str, fields: dict[str, bytes]) -> str:
        entry_id = await self._client.execute("XADD", lambda c: c.xadd(stream_key, fields))
        return to_str(entry_id)

    async def range(
        self,
        stream_key: str,
        start: str = "-",
        end: str = "+",
        count: int | None = None,
    ) -> list[LogEntry]:
        raw = await self._client.execute(
            "XRANGE", lambda c: c.xrange(stream_key, min=start, max=end, count=count)
        )
        return _entries(raw)

    async def length(self, stream_key: str) -> int:
        return int(await self._client.execute("XLEN", lambda c: c.xlen(stream_key)))

    async def create_group(self, stream_key: str, group: str, start_id: str = "0") -> bool:
        from redis.exceptions import ResponseError

        async def create(c: Any) -> bool:
            try:
                await c.xgroup_create(stream_key, group, id=start_id, mkstream=True)
            except ResponseError as exc:
                if "BUSYGROUP" in str(exc):
                    return False
                raise
            return True

        return await self._client.execute("XGROUP CREATE", create)

    async def read_group(
        self,
        stream_key: str,
        group: str,
        consumer: str,
        *,
        count: int,
        block_ms: int | None = None,
        pending: bool = False,
    ) -> list[LogEntry]:
        if pending:
            response = await self._client.execute(
                "XREADGROUP",
                _in_group(
                    stream_key,
                    group,
                    lambda c: c.xreadgroup(group, consumer, {stream_key: "0"}, count=count),
                ),
            )
        else:
            extra = (block_ms or 0) / 1000
            response = await self._client.execute(
                "XREADGROUP",
                _in_group(
                    stream_key,
                    group,
                    lambda c: c.xreadgroup(group, consumer, {stream_key: ">"}, count=count, block=block_ms or None),
                ),
                extra_seconds=extra,
            )
        return _stream_entries(response, stream_key)

    async def acknowledge(self, stream_key: str, group: str, *entry_ids: str) -> int:
        if not entry_ids:
            return 0
        return int(await self._client.execute("XACK", lambda c: c.xack(stream_key, group, *entry_ids)))

    async def pending(self, stream_key: str, group: str) -> PendingSummary:
        raw = await self._client.execute(
            "XPENDING", _in_group(stream_key, group, lambda c: c.xpending(stream_key, group))
        )
        consumers = {
            to_str(item["name"]): int(item["pending"]) for item in raw.get("consumers") or []
        }
        min_id = raw.get("min")
        max_id = raw.get("max")
        return PendingSummary(
            count=int(raw.get("pending") or 0),
            min_id=to_str(min_id) if min_id is not None else None,
            max_id=to_str(max_id) if max_id is not None else None,
            consumers=consumers,
        )

    async def claim_idle(
        self,
        stream_key: str,
        group: str,
        consumer: str,
        *,
        min_idle_ms: int,
        count: int,
    ) -> list[LogEntry]:
        raw = await self._client.execute(
            "XAUTOCLAIM",
            _in_group(
                stream_key,
                group,
                lambda c: c.xautoclaim(stream_key, group, consumer, min_idle_ms, start_id="0-0", count=count),
            ),
        )
        # [next_start_id, entries, deleted_ids]
        claimed = raw[1] if raw and len(raw) > 1 else []
        return [entry for entry in _entries(claimed) if entry.fields]

    async def last_delivered_id(self, stream_key: str, group: str) -> str | None:
        groups = await self._client.execute("XINFO GROUPS", lambda c: c.xinfo_groups(stream_key))
        for info in groups or []:
            if to_str(info.get("name")) == group:
                last = info.get("last-delivered-id")
                return to_str(last) if last is not None else None
        return None


__all__ = ["RedisStreamLog"]
