"""Redis adapter – RedisKeyValueStore."""
from __future__ import annotations

from mp_eventlog.adapters.redis.client import RedisClient
from mp_eventlog.kernel.messaging import KeyValueStore


class RedisKeyValueStore(KeyValueStore):
    """SET NX EX / GET / SET EX / DEL / INCR."""

    def __init__(self, client: RedisClient) -> None:
        self._client = client

    async def set_if_absent(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        result = await self._client.execute(
            "SET NX", lambda c: c.set(key, value, nx=True, ex=ttl_seconds)
        )
        return bool(result)

    async def get(self, key: str) -> bytes | None:
        value = await self._client.execute("GET", lambda c: c.get(key))
        if value is None or isinstance(value, bytes):
            return value
        return str(value).encode()

    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> None:
        await self._client.execute("SET", lambda c: c.set(key, value, ex=ttl_seconds))

    async def delete(self, key: str) -> None:
        await self._client.execute("DEL", lambda c: c.delete(key))

    async def incr(self, key: str) -> int:
        return int(await self._client.execute("INCR", lambda c: c.incr(key)))


__all__ = ["RedisKeyValueStore"]
