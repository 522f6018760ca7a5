"""Redis adapter – RedisClient."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from mp_eventlog.kernel.errors import StoreUnavailableError
from mp_eventlog.kernel.errors import TimeoutError as AppTimeoutError
from mp_eventlog.resilience.timeouts import TimeoutPolicy

T = TypeVar("T")


def _require_redis() -> Any:
    try:
        import redis.asyncio as aioredis
        return aioredis
    except ImportError as exc:
        raise ImportError("Install 'redis' to use the Redis adapter") from exc


def _redis_error() -> type[Exception]:
    from redis.exceptions import RedisError

    return RedisError


class RedisClient:
    """Async Redis client wrapper with a per-command timeout.

    Every command runs under :class:`TimeoutPolicy`; connection errors,
    Redis errors and command timeouts all surface as
    :class:`~mp_eventlog.kernel.errors.StoreUnavailableError`.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        client: Any | None = None,
        command_timeout_seconds: float = 5.0,
        **kwargs: Any,
    ) -> None:
        if client is None:
            if url is None:
                raise ValueError("RedisClient needs a url or a client")
            aioredis = _require_redis()
            client = aioredis.from_url(url, **kwargs)
        self._client = client
        self._timeout = TimeoutPolicy(command_timeout_seconds)

    @property
    def raw(self) -> Any:
        return self._client

    async def execute(
        self,
        command: str,
        func: Callable[[Any], Awaitable[T]],
        *,
        extra_seconds: float = 0.0,
    ) -> T:
        """Run ``func(client)`` under the command timeout, translating failures."""
        try:
            return await self._timeout.execute(lambda: func(self._client), extra_seconds=extra_seconds)
        except AppTimeoutError as exc:
            raise StoreUnavailableError("redis", f"{command} timed out", cause=exc) from exc
        except _redis_error() as exc:
            raise StoreUnavailableError("redis", f"{command} failed: {exc}", cause=exc) from exc

    async def ping(self) -> bool:
        return bool(await self.execute("PING", lambda c: c.ping()))

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["RedisClient"]
