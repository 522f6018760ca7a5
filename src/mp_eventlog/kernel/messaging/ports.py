"""Kernel messaging – ports onto the external ordered log and key/value store.

The core never talks to a datastore directly; adapters (Redis, in-memory
fakes) implement these two ports.  Every method may raise
:class:`~mp_eventlog.kernel.errors.StoreUnavailableError`.
"""
from __future__ import annotations

import abc
import dataclasses

from mp_eventlog.kernel.messaging.envelope import LogEntry


@dataclasses.dataclass(frozen=True)
class PendingSummary:
    """Delivered-but-unacknowledged entries of one consumer group."""

    count: int
    min_id: str | None = None
    max_id: str | None = None
    consumers: dict[str, int] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ConsumerGroupState:
    """Transient view of one member of a consumer group.

    Rebuilt from the log's group metadata on demand; never persisted here.
    """

    group_name: str
    member_name: str
    pending_count: int
    last_delivered_id: str | None


class OrderedLog(abc.ABC):
    """Port: append-only, ordered, partitioned log with consumer groups.

    Group reads (``read_group``, ``pending``, ``claim_idle``) raise
    :class:`~mp_eventlog.kernel.errors.GroupMissingError` when the group is gone;
    ``acknowledge`` on a missing group removes nothing.
    """

    @abc.abstractmethod
    async def append(self, stream_key: str, fields: dict[str, bytes]) -> str:
        """Atomically append *fields*; return the id assigned by the log."""

    @abc.abstractmethod
    async def range(
        self,
        stream_key: str,
        start: str = "-",
        end: str = "+",
        count: int | None = None,
    ) -> list[LogEntry]:
        """Return entries with ids in ``[start, end]`` in log order.

        ``"-"``/``"+"`` are the open bounds and a ``"("`` prefix makes a bound
        exclusive.
        """

    @abc.abstractmethod
    async def length(self, stream_key: str) -> int: ...

    @abc.abstractmethod
    async def create_group(self, stream_key: str, group: str, start_id: str = "0") -> bool:
        """Create *group* (and the stream if missing). ``False`` if it already exists."""

    @abc.abstractmethod
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
        """Read for *consumer*.

        With ``pending=False`` deliver entries never delivered to the group
        (``>``), blocking up to *block_ms*.  With ``pending=True`` re-read the
        consumer's own unacknowledged entries without blocking.
        """

    @abc.abstractmethod
    async def acknowledge(self, stream_key: str, group: str, *entry_ids: str) -> int:
        """Remove *entry_ids* from the group's pending set; return how many were removed."""

    @abc.abstractmethod
    async def pending(self, stream_key: str, group: str) -> PendingSummary: ...

    @abc.abstractmethod
    async def claim_idle(
        self,
        stream_key: str,
        group: str,
        consumer: str,
        *,
        min_idle_ms: int,
        count: int,
    ) -> list[LogEntry]:
        """Transfer entries pending longer than *min_idle_ms* to *consumer*."""

    @abc.abstractmethod
    async def last_delivered_id(self, stream_key: str, group: str) -> str | None: ...


class KeyValueStore(abc.ABC):
    """Port: key/value store with TTL and atomic conditional set."""

    @abc.abstractmethod
    async def set_if_absent(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        """Atomically set *key* only if missing. ``True`` when this call wrote it."""

    @abc.abstractmethod
    async def get(self, key: str) -> bytes | None: ...

    @abc.abstractmethod
    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> None: ...

    @abc.abstractmethod
    async def delete(self, key: str) -> None: ...

    @abc.abstractmethod
    async def incr(self, key: str) -> int: ...


__all__ = [
    "ConsumerGroupState",
    "KeyValueStore",
    "OrderedLog",
    "PendingSummary",
]
