"""Application event log – DedupGuard."""
from __future__ import annotations

from mp_eventlog.kernel.errors import DedupUnavailable, SerializationError, StoreUnavailableError
from mp_eventlog.kernel.messaging import ClaimResult, DedupMarker, KeyValueStore
from mp_eventlog.kernel.time import Clock, SystemClock
from mp_eventlog.observability.logging import get_logger
from mp_eventlog.resilience import StoreCallPolicy

__all__ = ["DedupGuard"]

logger = get_logger(__name__)


class DedupGuard:
    """Atomic "has this event been applied" check-and-mark with a TTL.

    The claim is one conditional write (set-if-absent), never a read followed
    by a write. Any store failure surfaces as
    :class:`~mp_eventlog.kernel.errors.DedupUnavailable` and callers must not
    run domain logic without a successful claim.

    Keys are ``<prefix><event_id>``; the prefix namespaces one use case.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        prefix: str = "orders:processed:",
        default_ttl_seconds: int = 3600,
        policy: StoreCallPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be > 0")
        self._store = store
        self._prefix = prefix
        self._ttl = default_ttl_seconds
        self._policy = policy or StoreCallPolicy()
        self._clock = clock or SystemClock()

    @property
    def prefix(self) -> str:
        return self._prefix

    def key_for(self, event_id: str) -> str:
        return f"{self._prefix}{event_id}"

    async def mark_if_absent(
        self,
        event_id: str,
        ttl: int | None = None,
        *,
        owner: str | None = None,
        read_marker: bool = False,
    ) -> ClaimResult:
        """Claim *event_id*; ``applied`` is ``True`` only for the caller whose write won.

        A lost claim carries the existing marker only with ``read_marker=True``,
        which costs one more read.
        """
        key = self.key_for(event_id)
        marker = DedupMarker(event_id=event_id, first_seen_at=self._clock.now(), owner=owner)
        try:
            written = await self._policy.run(
                lambda: self._store.set_if_absent(key, marker.to_bytes(), ttl or self._ttl)
            )
        except StoreUnavailableError as exc:
            raise DedupUnavailable(
                f"Could not claim '{event_id}'", entry_id=event_id, cause=exc
            ) from exc
        if written:
            return ClaimResult(applied=True, marker=marker)
        if not read_marker:
            return ClaimResult(applied=False)
        return ClaimResult(applied=False, marker=await self._read_marker(key, event_id))

    async def _read_marker(self, key: str, event_id: str) -> DedupMarker | None:
        try:
            raw = await self._policy.run(lambda: self._store.get(key))
        except StoreUnavailableError as exc:
            raise DedupUnavailable(
                f"Could not read marker for '{event_id}'", entry_id=event_id, cause=exc
            ) from exc
        if raw is None:
            # expired between the conditional write and this read
            return None
        try:
            return DedupMarker.from_bytes(raw)
        except SerializationError:
            logger.warning("dedup.malformed_marker", key=key)
            return None

    async def release(self, event_id: str) -> None:
        """Drop the claim on *event_id* so the next delivery runs it again."""
        try:
            await self._policy.run(lambda: self._store.delete(self.key_for(event_id)))
        except StoreUnavailableError as exc:
            raise DedupUnavailable(
                f"Could not release '{event_id}'", entry_id=event_id, cause=exc
            ) from exc

    async def is_marked(self, event_id: str) -> bool:
        try:
            raw = await self._policy.run(lambda: self._store.get(self.key_for(event_id)))
        except StoreUnavailableError as exc:
            raise DedupUnavailable(
                f"Could not look up '{event_id}'", entry_id=event_id, cause=exc
            ) from exc
        return raw is not None
