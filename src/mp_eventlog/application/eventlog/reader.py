"""Application event log – ConsumerGroupReader and its poll state machine."""
from __future__ import annotations

from enum import Enum

from mp_eventlog.kernel.errors import AcknowledgeFailed, GroupMissingError, StoreUnavailableError
from mp_eventlog.kernel.messaging import ConsumerGroupState, EventEnvelope, OrderedLog, decode_entry
from mp_eventlog.observability.logging import get_logger
from mp_eventlog.resilience import StoreCallPolicy

__all__ = ["ConsumerGroupReader", "ReaderState"]

logger = get_logger(__name__)


class ReaderState(str, Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"
    MESSAGES_RECEIVED = "MESSAGES_RECEIVED"
    TIMED_OUT = "TIMED_OUT"


class ConsumerGroupReader:
    """Pulls entries for one ``(group, member)`` pair.

    State machine::

        IDLE -> POLLING -> MESSAGES_RECEIVED -> IDLE   (once every entry is acknowledged)
                        -> TIMED_OUT         -> IDLE   (empty poll, not an error)

    Each poll first re-reads this member's own pending backlog, i.e. entries
    delivered earlier but never acknowledged because a cycle was aborted.
    Only when that backlog is empty does it ask for new entries (``>``),
    blocking up to *block_ms*.  At most *batch_size* entries are returned.
    """

    def __init__(
        self,
        log: OrderedLog,
        *,
        stream_key: str,
        group_name: str,
        member_name: str,
        batch_size: int = 10,
        block_ms: int = 2000,
        policy: StoreCallPolicy | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._log = log
        self.stream_key = stream_key
        self.group_name = group_name
        self.member_name = member_name
        self._batch_size = batch_size
        self._block_ms = block_ms
        self._policy = policy or StoreCallPolicy()
        self._state = ReaderState.IDLE
        self._last_outcome: ReaderState | None = None
        self._outstanding: set[str] = set()

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def last_outcome(self) -> ReaderState | None:
        """``MESSAGES_RECEIVED`` or ``TIMED_OUT`` for the most recent poll."""
        return self._last_outcome

    @property
    def outstanding(self) -> frozenset[str]:
        """Ids of the current batch not yet acknowledged."""
        return frozenset(self._outstanding)

    async def ensure_group(self) -> bool:
        """Create the group from the start of the stream; an existing group is fine."""
        created = await self._policy.run(
            lambda: self._log.create_group(self.stream_key, self.group_name, "0")
        )
        if created:
            logger.info("reader.group_created", stream=self.stream_key, group=self.group_name)
        return created

    async def poll(self) -> list[EventEnvelope]:
        self._state = ReaderState.POLLING
        try:
            entries = await self._policy.run(
                lambda: self._log.read_group(
                    self.stream_key,
                    self.group_name,
                    self.member_name,
                    count=self._batch_size,
                    pending=True,
                )
            )
            if entries:
                logger.info("reader.backlog_redelivered", count=len(entries))
            else:
                entries = await self._policy.run(
                    lambda: self._log.read_group(
                        self.stream_key,
                        self.group_name,
                        self.member_name,
                        count=self._batch_size,
                        block_ms=self._block_ms,
                    )
                )
        except (StoreUnavailableError, GroupMissingError):
            self._state = ReaderState.IDLE
            raise

        if not entries:
            self._last_outcome = ReaderState.TIMED_OUT
            self._state = ReaderState.TIMED_OUT
            self._outstanding = set()
            self._state = ReaderState.IDLE
            return []

        self._last_outcome = ReaderState.MESSAGES_RECEIVED
        self._state = ReaderState.MESSAGES_RECEIVED
        self._outstanding = {entry.id for entry in entries}
        return [decode_entry(self.stream_key, entry) for entry in entries]

    async def acknowledge(self, entry_id: str) -> None:
        """Remove *entry_id* from the group's pending set."""
        try:
            await self._policy.run(
                lambda: self._log.acknowledge(self.stream_key, self.group_name, entry_id)
            )
        except StoreUnavailableError as exc:
            raise AcknowledgeFailed(
                f"Acknowledge of '{entry_id}' failed",
                stream_key=self.stream_key,
                entry_id=entry_id,
                cause=exc,
            ) from exc
        self._outstanding.discard(entry_id)
        if not self._outstanding and self._state is ReaderState.MESSAGES_RECEIVED:
            self._state = ReaderState.IDLE

    async def claim_stale(self, min_idle_ms: int) -> list[EventEnvelope]:
        """Take over entries another member left pending for at least *min_idle_ms*.

        Claimed entries join this member's pending backlog and are picked up
        by the next :meth:`poll`.
        """
        entries = await self._policy.run(
            lambda: self._log.claim_idle(
                self.stream_key,
                self.group_name,
                self.member_name,
                min_idle_ms=min_idle_ms,
                count=self._batch_size,
            )
        )
        if entries:
            logger.info("reader.claimed_stale", count=len(entries), min_idle_ms=min_idle_ms)
        return [decode_entry(self.stream_key, entry) for entry in entries]

    async def group_state(self) -> ConsumerGroupState:
        summary = await self._policy.run(lambda: self._log.pending(self.stream_key, self.group_name))
        last_id = await self._policy.run(
            lambda: self._log.last_delivered_id(self.stream_key, self.group_name)
        )
        return ConsumerGroupState(
            group_name=self.group_name,
            member_name=self.member_name,
            pending_count=summary.consumers.get(self.member_name, 0),
            last_delivered_id=last_id,
        )
