"""Application event log – DeadLetterRouter."""
from __future__ import annotations

from mp_eventlog.kernel.errors import AppendFailed, DeadLetterFailed, NotFoundError, StoreUnavailableError
from mp_eventlog.kernel.messaging import DeadLetterEntry, EventEnvelope, OrderedLog, encode_fields
from mp_eventlog.kernel.time import Clock, SystemClock
from mp_eventlog.observability.logging import get_logger
from mp_eventlog.resilience import StoreCallPolicy

__all__ = ["DeadLetterRouter"]

logger = get_logger(__name__)


class DeadLetterRouter:
    """Moves poison entries to ``<stream_key><suffix>`` keeping the original id."""

    def __init__(
        self,
        log: OrderedLog,
        *,
        suffix: str = ":dlq",
        policy: StoreCallPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._log = log
        self._suffix = suffix
        self._policy = policy or StoreCallPolicy()
        self._clock = clock or SystemClock()

    def dead_letter_key(self, stream_key: str) -> str:
        return f"{stream_key}{self._suffix}"

    async def move(self, envelope: EventEnvelope, reason: str) -> str:
        """Append *envelope* to the dead-letter log and return the new id.

        Raises :class:`DeadLetterFailed` when the append does not succeed; the
        caller must then leave the original entry unacknowledged.
        """
        entry = DeadLetterEntry(
            original_id=envelope.id,
            stream_key=envelope.stream_key,
            failure_reason=reason,
            payload=envelope.payload,
            type=envelope.type,
            moved_at=self._clock.now(),
        )
        dlq_key = self.dead_letter_key(envelope.stream_key)
        try:
            dlq_id = await self._policy.run_once(lambda: self._log.append(dlq_key, entry.to_fields()))
        except StoreUnavailableError as exc:
            raise DeadLetterFailed(
                f"Could not dead-letter '{envelope.id}'",
                stream_key=envelope.stream_key,
                entry_id=envelope.id,
                cause=exc,
            ) from exc
        logger.warning(
            "deadletter.moved",
            stream=envelope.stream_key,
            entry_id=envelope.id,
            dlq_id=dlq_id,
            reason=reason,
        )
        return dlq_id

    async def list(self, stream_key: str, count: int = 100) -> list[DeadLetterEntry]:
        entries = await self._policy.run(
            lambda: self._log.range(self.dead_letter_key(stream_key), "-", "+", count)
        )
        return [DeadLetterEntry.from_log_entry(entry) for entry in entries]

    async def replay(self, stream_key: str, dlq_id: str) -> str:
        """Re-append the original payload of *dlq_id* to the main stream.

        The copy gets a fresh log id, so the dedup claim held by the original
        entry does not hide it.
        """
        dlq_key = self.dead_letter_key(stream_key)
        found = await self._policy.run(lambda: self._log.range(dlq_key, dlq_id, dlq_id, 1))
        if not found:
            raise NotFoundError("Dead-letter entry", dlq_id)
        entry = DeadLetterEntry.from_log_entry(found[0])
        fields = encode_fields(entry.type, entry.payload, produced_at=self._clock.now())
        try:
            new_id = await self._policy.run_once(lambda: self._log.append(stream_key, fields))
        except StoreUnavailableError as exc:
            raise AppendFailed(
                f"Replay of '{dlq_id}' failed", stream_key=stream_key, entry_id=dlq_id, cause=exc
            ) from exc
        logger.info("deadletter.replayed", stream=stream_key, dlq_id=dlq_id, new_id=new_id)
        return new_id
