"""Application event log – StreamProcessor, the push-consumption orchestrator.

Per delivered entry, in delivery order:

1. claim the entry id with :class:`DedupGuard`;
2. not applied -> log the duplicate and acknowledge;
3. applied -> run the handler, then acknowledge on success, or move the entry
   to the dead-letter log and acknowledge on failure.

``DedupUnavailable`` and ``DeadLetterFailed`` abort the cycle and leave the
remaining entries pending; the next cycle picks them up from the member's
backlog.  A failed acknowledge is logged and the entry is later redelivered
and skipped as a duplicate.  A cycle that finds its group gone (the stream was
deleted) recreates it, so the following cycle resumes from the new stream.
"""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Awaitable, Callable, TypeAlias

from mp_eventlog.application.eventlog.dead_letter import DeadLetterRouter
from mp_eventlog.application.eventlog.dedup import DedupGuard
from mp_eventlog.application.eventlog.lag import LagMonitor
from mp_eventlog.application.eventlog.reader import ConsumerGroupReader
from mp_eventlog.application.scheduler import Job, Scheduler
from mp_eventlog.config.eventlog import EventLogSettings
from mp_eventlog.kernel.errors import (
    AcknowledgeFailed,
    DeadLetterFailed,
    DedupUnavailable,
    GroupMissingError,
    ProcessingFailed,
    StoreUnavailableError,
)
from mp_eventlog.kernel.messaging import EventEnvelope
from mp_eventlog.observability.logging import bind_consumer_context, get_logger
from mp_eventlog.observability.metrics import STREAM_ENTRIES, Metrics, NoopMetrics

__all__ = ["CycleReport", "EventHandler", "StreamProcessor"]

logger = get_logger(__name__)

EventHandler: TypeAlias = Callable[[EventEnvelope], Awaitable[None]]


@dataclasses.dataclass
class CycleReport:
    """What one poll cycle did."""

    received: int = 0
    processed: int = 0
    duplicates: int = 0
    dead_lettered: int = 0
    ack_failures: int = 0
    claimed: int = 0
    lag: int | None = None
    aborted: str | None = None

    @property
    def ok(self) -> bool:
        return self.aborted is None


class StreamProcessor:
    """Polls one consumer identity on a fixed period and processes each entry.

    The worker is passed in explicitly; cycles never overlap and never raise.
    """

    def __init__(
        self,
        reader: ConsumerGroupReader,
        dedup: DedupGuard,
        dead_letters: DeadLetterRouter,
        lag_monitor: LagMonitor,
        handler: EventHandler,
        scheduler: Scheduler,
        settings: EventLogSettings,
        *,
        metrics: Metrics | None = None,
    ) -> None:
        self._reader = reader
        self._dedup = dedup
        self._dead_letters = dead_letters
        self._lag = lag_monitor
        self._handler = handler
        self._scheduler = scheduler
        self._settings = settings
        self._lock = asyncio.Lock()
        self._stopping = False
        self._entries = (metrics or NoopMetrics()).counter(*STREAM_ENTRIES)
        self.job_id = f"stream-processor:{reader.stream_key}:{reader.member_name}"

    @property
    def is_stopping(self) -> bool:
        return self._stopping

    async def start(self) -> None:
        self._stopping = False
        bind_consumer_context(self._reader.stream_key, self._reader.group_name, self._reader.member_name)
        await self._reader.ensure_group()
        self._scheduler.add_job(
            Job(
                id=self.job_id,
                name="poll stream",
                handler=self._tick,
                interval_seconds=self._settings.poll_interval_seconds,
            )
        )
        await self._scheduler.start()
        logger.info("processor.started", interval_seconds=self._settings.poll_interval_seconds)

    async def stop(self) -> None:
        """Stop issuing polls, let the in-flight entry finish, then stop the worker."""
        self._stopping = True
        async with self._lock:
            pass
        self._scheduler.remove_job(self.job_id)
        await self._scheduler.stop()
        logger.info("processor.stopped")

    async def _tick(self) -> None:
        await self.poll_once()

    async def poll_once(self) -> CycleReport:
        report = CycleReport()
        if self._stopping:
            report.aborted = "stopping"
            return report
        async with self._lock:
            try:
                await self._run_cycle(report)
            except (DedupUnavailable, DeadLetterFailed, StoreUnavailableError) as exc:
                report.aborted = f"{type(exc).__name__}: {exc.message}"
                logger.warning("processor.cycle_aborted", received=report.received, **exc.log_fields())
            except GroupMissingError as exc:
                report.aborted = f"{type(exc).__name__}: {exc.message}"
                logger.warning("processor.group_missing", **exc.log_fields())
                await self._recreate_group()
            except Exception as exc:  # noqa: BLE001 – a cycle never takes the worker down
                report.aborted = f"{type(exc).__name__}: {exc}"
                logger.exception("processor.cycle_crashed")
            report.lag = await self._lag.sample(self._reader.stream_key, self._reader.group_name)
        if report.received:
            logger.info("processor.cycle_done", **dataclasses.asdict(report))
        return report

    async def _recreate_group(self) -> None:
        try:
            await self._reader.ensure_group()
        except StoreUnavailableError as exc:
            logger.error("processor.group_recreate_failed", **exc.log_fields())

    async def _run_cycle(self, report: CycleReport) -> None:
        if self._settings.claim_idle_ms > 0:
            claimed = await self._reader.claim_stale(self._settings.claim_idle_ms)
            report.claimed = len(claimed)
        envelopes = await self._reader.poll()
        report.received = len(envelopes)
        for envelope in envelopes:
            if self._stopping:
                break
            await self._process_entry(envelope, report)

    async def _process_entry(self, envelope: EventEnvelope, report: CycleReport) -> None:
        claim = await self._dedup.mark_if_absent(
            envelope.id,
            self._settings.idempotency_ttl_seconds,
            owner=self._reader.member_name,
        )
        if not claim.applied:
            report.duplicates += 1
            self._entries.add(1, {"outcome": "duplicate"})
            logger.info("processor.duplicate_skipped", entry_id=envelope.id)
            await self._acknowledge(envelope, report)
            return

        try:
            await self._handler(envelope)
        except Exception as exc:  # noqa: BLE001 – any handler failure quarantines the entry
            failure = ProcessingFailed(
                "Handler raised",
                stream_key=envelope.stream_key,
                entry_id=envelope.id,
                cause=exc,
            )
            logger.warning("processor.entry_failed", reason=failure.reason, **failure.log_fields())
            await self._dead_letter(envelope, failure)
            report.dead_lettered += 1
            self._entries.add(1, {"outcome": "dead_lettered"})
        else:
            report.processed += 1
            self._entries.add(1, {"outcome": "processed"})
        await self._acknowledge(envelope, report)

    async def _dead_letter(self, envelope: EventEnvelope, failure: ProcessingFailed) -> None:
        try:
            await self._dead_letters.move(envelope, failure.reason)
        except DeadLetterFailed:
            try:
                await self._dedup.release(envelope.id)
            except DedupUnavailable as exc:
                logger.error(
                    "processor.release_failed",
                    entry_id=envelope.id,
                    **exc.log_fields(),
                )
            raise

    async def _acknowledge(self, envelope: EventEnvelope, report: CycleReport) -> None:
        try:
            await self._reader.acknowledge(envelope.id)
        except AcknowledgeFailed as exc:
            report.ack_failures += 1
            logger.error("processor.acknowledge_failed", entry_id=envelope.id, **exc.log_fields())
