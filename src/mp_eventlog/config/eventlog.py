"""Config – EventLogSettings for the stream consumer and the product event store."""
from __future__ import annotations

import dataclasses

from mp_eventlog.config.settings import Settings
from mp_eventlog.kernel.errors import InvalidSettingValueError
from mp_eventlog.resilience.retry import RETRY_BACKENDS


@dataclasses.dataclass
class EventLogSettings(Settings):
    """All tunables of the event-log core, read from ``EVENTLOG_*`` variables.

    ``idempotency_ttl_seconds`` is the dedup window: it must exceed the longest
    plausible redelivery delay, otherwise a late redelivery is applied twice.
    """

    _prefix = "EVENTLOG"

    redis_url: str = "redis://localhost:6379/0"

    # order-stream consumer
    stream_key: str = "orders"
    group_name: str = "order-processors"
    member_name: str = "consumer-1"
    dead_letter_suffix: str = ":dlq"
    processed_key_prefix: str = "orders:processed:"
    idempotency_ttl_seconds: int = 3600
    poll_interval_seconds: float = 5.0
    block_timeout_ms: int = 2000
    batch_size: int = 10
    claim_idle_ms: int = 0

    # store calls
    command_timeout_seconds: float = 5.0
    retry_max_attempts: int = 3
    retry_base_delay: float = 0.1
    retry_backend: str = "native"

    # product aggregate
    product_stream_key: str = "product:events:stream"
    snapshot_threshold: int = 50
    product_idempotency_ttl_seconds: int = 86400

    log_level: str = "INFO"

    def _validate(self) -> None:
        positive = {
            "idempotency_ttl_seconds": self.idempotency_ttl_seconds,
            "poll_interval_seconds": self.poll_interval_seconds,
            "batch_size": self.batch_size,
            "command_timeout_seconds": self.command_timeout_seconds,
            "retry_max_attempts": self.retry_max_attempts,
            "snapshot_threshold": self.snapshot_threshold,
            "product_idempotency_ttl_seconds": self.product_idempotency_ttl_seconds,
        }
        for name, value in positive.items():
            if value <= 0:
                raise InvalidSettingValueError(name, value, "must be > 0")
        if self.block_timeout_ms < 0:
            raise InvalidSettingValueError("block_timeout_ms", self.block_timeout_ms, "must be >= 0")
        if self.claim_idle_ms < 0:
            raise InvalidSettingValueError("claim_idle_ms", self.claim_idle_ms, "must be >= 0")
        if self.retry_backend not in RETRY_BACKENDS:
            raise InvalidSettingValueError(
                "retry_backend", self.retry_backend, f"expected one of {RETRY_BACKENDS}"
            )
        if not self.dead_letter_suffix:
            raise InvalidSettingValueError("dead_letter_suffix", self.dead_letter_suffix, "must not be empty")

    @property
    def dead_letter_stream_key(self) -> str:
        return f"{self.stream_key}{self.dead_letter_suffix}"


__all__ = ["EventLogSettings"]
