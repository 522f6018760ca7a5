"""Redis adapter – wiring of the consumer and the product store from settings."""
from __future__ import annotations

from mp_eventlog.adapters.redis.client import RedisClient
from mp_eventlog.adapters.redis.kv import RedisKeyValueStore
from mp_eventlog.adapters.redis.streams import RedisStreamLog
from mp_eventlog.application.eventlog import (
    ConsumerGroupReader,
    DeadLetterRouter,
    DedupGuard,
    EventHandler,
    LagMonitor,
    StreamProcessor,
)
from mp_eventlog.application.products import ProductEventSourcingService
from mp_eventlog.application.scheduler import APSchedulerAdapter, Scheduler
from mp_eventlog.config.eventlog import EventLogSettings
from mp_eventlog.kernel.time import Clock
from mp_eventlog.observability.logging import get_logger
from mp_eventlog.observability.metrics import Metrics
from mp_eventlog.resilience import CircuitBreaker, StoreCallPolicy, build_retry_policy

__all__ = ["build_product_service", "build_store_policy", "build_stream_processor"]

logger = get_logger(__name__)


def build_store_policy(settings: EventLogSettings, *, breaker: CircuitBreaker | None = None) -> StoreCallPolicy:
    retry = build_retry_policy(
        settings.retry_backend,
        max_attempts=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay,
    )
    return StoreCallPolicy(retry=retry, breaker=breaker)


def build_stream_processor(
    settings: EventLogSettings,
    handler: EventHandler,
    *,
    client: RedisClient | None = None,
    scheduler: Scheduler | None = None,
    metrics: Metrics | None = None,
    policy: StoreCallPolicy | None = None,
    clock: Clock | None = None,
) -> StreamProcessor:
    """Assemble a :class:`StreamProcessor` over Redis for ``settings.stream_key``."""
    client = client or RedisClient(
        settings.redis_url, command_timeout_seconds=settings.command_timeout_seconds
    )
    policy = policy or build_store_policy(
        settings, breaker=CircuitBreaker(f"redis:{settings.stream_key}")
    )
    log = RedisStreamLog(client)
    kv = RedisKeyValueStore(client)
    reader = ConsumerGroupReader(
        log,
        stream_key=settings.stream_key,
        group_name=settings.group_name,
        member_name=settings.member_name,
        batch_size=settings.batch_size,
        block_ms=settings.block_timeout_ms,
        policy=policy,
    )
    dedup = DedupGuard(
        kv,
        prefix=settings.processed_key_prefix,
        default_ttl_seconds=settings.idempotency_ttl_seconds,
        policy=policy,
        clock=clock,
    )
    dead_letters = DeadLetterRouter(log, suffix=settings.dead_letter_suffix, policy=policy, clock=clock)
    lag = LagMonitor(log, metrics, policy=policy)
    logger.info("processor.configured", **settings.redacted())
    return StreamProcessor(
        reader,
        dedup,
        dead_letters,
        lag,
        handler,
        scheduler or APSchedulerAdapter(),
        settings,
        metrics=metrics,
    )


def build_product_service(
    settings: EventLogSettings,
    *,
    client: RedisClient | None = None,
    metrics: Metrics | None = None,
    policy: StoreCallPolicy | None = None,
    clock: Clock | None = None,
) -> ProductEventSourcingService:
    client = client or RedisClient(
        settings.redis_url, command_timeout_seconds=settings.command_timeout_seconds
    )
    return ProductEventSourcingService.create(
        RedisStreamLog(client),
        RedisKeyValueStore(client),
        settings,
        metrics=metrics,
        policy=policy or build_store_policy(settings),
        clock=clock,
    )
