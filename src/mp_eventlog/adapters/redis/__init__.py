"""Redis adapter – Streams-backed OrderedLog and key/value store."""
from mp_eventlog.adapters.redis.client import RedisClient
from mp_eventlog.adapters.redis.factory import (
    build_product_service,
    build_store_policy,
    build_stream_processor,
)
from mp_eventlog.adapters.redis.kv import RedisKeyValueStore
from mp_eventlog.adapters.redis.streams import RedisStreamLog

__all__ = [
    "RedisClient",
    "RedisKeyValueStore",
    "RedisStreamLog",
    "build_product_service",
    "build_store_policy",
    "build_stream_processor",
]
