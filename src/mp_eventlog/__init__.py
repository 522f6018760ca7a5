"""
mp_eventlog – Event-log processing core.

Import path convention::

    from mp_eventlog.application.eventlog import StreamProcessor, EventLogStore
    from mp_eventlog.application.products import ProductEventSourcingService
    from mp_eventlog.adapters.redis import RedisStreamLog, RedisKeyValueStore
    from mp_eventlog.kernel.errors import DedupUnavailable
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
