"""Testing support – in-memory stores with failure switches, fake metrics and clock.

Typical wiring in a test::

    clock = FakeClock()
    log = InMemoryOrderedLog(clock)
    kv = InMemoryKeyValueStore(clock)
"""

from mp_eventlog.testing.fakes import (
    FailureSwitches,
    FakeClock,
    FakeMetricsRegistry,
    FrozenClock,
    InMemoryKeyValueStore,
    InMemoryOrderedLog,
)

__all__ = [
    "FailureSwitches",
    "FakeClock",
    "FakeMetricsRegistry",
    "FrozenClock",
    "InMemoryKeyValueStore",
    "InMemoryOrderedLog",
]
