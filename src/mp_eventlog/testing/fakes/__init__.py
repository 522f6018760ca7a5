"""Testing fakes – in-memory doubles for the kernel ports."""
from mp_eventlog.kernel.time import FrozenClock
from mp_eventlog.testing.fakes.clock import FakeClock
from mp_eventlog.testing.fakes.kv import InMemoryKeyValueStore
from mp_eventlog.testing.fakes.log import InMemoryOrderedLog
from mp_eventlog.testing.fakes.metrics import FakeMetricsRegistry
from mp_eventlog.testing.fakes.switches import FailureSwitches

__all__ = [
    "FailureSwitches",
    "FakeClock",
    "FakeMetricsRegistry",
    "FrozenClock",
    "InMemoryKeyValueStore",
    "InMemoryOrderedLog",
]
