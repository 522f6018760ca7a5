"""Kernel error hierarchy — public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── ValidationError
    │   └── NotFoundError
    ├── InfrastructureError      (infrastructure.py)
    │   ├── StoreUnavailableError
    │   ├── GroupMissingError
    │   └── SerializationError
    │       └── UnknownEventTypeError
    ├── EventLogError            (eventlog.py)
    │   ├── AppendFailed
    │   ├── DedupUnavailable
    │   ├── ProcessingFailed
    │   ├── AcknowledgeFailed
    │   ├── DeadLetterFailed
    │   └── SnapshotFailed
    └── ApplicationError         (application.py)
        ├── TimeoutError
        └── ConfigError
            ├── MissingRequiredSettingError
            └── InvalidSettingValueError
"""

from mp_eventlog.kernel.errors.application import (
    ApplicationError,
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
    TimeoutError,
)
from mp_eventlog.kernel.errors.base import BaseError
from mp_eventlog.kernel.errors.domain import DomainError, NotFoundError, ValidationError
from mp_eventlog.kernel.errors.eventlog import (
    AcknowledgeFailed,
    AppendFailed,
    DeadLetterFailed,
    DedupUnavailable,
    EventLogError,
    ProcessingFailed,
    SnapshotFailed,
)
from mp_eventlog.kernel.errors.infrastructure import (
    GroupMissingError,
    InfrastructureError,
    SerializationError,
    StoreUnavailableError,
    UnknownEventTypeError,
)

__all__ = [
    "AcknowledgeFailed",
    "AppendFailed",
    "ApplicationError",
    "BaseError",
    "ConfigError",
    "DeadLetterFailed",
    "DedupUnavailable",
    "DomainError",
    "EventLogError",
    "GroupMissingError",
    "InfrastructureError",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "NotFoundError",
    "ProcessingFailed",
    "SerializationError",
    "SnapshotFailed",
    "StoreUnavailableError",
    "TimeoutError",
    "UnknownEventTypeError",
    "ValidationError",
]
