"""Infrastructure errors — I/O failures against the external log and key/value store."""

from __future__ import annotations

from typing import Any

from mp_eventlog.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class StoreUnavailableError(InfrastructureError):
    """The backing store could not be reached or did not answer in time."""

    default_code = "store_unavailable"
    retryable = True

    def __init__(
        self,
        store: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Store '{store}' is unavailable", **kwargs)
        self.store = store


class GroupMissingError(InfrastructureError):
    """The consumer group (or its stream) no longer exists, e.g. the stream was deleted."""

    default_code = "group_missing"
    retryable = False

    def __init__(self, stream_key: str, group: str, **kwargs: Any) -> None:
        kwargs.setdefault("detail", {"stream_key": stream_key, "group": group})
        super().__init__(f"No group '{group}' on '{stream_key}'", **kwargs)
        self.stream_key = stream_key
        self.group = group


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


class UnknownEventTypeError(SerializationError):
    """No payload class is registered for an envelope's ``type``."""

    default_code = "unknown_event_type"

    def __init__(self, event_type: str, **kwargs: Any) -> None:
        super().__init__(f"Unknown event type '{event_type}'", payload_type=event_type, **kwargs)


__all__ = [
    "GroupMissingError",
    "InfrastructureError",
    "SerializationError",
    "StoreUnavailableError",
    "UnknownEventTypeError",
]
