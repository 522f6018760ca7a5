"""Application-layer errors — cross-cutting concerns at use-case level."""

from __future__ import annotations

from typing import Any

from mp_eventlog.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    default_code = "application_error"


class TimeoutError(ApplicationError):  # noqa: A001
    """A single store command exceeded its command timeout (not the poll block)."""

    default_code = "timeout"
    retryable = True

    def __init__(self, timeout_seconds: float, operation: str = "Operation", **kwargs: Any) -> None:
        detail = {"timeout_seconds": timeout_seconds, **(kwargs.pop("detail", None) or {})}
        super().__init__(f"{operation} timed out after {timeout_seconds}s", detail=detail, **kwargs)
        self.timeout_seconds = timeout_seconds


class ConfigError(ApplicationError):
    """Settings could not be loaded or failed validation."""

    default_code = "config_error"

    @property
    def setting_name(self) -> str | None:
        return self.detail.get("setting")


class MissingRequiredSettingError(ConfigError):
    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(f"Required setting '{setting_name}' is missing", detail={"setting": setting_name})


class InvalidSettingValueError(ConfigError):
    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"Setting '{setting_name}' = {value!r} {reason}",
            detail={"setting": setting_name, "value": repr(value), "reason": reason},
        )
        self.value = value
        self.reason = reason


__all__ = [
    "ApplicationError",
    "ConfigError",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "TimeoutError",
]
