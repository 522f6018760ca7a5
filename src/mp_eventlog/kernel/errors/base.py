"""Root error class for the mp-eventlog error hierarchy."""

from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Root of the error hierarchy.

    Every error carries a machine-readable ``code``, free-form ``detail``
    (stream key, entry id, setting name...) and an optional ``cause``.
    ``retryable`` says whether the same operation may succeed if tried again.
    """

    default_code: str = "base_error"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = dict(detail or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}: {self.message})"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }
        if self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload

    def log_fields(self) -> dict[str, Any]:
        """Flat key/values for a structlog event, e.g. ``logger.warning("x", **exc.log_fields())``."""
        fields: dict[str, Any] = {f"error_{k}": v for k, v in self.detail.items()}
        fields.update(error_code=self.code, error=self.message, retryable=self.retryable)
        if self.cause is not None:
            fields["error_cause"] = repr(self.cause)
        return fields


__all__ = ["BaseError"]
