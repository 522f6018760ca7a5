"""Domain errors — rejected aggregates and missing log records."""

from __future__ import annotations

from typing import Any, Mapping

from mp_eventlog.kernel.errors.base import BaseError


class DomainError(BaseError):
    default_code = "domain_error"


class ValidationError(DomainError):
    """An aggregate broke one or more field rules; nothing was appended.

    ``violations`` maps each failing field to its message, in check order.
    """

    default_code = "validation_error"

    def __init__(self, entity: str, violations: Mapping[str, str], **kwargs: Any) -> None:
        fields = list(violations)
        kwargs.setdefault("detail", {"entity": entity, "fields": fields})
        super().__init__(f"Invalid {entity}: {', '.join(fields)}", **kwargs)
        self.entity = entity
        self.violations: dict[str, str] = dict(violations)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "violations": self.violations}


class NotFoundError(DomainError):
    default_code = "not_found"

    def __init__(self, kind: str, key: str, **kwargs: Any) -> None:
        kwargs.setdefault("detail", {"kind": kind, "key": key})
        super().__init__(f"{kind} '{key}' not found", **kwargs)
        self.kind = kind
        self.key = key


__all__ = ["DomainError", "NotFoundError", "ValidationError"]
