"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import Any, ClassVar
from urllib.parse import urlsplit, urlunsplit


def _mask_url_password(url: str) -> str:
    parts = urlsplit(url)
    if not parts.password:
        return url
    return urlunsplit(parts._replace(netloc=parts.netloc.replace(f":{parts.password}@", ":***@", 1)))


@dataclasses.dataclass
class Settings:
    """Dataclass settings read from ``<_prefix>_<FIELD>`` variables.

    A field without a default is required. Subclasses override
    :meth:`_validate` for range and cross-field checks; it runs on every
    construction, whichever loader built the instance.
    """

    _prefix: ClassVar[str] = ""
    _secret_fields: ClassVar[frozenset[str]] = frozenset()

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        pass

    @classmethod
    def env_key(cls, field_name: str) -> str:
        return f"{cls._prefix}_{field_name}".upper().lstrip("_")

    def redacted(self) -> dict[str, Any]:
        """Field values safe to log: secret fields and URL passwords masked."""
        values: dict[str, Any] = {}
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if field.name in self._secret_fields:
                value = "***"
            elif isinstance(value, str) and "://" in value:
                value = _mask_url_password(value)
            values[field.name] = value
        return values


__all__ = ["Settings"]
