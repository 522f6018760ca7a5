"""Config settings – loaders from the process environment and ``.env`` files."""
from __future__ import annotations

import abc
import dataclasses
import os
import typing
from typing import Any, Callable, Mapping, TypeVar

from dotenv import dotenv_values

from mp_eventlog.config.settings.base import Settings
from mp_eventlog.kernel.errors import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

T = TypeVar("T", bound=Settings)

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"is not a boolean (expected one of {sorted(_TRUE | _FALSE - {''})})")


_PARSERS: dict[Any, Callable[[str], Any]] = {bool: _parse_bool, int: int, float: float, str: str}


def _required(field: dataclasses.Field[Any]) -> bool:
    return field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING


class SettingsLoader(abc.ABC):
    """Port: build a :class:`Settings` subclass from an external source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    """Reads ``<PREFIX>_<FIELD>`` from *environ* (``os.environ`` when omitted).

    Unset optional fields keep their dataclass default. Values are parsed by
    the field's annotation: ``bool``, ``int``, ``float`` or ``str``.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def load(self, settings_class: type[T]) -> T:
        environ = os.environ if self._environ is None else self._environ
        hints = typing.get_type_hints(settings_class)
        values: dict[str, Any] = {}

        for field in dataclasses.fields(settings_class):
            key = settings_class.env_key(field.name)
            if key not in environ:
                if _required(field):
                    raise MissingRequiredSettingError(key)
                continue
            raw = environ[key]
            parse = _PARSERS.get(hints.get(field.name), str)
            try:
                values[field.name] = parse(raw)
            except ValueError as exc:
                raise InvalidSettingValueError(key, raw, str(exc)) from exc

        try:
            return settings_class(**values)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Cannot build {settings_class.__name__}: {exc}", cause=exc) from exc


class DotenvSettingsLoader(SettingsLoader):
    """Layers a ``.env`` file under (or, with ``override``, over) the process environment.

    The file is parsed with :func:`dotenv.dotenv_values`; ``os.environ`` is
    left untouched.
    """

    def __init__(self, env_file: str = ".env", override: bool = False) -> None:
        self._env_file = env_file
        self._override = override

    def load(self, settings_class: type[T]) -> T:
        from_file = {k: v for k, v in dotenv_values(self._env_file).items() if v is not None}
        if self._override:
            merged = {**os.environ, **from_file}
        else:
            merged = {**from_file, **os.environ}
        return EnvSettingsLoader(environ=merged).load(settings_class)


__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SettingsLoader"]
