"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Values for every name, or one error listing all that are missing or blank."""
    values = {name: _optional(name) for name in names}
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise MissingConfigurationError(missing)
    return {name: value for name, value in values.items() if value is not None}


def require_env_var(name: str) -> str:
    return require_env_vars([name])[name]


def _parsed[T](name: str, default: T, parse: Callable[[str], T], kind: str) -> T:
    raw = _optional(name)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError as exc:
        msg = f"Invalid {kind} for {name}: {raw!r}"
        raise ConfigurationError(msg) from exc


def env_float(name: str, default: float) -> float:
    """Float override from the environment, ``default`` when unset."""
    return _parsed(name, default, float, "number")


def env_int(name: str, default: int) -> int:
    return _parsed(name, default, int, "integer")


def _flag(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(raw)


def env_flag(name: str, default: bool = False) -> bool:  # noqa: FBT001, FBT002
    return _parsed(name, default, _flag, "flag")
