"""Typed readers for gateway environment variables.

Every reader takes an optional ``env`` mapping (tests pass a plain dict)
and ``aliases`` checked in order after the primary name. Values that do
not parse fall back to the default.
"""

from __future__ import annotations

import os
from typing import Callable, Iterable, Mapping, Optional, TypeVar

EnvMapping = Mapping[str, str]
T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _lookup(name: str, env: EnvMapping | None, aliases: Iterable[str] | None) -> Optional[str]:
    mapping = os.environ if env is None else env
    for key in (name, *(aliases or ())):
        if key in mapping:
            return mapping[key]
    return None


def _read(
    name: str,
    default: T,
    parse: Callable[[str], T],
    env: EnvMapping | None,
    aliases: Iterable[str] | None,
) -> T:
    raw = _lookup(name, env, aliases)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError:
        return default


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def get_str(name: str, default: str, *, env: EnvMapping | None = None, aliases: Iterable[str] | None = None) -> str:
    return _read(name, default, str, env, aliases)


def get_optional_str(
    name: str, *, env: EnvMapping | None = None, aliases: Iterable[str] | None = None
) -> Optional[str]:
    """Like :func:`get_str` but blank values read as unset."""
    raw = _lookup(name, env, aliases)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def get_bool(name: str, default: bool, *, env: EnvMapping | None = None, aliases: Iterable[str] | None = None) -> bool:
    return _read(name, default, _parse_bool, env, aliases)


def get_int(name: str, default: int, *, env: EnvMapping | None = None, aliases: Iterable[str] | None = None) -> int:
    return _read(name, default, lambda raw: int(raw.strip()), env, aliases)


def get_float(
    name: str, default: float, *, env: EnvMapping | None = None, aliases: Iterable[str] | None = None
) -> float:
    return _read(name, default, lambda raw: float(raw.strip()), env, aliases)


__all__ = [
    "EnvMapping",
    "get_bool",
    "get_float",
    "get_int",
    "get_optional_str",
    "get_str",
]
