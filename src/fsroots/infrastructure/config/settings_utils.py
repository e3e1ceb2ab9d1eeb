"""Environment parsing helpers for fsroots settings."""

from __future__ import annotations

import os
import re
from typing import Sequence


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: object, *, default: bool = False) -> bool:
    """Parse a loose boolean value."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    raw = str(value).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def split_list(value: str, separators: str = ",") -> list[str]:
    """Split a delimited string, dropping blanks and surrounding whitespace."""
    pattern = "[" + re.escape(separators) + "]"
    return [item.strip() for item in re.split(pattern, str(value)) if item.strip()]


def env_str(name: str, default: str = "") -> str:
    value = os.environ.get(name)
    if value is None:
        return default
    return str(value).strip()


def env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    return parse_bool(value, default=default)


def env_list(
    name: str,
    default: Sequence[str] | None = None,
    *,
    separators: str = ",",
) -> list[str]:
    """Parse delimited env list values.

    Directory lists may also use ``os.pathsep`` by passing it in `separators`.
    """
    value = os.environ.get(name)
    if value is None:
        return list(default or [])
    parsed = split_list(value, separators)
    return parsed or list(default or [])
