"""Configuration helpers."""

from .settings_utils import (
    env_bool,
    env_list,
    env_str,
    parse_bool,
    split_list,
)

__all__ = [
    "env_bool",
    "env_list",
    "env_str",
    "parse_bool",
    "split_list",
]
