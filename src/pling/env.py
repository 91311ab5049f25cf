"""
Helpers for reading channel configuration from the environment.

Discovery is all-or-nothing per channel and never raises: a missing or
malformed required variable just means the channel is not configured.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import AnyUrl, TypeAdapter, ValidationError

_URL = TypeAdapter(AnyUrl)


def environ(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def parse_url(value: str | None) -> AnyUrl | None:
    """Validate ``value`` as an absolute URL, None when absent or invalid."""
    if value is None:
        return None
    try:
        return _URL.validate_python(value)
    except ValidationError:
        return None


def flag(env: Mapping[str, str], key: str) -> bool:
    """Presence-only flag: set to anything (even empty) means True."""
    return key in env


def require(env: Mapping[str, str], *keys: str) -> list[str] | None:
    """Return the values of ``keys`` in order, or None if any is missing."""
    values = []
    for key in keys:
        value = env.get(key)
        if value is None:
            return None
        values.append(value)
    return values
