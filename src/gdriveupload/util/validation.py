"""Parsing helpers for option values."""

from __future__ import annotations

import re

_SPEED_RE = re.compile(r"^([0-9]+)([kKmMgG])$")
_SPEED_UNITS: dict[str, int] = {"k": 1024, "m": 1024**2, "g": 1024**3}

_EMAIL_RE = re.compile(
    r"^[A-Za-z][A-Za-z0-9._%+-]*@[A-Za-z0-9]+(?:[.-][A-Za-z0-9]+)*\.[A-Za-z]{2,}$"
)


def parse_speed(value: str) -> int:
    """
    Parse a speed limit like '512K', '1M' or '2G' into bytes per second.

    Raises:
        ValueError: if the format is not <digits><K|M|G>.
    """
    match = _SPEED_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError("Wrong speed limit format, supported formats: 1K, 1M and 1G")
    amount = int(match.group(1))
    if amount <= 0:
        raise ValueError("Speed limit must be positive")
    return amount * _SPEED_UNITS[match.group(2).lower()]


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))
