"""Misc cross-cutting helpers."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, List
from uuid import uuid4

_TRUTHY = {"1", "true", "yes"}


def generate_uuid() -> str:
    return str(uuid4())


def parse_flag(value: Any) -> bool:
    """Interpret plugin-style ``Yes``/``No`` choices as well as plain booleans."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def get_env_bool(name: str, default: bool = False) -> bool:
    return parse_flag(os.getenv(name, str(int(default))))


def parse_allow_list(raw: str | None) -> List[str]:
    """Split a comma-separated allow-list, dropping blanks.

    Examples:
        >>> parse_allow_list("email, name,,")
        ['email', 'name']
        >>> parse_allow_list("")
        []
    """
    if not raw:
        return []
    return [entry.strip() for entry in raw.split(",") if entry.strip()]


def iso_date_string(d: datetime) -> str:
    """Format *d* as UTC ISO-8601 with millisecond precision and a ``Z`` suffix.

    Naive datetimes are treated as UTC.

    Examples:
        >>> iso_date_string(from_millis(1648458820359))
        '2022-03-28T09:13:40.359Z'
    """
    if d.tzinfo is None:
        d = d.replace(tzinfo=timezone.utc)
    d = d.astimezone(timezone.utc)
    return f"{d.strftime('%Y-%m-%dT%H:%M:%S')}.{d.microsecond // 1000:03d}Z"


def from_millis(ms: int) -> datetime:
    """Return an aware UTC datetime for a JavaScript-style millisecond epoch."""
    seconds, millis = divmod(ms, 1000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=millis * 1000)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as returned by Braze (``Z`` suffix allowed)."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
