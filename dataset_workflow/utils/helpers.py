"""Shared helper functions used by the transport and the tracker."""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header value into seconds.

    Accepts both forms allowed by RFC 9110: delta-seconds (``"5"``) and an
    HTTP-date.  Dates in the past yield ``0.0``.

    Args:
        value: Raw header value, or ``None``.
        now: Reference time for HTTP-date values (defaults to current UTC).

    Returns:
        Seconds to wait, or ``None`` if the value is absent or unparseable.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        return max(seconds, 0.0)

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    reference = now or datetime.now(UTC)
    return max((when - reference).total_seconds(), 0.0)


def error_detail(payload: Any, fallback: str = "") -> str:
    """Extract a human-readable error message from a server error body."""
    if isinstance(payload, dict):
        for key in ("message", "error", "detail", "code"):
            value = payload.get(key)
            if value:
                return str(value)
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return fallback
