"""Clock helpers.

Every component that reads "now" takes an optional clock callable so tests can
pin time. Clocks must return timezone-aware datetimes.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import TypeAlias

__all__ = ["Clock", "ensure_aware", "utc_now"]

Clock: TypeAlias = Callable[[], datetime]
"""Zero-argument callable returning the current aware datetime."""


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC.

    Args:
        value: A naive or aware datetime.

    Returns:
        An aware datetime.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
