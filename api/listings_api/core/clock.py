"""Injectable time source and the deadline visibility rule.

Read paths never call ``datetime.now()`` themselves; routes resolve a clock
through ``get_clock`` and hand the resulting instant down to the repository.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

EXPIRING_SOON_WINDOW = timedelta(days=7)


class Clock(Protocol):
    def now_utc(self) -> datetime: ...


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to one instant; ``advance`` moves it forward."""

    def __init__(self, fixed_at: datetime) -> None:
        if fixed_at.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._fixed_at = fixed_at

    def now_utc(self) -> datetime:
        return self._fixed_at

    def advance(self, delta: timedelta) -> None:
        self._fixed_at = self._fixed_at + delta


_SYSTEM_CLOCK = SystemClock()


def get_clock() -> Clock:
    return _SYSTEM_CLOCK


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_visible(deadline: datetime, now: datetime) -> bool:
    # A deadline equal to now is still open.
    return ensure_utc(deadline) >= now


def is_expired(deadline: datetime, now: datetime) -> bool:
    return not is_visible(deadline, now)


def expiring_soon_cutoff(now: datetime) -> datetime:
    return now + EXPIRING_SOON_WINDOW


def is_expiring_soon(deadline: datetime, now: datetime) -> bool:
    return now <= ensure_utc(deadline) <= expiring_soon_cutoff(now)
