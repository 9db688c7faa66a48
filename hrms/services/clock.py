from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol, runtime_checkable

_SECONDS_PER_HOUR = 3600


@runtime_checkable
class Clock(Protocol):
    """Source of the current time for every time-dependent operation."""

    def now(self) -> datetime:
        """Return the current timezone-aware UTC time."""
        ...


class SystemClock:
    """Wall clock used in production."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """Clock that only moves when told to. Used for deterministic tests."""

    def __init__(self, current: datetime) -> None:
        self._current = ensure_utc(current)

    def now(self) -> datetime:
        return self._current

    def set(self, value: datetime) -> None:
        self._current = ensure_utc(value)

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """Move forward by ``delta`` or by ``timedelta(**kwargs)`` and return the new time."""
        self._current += delta if delta is not None else timedelta(**kwargs)
        return self._current


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive values read back from stores without timezone support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def hours_between(start: datetime, end: datetime) -> float:
    """Fractional hours elapsed from ``start`` to ``end``."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / _SECONDS_PER_HOUR


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency for the current clock."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Override the clock (for testing)."""
    global _clock
    _clock = clock
