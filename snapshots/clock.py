"""
Snapshots — Clock
===================
Source of Snapshot.create_time.

SnapshotManager stamps every record through an injected clock, so the
"latest snapshot" of a source is decided by the clock it was built with.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now_utc(self) -> datetime:
        """Aware UTC datetime used as a record's create_time."""
        ...  # pragma: no cover


class SystemClock:
    """Wall-clock time; the manager's default."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Pinned capture time for deterministic snapshot history.

    Records created between two advance() calls share a create_time
    and are ordered by id:
        clock = FixedClock(datetime(2026, 1, 1, tzinfo=timezone.utc))
        first = manager.create(product)
        clock.advance(60)
        second = manager.create(product)   # latest
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._current = fixed_dt

    def now_utc(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=seconds)
