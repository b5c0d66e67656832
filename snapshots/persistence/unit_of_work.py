"""
Snapshots Persistence — Unit of Work
======================================
Collects objects scheduled for insert/delete until flush().

Rules:
- persist() schedules, it does NOT write
- flush() writes everything scheduled inside one transaction.atomic()
  block, so it joins the caller's ambient transaction if one is open
- Objects already saved elsewhere are skipped (never double-inserted)
- No retry, no locking — ORM errors propagate to the caller
- clear() discards the schedule; the default manager's unit of work is
  cleared at the end of every request
"""

from __future__ import annotations

import logging

from django.db import models, transaction

logger = logging.getLogger("snapshots.persistence")


def _contains(objects: list, obj) -> bool:
    return any(existing is obj for existing in objects)


class UnitOfWork:
    """Explicit persistence handle passed to capture operations."""

    def __init__(self, using: str | None = None):
        self._using = using
        self._inserts: list[models.Model] = []
        self._removals: list[models.Model] = []

    def persist(self, obj: models.Model) -> None:
        """Schedule obj for insertion (idempotent)."""
        # Objects saved through another handle drop out of the schedule.
        self._inserts = [o for o in self._inserts if o._state.adding]
        self._removals = [o for o in self._removals if o is not obj]
        if not _contains(self._inserts, obj):
            self._inserts.append(obj)

    def remove(self, obj: models.Model) -> None:
        """Schedule obj for deletion, or unschedule a pending insert."""
        if _contains(self._inserts, obj):
            self._inserts = [o for o in self._inserts if o is not obj]
            if obj._state.adding:
                return
        if not _contains(self._removals, obj):
            self._removals.append(obj)

    def is_scheduled(self, obj: models.Model) -> bool:
        return _contains(self._inserts, obj) and obj._state.adding

    @property
    def pending(self) -> int:
        inserts = sum(1 for o in self._inserts if o._state.adding)
        return inserts + len(self._removals)

    def clear(self) -> int:
        """Drop everything scheduled without writing. Returns the count dropped."""
        dropped = self.pending
        self._inserts = []
        self._removals = []
        return dropped

    def flush(self) -> None:
        inserts = [o for o in self._inserts if o._state.adding]
        removals = [o for o in self._removals if o.pk is not None]
        self._inserts = []
        self._removals = []

        if not inserts and not removals:
            return

        with transaction.atomic(using=self._using):
            for obj in inserts:
                obj.save(using=self._using)
            for obj in removals:
                obj.delete(using=self._using)

        logger.info(
            f"Unit of work flushed: {len(inserts)} inserted, "
            f"{len(removals)} deleted"
        )
