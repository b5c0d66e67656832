"""
Snapshots Persistence — Repository
====================================
Query and write operations over Snapshot records.

Ordering rule for every history query:
    create_time DESC, id DESC

Reads hit the database directly — no caching layer.
"""

from __future__ import annotations

import logging
from datetime import datetime

from snapshots.models import Snapshot
from snapshots.persistence.unit_of_work import UnitOfWork

logger = logging.getLogger("snapshots.persistence")

HISTORY_ORDER = ("-create_time", "-id")


class SnapshotRepository:
    def __init__(self, unit_of_work: UnitOfWork | None = None):
        self._unit_of_work = unit_of_work or UnitOfWork()

    @property
    def unit_of_work(self) -> UnitOfWork:
        return self._unit_of_work

    # ── queries ───────────────────────────────────────────────

    def find_by_source(
        self,
        source_class: str,
        source_id: str,
        limit: int | None = None,
    ) -> list[Snapshot]:
        """All snapshots of one source, newest first, optionally capped."""
        query = Snapshot.objects.filter(
            source_class=source_class,
            source_id=source_id,
        ).order_by(*HISTORY_ORDER)
        if limit is not None:
            query = query[:limit]
        return list(query)

    def find_latest_by_source(
        self,
        source_class: str,
        source_id: str,
    ) -> Snapshot | None:
        return (
            Snapshot.objects.filter(
                source_class=source_class,
                source_id=source_id,
            )
            .order_by(*HISTORY_ORDER)
            .first()
        )

    def find_by_source_class(
        self,
        source_class: str,
        limit: int | None = None,
    ) -> list[Snapshot]:
        query = Snapshot.objects.filter(
            source_class=source_class,
        ).order_by(*HISTORY_ORDER)
        if limit is not None:
            query = query[:limit]
        return list(query)

    # ── writes ────────────────────────────────────────────────

    def delete_old_snapshots(self, before: datetime) -> int:
        """
        Bulk-delete snapshots with create_time < before.

        Single operation, no chunking. Returns the number of
        snapshot rows deleted (rows of other tables touched by
        on_delete handling are not counted).
        """
        _, per_model = Snapshot.objects.filter(create_time__lt=before).delete()
        deleted = per_model.get(Snapshot._meta.label, 0)
        logger.info(f"Purged {deleted} snapshot(s) created before {before.isoformat()}")
        return deleted

    def save(self, snapshot: Snapshot, flush: bool = True) -> None:
        self._unit_of_work.persist(snapshot)
        if flush:
            self._unit_of_work.flush()

    def remove(self, snapshot: Snapshot, flush: bool = True) -> None:
        self._unit_of_work.remove(snapshot)
        if flush:
            self._unit_of_work.flush()
