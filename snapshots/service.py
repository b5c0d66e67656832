"""
Snapshots — Snapshot Manager
==============================
Orchestrates capture (serialize → checksum → register) and hydration.

create() pipeline:
1. Dispatch PreSnapshotEvent (listeners may replace the context)
2. Resolve source identity (source_class, source_id)
3. Merge default serializer context with the call context
4. Normalize the entity — a non-mapping result is a hard failure
5. Build the Snapshot record (checksum follows data)
6. Register it with the unit of work (NOT flushed)
7. Dispatch PostSnapshotEvent
8. Return the record

Configuration is read once, at construction.
This module adds no retry and suppresses no upstream error.
"""

from __future__ import annotations

import datetime
import decimal
import json
import logging
import threading
import uuid
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils.functional import Promise

from snapshots.clock import Clock, SystemClock
from snapshots.conf import SnapshotSettings
from snapshots.errors import SnapshotSerializationFailure
from snapshots.events import EventDispatcher, PostSnapshotEvent, PreSnapshotEvent
from snapshots.metadata import IdentityMetadata, ModelMetadata, encode_source_id
from snapshots.models import Snapshot
from snapshots.persistence import SnapshotRepository, UnitOfWork
from snapshots.serializer import (
    CIRCULAR_REFERENCE_HANDLER,
    ENABLE_MAX_DEPTH,
    IGNORED_ATTRIBUTES,
    MAX_DEPTH,
    OBJECT_TO_POPULATE,
    ModelNormalizer,
    Normalizer,
)

logger = logging.getLogger("snapshots.manager")

# Types DjangoJSONEncoder knows how to render.
_ENCODABLE_TYPES = (
    datetime.date,
    datetime.time,
    datetime.timedelta,
    decimal.Decimal,
    uuid.UUID,
    Promise,
)


class _ContextEncoder(DjangoJSONEncoder):
    """Renders a serializer context JSON-safe for record metadata."""

    def default(self, o):
        if isinstance(o, models.Model):
            return f"{o._meta.label}#{o.pk}"
        if isinstance(o, (set, frozenset)):
            return sorted(o, key=str)
        if callable(o):
            module = getattr(o, "__module__", None) or ""
            name = getattr(o, "__qualname__", type(o).__qualname__)
            return f"{module}.{name}" if module else name
        if isinstance(o, _ENCODABLE_TYPES):
            return super().default(o)
        return repr(o)


def describe_context(context: dict[str, Any]) -> dict[str, Any]:
    return json.loads(json.dumps(context, cls=_ContextEncoder, sort_keys=True))


class SnapshotManager:
    def __init__(
        self,
        unit_of_work: UnitOfWork,
        normalizer: Normalizer,
        dispatcher: EventDispatcher,
        repository: SnapshotRepository,
        metadata: IdentityMetadata | None = None,
        settings: SnapshotSettings | None = None,
        clock: Clock | None = None,
    ):
        self._unit_of_work = unit_of_work
        self._normalizer = normalizer
        self._dispatcher = dispatcher
        self._repository = repository
        self._metadata = metadata or ModelMetadata()
        self._clock = clock or SystemClock()

        settings = settings or SnapshotSettings.from_django()
        self._auto_snapshot_enabled = settings.auto_snapshot_enabled
        self._default_max_depth = settings.default_max_depth
        self._global_exclude_properties = list(settings.exclude_properties)
        self._default_context = self._build_default_context()

    @classmethod
    def from_settings(
        cls,
        settings: SnapshotSettings | None = None,
        clock: Clock | None = None,
    ) -> "SnapshotManager":
        """Default wiring: Django-backed store, model normalizer, empty bus."""
        unit_of_work = UnitOfWork()
        return cls(
            unit_of_work=unit_of_work,
            normalizer=ModelNormalizer(),
            dispatcher=EventDispatcher(),
            repository=SnapshotRepository(unit_of_work),
            settings=settings,
            clock=clock,
        )

    # ── properties ────────────────────────────────────────────

    @property
    def unit_of_work(self) -> UnitOfWork:
        return self._unit_of_work

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    @property
    def repository(self) -> SnapshotRepository:
        return self._repository

    @property
    def default_context(self) -> dict[str, Any]:
        return dict(self._default_context)

    def is_auto_snapshot_enabled(self) -> bool:
        return self._auto_snapshot_enabled

    # ── identity ──────────────────────────────────────────────

    def _build_default_context(self) -> dict[str, Any]:
        return {
            CIRCULAR_REFERENCE_HANDLER: self._circular_reference_handler,
            IGNORED_ATTRIBUTES: self._global_exclude_properties,
            ENABLE_MAX_DEPTH: True,
            MAX_DEPTH: self._default_max_depth,
        }

    def _circular_reference_handler(
        self, obj: Any, format: str | None = None, context: dict | None = None
    ) -> str:
        return self._get_entity_id(obj)

    def _get_entity_id(self, entity: Any) -> str:
        return encode_source_id(self._metadata.get_identifier_values(entity))

    def _get_source(self, entity: Any) -> tuple[str, str]:
        return self._metadata.get_class_name(entity), self._get_entity_id(entity)

    # ── capture ───────────────────────────────────────────────

    def create(self, entity: Any, context: dict[str, Any] | None = None) -> Snapshot:
        pre_event = self._dispatcher.dispatch(
            PreSnapshotEvent(entity=entity, context=dict(context or {}))
        )
        context = pre_event.context

        source_class, source_id = self._get_source(entity)
        serializer_context = self._prepare_serializer_context(context)

        data = self._normalizer.normalize(entity, None, serializer_context)
        if not isinstance(data, dict):
            raise SnapshotSerializationFailure(type(data))

        snapshot = Snapshot(
            source_class=source_class,
            source_id=source_id,
            data=data,
            metadata={"context": describe_context(serializer_context)},
            create_time=self._clock.now_utc(),
        )

        self._unit_of_work.persist(snapshot)

        self._dispatcher.dispatch(PostSnapshotEvent(entity=entity, snapshot=snapshot))

        logger.info(
            f"Snapshot captured: {source_class}#{source_id} "
            f"(checksum: {snapshot.checksum})"
        )
        return snapshot

    def _prepare_serializer_context(self, context: dict[str, Any]) -> dict[str, Any]:
        return {**self._default_context, **context}

    # ── hydration ─────────────────────────────────────────────

    def hydrate(self, snapshot: Snapshot, context: dict[str, Any] | None = None) -> Any:
        """
        Rebuild an object from a snapshot's data.

        The returned object is not checked against snapshot.source_id.
        """
        hydrate_context = {OBJECT_TO_POPULATE: None, **(context or {})}
        return self._normalizer.denormalize(
            snapshot.data, snapshot.source_class, None, hydrate_context
        )

    # ── queries ───────────────────────────────────────────────

    def find_latest_snapshot(self, entity: Any) -> Snapshot | None:
        source_class, source_id = self._get_source(entity)
        return self._repository.find_latest_by_source(source_class, source_id)

    def find_snapshots(self, entity: Any, limit: int | None = None) -> list[Snapshot]:
        source_class, source_id = self._get_source(entity)
        return self._repository.find_by_source(source_class, source_id, limit)


# ══════════════════════════════════════════════════════════════
# DEFAULT MANAGER (one per thread — its unit of work is not shared)
# ══════════════════════════════════════════════════════════════

_local = threading.local()


def get_snapshot_manager() -> SnapshotManager:
    manager = getattr(_local, "manager", None)
    if manager is None:
        manager = SnapshotManager.from_settings()
        _local.manager = manager
    return manager


def set_snapshot_manager(manager: SnapshotManager | None) -> None:
    """Override (or reset with None) the current thread's default manager."""
    _local.manager = manager


def discard_pending_snapshots(sender=None, **kwargs) -> int:
    """
    request_finished receiver: drop records the request never saved.

    A thread serves many requests; records left pending on its default
    manager must not be written by a later, unrelated flush.
    """
    manager = getattr(_local, "manager", None)
    if manager is None:
        return 0
    dropped = manager.unit_of_work.clear()
    if dropped:
        logger.warning(f"Discarded {dropped} unsaved snapshot operation(s) at request end")
    return dropped
