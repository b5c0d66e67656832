"""
Snapshots — Capture Listener
==============================
Runs before a registered model row is inserted or updated and replaces
each marked live reference with a stored snapshot.

Per marked field:
1. Value is None            → skip (nothing to capture)
2. Value is already a record → skip (never snapshot a snapshot)
3. Target field missing      → InvalidSnapshotTarget (configuration error)
4. create() → assign record to target → cascade → null the source field

Every target is resolved before the first capture: a configuration
error leaves the row untouched and creates no record.

The transformation is one-way: the source field is not repopulated
from its snapshot. Use SnapshotManager.hydrate() to read it back.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from django.db import models
from django.db.models.signals import pre_save

from snapshots.errors import InvalidSnapshotTarget
from snapshots.fields import (
    SnapshotBinding,
    SnapshotFieldRegistry,
    snapshot_registry,
    target_exists,
)
from snapshots.models import Snapshot
from snapshots.persistence import UnitOfWork
from snapshots.serializer import GROUPS
from snapshots.service import SnapshotManager, get_snapshot_manager

logger = logging.getLogger("snapshots.listener")


class SnapshotListener:
    """Explicit interception seam called synchronously by the host ORM."""

    def __init__(
        self,
        manager: SnapshotManager,
        registry: SnapshotFieldRegistry | None = None,
    ):
        self._manager = manager
        self._registry = registry or snapshot_registry

    @property
    def registry(self) -> SnapshotFieldRegistry:
        return self._registry

    def pre_persist(self, instance: Any, unit_of_work: UnitOfWork) -> None:
        if not self._manager.is_auto_snapshot_enabled():
            return
        self._handle_snapshot(instance, unit_of_work)

    def pre_update(self, instance: Any, unit_of_work: UnitOfWork) -> None:
        if not self._manager.is_auto_snapshot_enabled():
            return
        self._handle_snapshot(instance, unit_of_work)

    def _plan(self, instance: Any) -> list[tuple[SnapshotBinding, Any]]:
        plan = []
        for binding in self._registry.bindings_for(type(instance)):
            value = binding.get_source(instance)

            if value is None:
                continue

            if isinstance(value, Snapshot):
                logger.debug(
                    f"{type(instance).__qualname__}.{binding.field_name} "
                    f"already holds a snapshot, skipped"
                )
                continue

            if not target_exists(instance, binding.target_name):
                raise InvalidSnapshotTarget(binding.target_name, type(instance))

            plan.append((binding, value))
        return plan

    def _handle_snapshot(self, instance: Any, unit_of_work: UnitOfWork) -> None:
        for binding, value in self._plan(instance):
            config = binding.config
            context = {**config.context, GROUPS: list(config.groups)}

            snapshot = self._manager.create(value, context)

            binding.set_target(instance, snapshot)

            if config.cascade:
                unit_of_work.persist(snapshot)

            binding.set_source(instance, None)

            logger.debug(
                f"{type(instance).__qualname__}.{binding.field_name} "
                f"→ {binding.target_name} ({snapshot})"
            )


# ══════════════════════════════════════════════════════════════
# DJANGO ADAPTER (pre_save)
# ══════════════════════════════════════════════════════════════

class SnapshotSignalReceiver:
    """
    pre_save receiver delegating to a SnapshotListener.

    Each write gets its own UnitOfWork, flushed before Django writes
    the owner row; relation columns are then re-synced so foreign
    keys carry the primary key of the freshly inserted records.
    """

    def __init__(
        self,
        listener_factory: Callable[[], SnapshotListener] | None = None,
        registry: SnapshotFieldRegistry | None = None,
    ):
        self._registry = registry or snapshot_registry
        self._listener_factory = listener_factory or (
            lambda: SnapshotListener(get_snapshot_manager(), self._registry)
        )

    def __call__(self, sender, instance, raw=False, **kwargs) -> None:
        if raw:
            return

        listener = self._listener_factory()
        unit_of_work = UnitOfWork(using=kwargs.get("using"))

        if instance._state.adding:
            listener.pre_persist(instance, unit_of_work)
        else:
            listener.pre_update(instance, unit_of_work)

        unit_of_work.flush()
        self._sync_targets(instance)

    def _sync_targets(self, instance: models.Model) -> None:
        for binding in self._registry.bindings_for(type(instance)):
            if not target_exists(instance, binding.target_name):
                continue
            record = binding.get_target(instance)
            if isinstance(record, Snapshot) and record.pk is not None:
                binding.set_target(instance, record)


def dispatch_uid_for(model: type[models.Model]) -> str:
    return f"snapshots.capture.{model._meta.label_lower}"


def connect_receiver(
    receiver: SnapshotSignalReceiver | None = None,
    registry: SnapshotFieldRegistry | None = None,
) -> SnapshotSignalReceiver:
    """Connect a receiver to pre_save for every registered concrete model."""
    registry = registry or snapshot_registry
    receiver = receiver or SnapshotSignalReceiver(registry=registry)

    for model in registry.models():
        if not issubclass(model, models.Model) or model._meta.abstract:
            continue
        pre_save.connect(
            receiver,
            sender=model,
            weak=False,
            dispatch_uid=dispatch_uid_for(model),
        )
        logger.info(f"Snapshot capture connected for {model._meta.label}")
    return receiver


def disconnect_receiver(registry: SnapshotFieldRegistry | None = None) -> None:
    registry = registry or snapshot_registry
    for model in registry.models():
        if not issubclass(model, models.Model) or model._meta.abstract:
            continue
        pre_save.disconnect(sender=model, dispatch_uid=dispatch_uid_for(model))
