"""
Snapshots — Field Markers & Registry
======================================
Declares which fields of a model are captured as snapshots.

A marker (SnapshotField) is registered per (model, field) once, at
import time, through @snapshot_fields or SnapshotFieldRegistry.register.
Accessors for the source and target fields are bound at registration,
never discovered while a row is being written.

Target field: explicit ``target`` or "<field_name>_snapshot".
Existence of the target is checked at capture time.

Rules:
- One marker per (model, field) — duplicates are rejected
- Bindings declared on a parent class apply to its subclasses
- In-memory only, thread-safe
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from django.core.exceptions import FieldDoesNotExist

from snapshots.errors import DuplicateSnapshotField

logger = logging.getLogger("snapshots.fields")

DEFAULT_GROUP = "snapshot"
TARGET_SUFFIX = "_snapshot"


# ══════════════════════════════════════════════════════════════
# MARKER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SnapshotField:
    """
    Capture configuration for one field.

    groups:  serializer groups used for the capture (str or sequence)
    target:  sibling field receiving the record ("" → default name)
    context: extra serializer context merged for this field
    cascade: register the record with the write's unit of work
    """

    groups: tuple[str, ...] = (DEFAULT_GROUP,)
    target: str = ""
    context: Mapping[str, Any] = field(default_factory=dict)
    cascade: bool = True

    def __post_init__(self) -> None:
        groups = (self.groups,) if isinstance(self.groups, str) else tuple(self.groups)
        object.__setattr__(self, "groups", groups)
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))

    def target_for(self, source_name: str) -> str:
        if self.target:
            return self.target
        return f"{source_name}{TARGET_SUFFIX}"


def _getter(name: str) -> Callable[[Any], Any]:
    def get(instance: Any) -> Any:
        return getattr(instance, name)
    return get


def _setter(name: str) -> Callable[[Any, Any], None]:
    def set_(instance: Any, value: Any) -> None:
        setattr(instance, name, value)
    return set_


def target_exists(instance: Any, name: str) -> bool:
    """True if ``name`` is a field (or attribute) of the instance's type."""
    meta = getattr(type(instance), "_meta", None)
    if meta is not None:
        try:
            meta.get_field(name)
            return True
        except FieldDoesNotExist:
            pass
    return hasattr(type(instance), name) or name in getattr(instance, "__dict__", {})


@dataclass(frozen=True)
class SnapshotBinding:
    """A registered marker with its accessors resolved."""

    model: type
    field_name: str
    config: SnapshotField
    target_name: str
    get_source: Callable[[Any], Any]
    set_source: Callable[[Any, Any], None]
    get_target: Callable[[Any], Any]
    set_target: Callable[[Any, Any], None]

    @classmethod
    def bind(cls, model: type, field_name: str, config: SnapshotField) -> "SnapshotBinding":
        target_name = config.target_for(field_name)
        return cls(
            model=model,
            field_name=field_name,
            config=config,
            target_name=target_name,
            get_source=_getter(field_name),
            set_source=_setter(field_name),
            get_target=_getter(target_name),
            set_target=_setter(target_name),
        )


# ══════════════════════════════════════════════════════════════
# REGISTRY
# ══════════════════════════════════════════════════════════════

class SnapshotFieldRegistry:
    """
    In-memory registry of snapshot bindings, keyed by model class.
    """

    def __init__(self):
        self._bindings: dict[type, list[SnapshotBinding]] = {}
        self._lock = Lock()

    def register(
        self,
        model: type,
        field_name: str,
        config: SnapshotField | None = None,
    ) -> SnapshotBinding:
        """
        Register a field of ``model`` for snapshotting.

        Raises:
            DuplicateSnapshotField: field already registered on model
        """
        binding = SnapshotBinding.bind(model, field_name, config or SnapshotField())

        with self._lock:
            bindings = self._bindings.setdefault(model, [])
            if any(existing.field_name == field_name for existing in bindings):
                raise DuplicateSnapshotField(model, field_name)
            bindings.append(binding)

        logger.info(
            f"Snapshot field registered: {model.__qualname__}.{field_name} "
            f"→ {binding.target_name}"
        )
        return binding

    def fields(self, **fields: SnapshotField) -> Callable[[type], type]:
        """Class decorator registering ``name=SnapshotField(...)`` pairs."""
        def decorate(model: type) -> type:
            for field_name, config in fields.items():
                self.register(model, field_name, config)
            return model
        return decorate

    def unregister(self, model: type) -> None:
        with self._lock:
            self._bindings.pop(model, None)

    def bindings_for(self, model: type) -> tuple[SnapshotBinding, ...]:
        """Bindings of model and its bases; a subclass overrides by field name."""
        with self._lock:
            resolved: dict[str, SnapshotBinding] = {}
            for cls in reversed(model.__mro__):
                for binding in self._bindings.get(cls, ()):
                    resolved[binding.field_name] = binding
            return tuple(resolved.values())

    def models(self) -> tuple[type, ...]:
        with self._lock:
            return tuple(self._bindings)

    def is_registered(self, model: type) -> bool:
        return bool(self.bindings_for(model))


snapshot_registry = SnapshotFieldRegistry()


def snapshot_fields(**fields: SnapshotField) -> Callable[[type], type]:
    """
    Register snapshot fields on the default registry.

    Usage:
        @snapshot_fields(product=SnapshotField(groups="order"))
        class Order(models.Model):
            product = models.ForeignKey(Product, null=True, ...)
            product_snapshot = models.ForeignKey(Snapshot, null=True, ...)
    """
    return snapshot_registry.fields(**fields)


def register_snapshot_fields(
    model: type,
    fields: Mapping[str, SnapshotField] | Iterable[str],
    registry: SnapshotFieldRegistry | None = None,
) -> None:
    registry = registry or snapshot_registry
    if isinstance(fields, Mapping):
        items = fields.items()
    else:
        items = ((name, SnapshotField()) for name in fields)
    for field_name, config in items:
        registry.register(model, field_name, config)
