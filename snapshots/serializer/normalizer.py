"""
Snapshots Serializer — Model Normalizer
=========================================
Turns Django model instances into JSON-compatible maps and back.

normalize():
- Concrete fields by field name; forward many-to-many for saved rows
- Relations nest the related row while depth <= max_depth
  (when enable_max_depth), otherwise emit the related key
- A row met again while still being normalized is a circular
  reference: the configured handler's result is emitted
- Models declaring ``snapshot_groups`` are filtered by the
  requested groups; models without the declaration are not

denormalize():
- Resolves "app_label.ModelName", fills object_to_populate or a
  fresh (unsaved) instance. Many-to-many values are not restored.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping, Set
from typing import Any, Protocol

from django.apps import apps
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models.fields.files import FieldFile

from snapshots.errors import CircularReferenceError
from snapshots.serializer.context import (
    CIRCULAR_REFERENCE_HANDLER,
    ENABLE_MAX_DEPTH,
    GROUPS,
    IGNORED_ATTRIBUTES,
    MAX_DEPTH,
    OBJECT_TO_POPULATE,
)

_ENCODER = DjangoJSONEncoder()


class Normalizer(Protocol):
    def normalize(
        self, obj: Any, format: str | None = None, context: dict | None = None
    ) -> Any:
        ...

    def denormalize(
        self,
        data: Any,
        type: Any,
        format: str | None = None,
        context: dict | None = None,
    ) -> Any:
        ...


def _as_names(value: Any) -> frozenset[str]:
    if not value:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(value)


def _object_key(instance: models.Model) -> tuple:
    if instance.pk is None:
        return (type(instance), id(instance))
    return (instance._meta.concrete_model, instance.pk)


class ModelNormalizer:
    """Default serializer capability over Model._meta."""

    # ── normalize ─────────────────────────────────────────────

    def normalize(
        self, obj: Any, format: str | None = None, context: dict | None = None
    ) -> Any:
        return self._normalize(obj, format, dict(context or {}), 0, [])

    def _normalize(self, value, format, context, depth, stack):
        if isinstance(value, models.Model):
            return self._normalize_model(value, format, context, depth, stack)
        if value is None or isinstance(value, (str, bool, int, float)):
            return value
        if isinstance(value, Mapping):
            return {
                str(key): self._normalize(item, format, context, depth, stack)
                for key, item in value.items()
            }
        if isinstance(value, Set):
            return sorted(
                (self._normalize(item, format, context, depth, stack) for item in value),
                key=str,
            )
        if isinstance(value, (list, tuple)):
            return [
                self._normalize(item, format, context, depth, stack)
                for item in value
            ]
        if isinstance(value, FieldFile):
            return value.name or None
        if isinstance(value, (bytes, bytearray, memoryview)):
            return base64.b64encode(bytes(value)).decode("ascii")
        # datetime, date, time, timedelta, Decimal, UUID, lazy strings
        return _ENCODER.default(value)

    def _normalize_model(self, instance, format, context, depth, stack):
        key = _object_key(instance)
        if key in stack:
            handler = context.get(CIRCULAR_REFERENCE_HANDLER)
            if handler is None:
                raise CircularReferenceError(instance)
            return handler(instance, format, context)

        stack.append(key)
        try:
            return self._normalize_fields(instance, format, context, depth, stack)
        finally:
            stack.pop()

    def _normalize_fields(self, instance, format, context, depth, stack):
        meta = instance._meta
        data: dict[str, Any] = {}

        for field in meta.concrete_fields:
            if isinstance(field, models.CompositePrimaryKey):
                continue
            if not self._is_allowed(instance, field.name, context):
                continue
            if field.is_relation:
                data[field.name] = self._normalize_relation(
                    instance, field, format, context, depth, stack
                )
            else:
                data[field.name] = self._normalize(
                    field.value_from_object(instance), format, context, depth, stack
                )

        if instance.pk is None:
            # Unsaved rows have no many-to-many links yet.
            return data

        for field in meta.many_to_many:
            if not self._is_allowed(instance, field.name, context):
                continue
            related = getattr(instance, field.name).all()
            if self._depth_exceeded(context, depth + 1):
                data[field.name] = [
                    self._normalize(obj.pk, format, context, depth, stack)
                    for obj in related
                ]
            else:
                data[field.name] = [
                    self._normalize_model(obj, format, context, depth + 1, stack)
                    for obj in related
                ]
        return data

    def _normalize_relation(self, instance, field, format, context, depth, stack):
        if field.is_cached(instance):
            related = field.get_cached_value(instance)
        else:
            raw = getattr(instance, field.attname)
            if raw is None or self._depth_exceeded(context, depth + 1):
                return self._normalize(raw, format, context, depth, stack)
            related = getattr(instance, field.name)

        if related is None:
            return None
        if self._depth_exceeded(context, depth + 1):
            return self._normalize(related.pk, format, context, depth, stack)
        return self._normalize_model(related, format, context, depth + 1, stack)

    @staticmethod
    def _depth_exceeded(context: dict, depth: int) -> bool:
        if not context.get(ENABLE_MAX_DEPTH):
            return False
        max_depth = context.get(MAX_DEPTH)
        return max_depth is not None and depth > max_depth

    @staticmethod
    def _is_allowed(instance_or_model, name: str, context: dict) -> bool:
        if name in _as_names(context.get(IGNORED_ATTRIBUTES)):
            return False
        groups = _as_names(context.get(GROUPS))
        declared = getattr(instance_or_model, "snapshot_groups", None)
        if groups and declared is not None:
            return bool(groups & _as_names(declared.get(name)))
        return True

    # ── denormalize ───────────────────────────────────────────

    def denormalize(
        self,
        data: Any,
        type: Any,
        format: str | None = None,
        context: dict | None = None,
    ) -> models.Model:
        context = dict(context or {})
        model = self._resolve_model(type)
        if not isinstance(data, Mapping):
            raise TypeError(
                f"Cannot denormalize {data.__class__.__name__} "
                f"into '{model._meta.label}'; a mapping is required."
            )

        target = context.get(OBJECT_TO_POPULATE)
        instance = target if isinstance(target, model) else model()

        for field in model._meta.concrete_fields:
            if isinstance(field, models.CompositePrimaryKey):
                continue
            if field.name not in data:
                continue
            if not self._is_allowed(model, field.name, context):
                continue
            value = data[field.name]
            if field.is_relation:
                if isinstance(value, Mapping):
                    value = value.get(field.target_field.name)
                value = field.target_field.to_python(value)
            else:
                value = field.to_python(value)
            setattr(instance, field.attname, value)
        return instance

    @staticmethod
    def _resolve_model(target_type: Any) -> type[models.Model]:
        if isinstance(target_type, str):
            return apps.get_model(target_type)
        if isinstance(target_type, type) and issubclass(target_type, models.Model):
            return target_type
        raise TypeError(f"Cannot resolve a Django model from {target_type!r}.")
