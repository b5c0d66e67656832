"""
Snapshots — Source Identity Metadata
======================================
Derives the (source_class, source_id) pair of a Django model instance.

Encoding rule:
- exactly one identity field → str(value)
- composite primary key      → canonical JSON of {field_name: value}

The same logical entity ALWAYS maps to the same source_id.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from django.db import models

from snapshots.hashing import canonical_serialize


class IdentityMetadata(Protocol):
    def get_class_name(self, entity: Any) -> str:
        ...

    def get_identifier_values(self, entity: Any) -> dict[str, Any]:
        ...


def encode_source_id(identifier_values: Mapping[str, Any]) -> str:
    if len(identifier_values) == 1:
        (value,) = identifier_values.values()
        return "" if value is None else str(value)
    return canonical_serialize(dict(identifier_values))


class ModelMetadata:
    """Identity metadata read from Model._meta."""

    @staticmethod
    def _meta_for(entity: Any):
        if not isinstance(entity, models.Model):
            raise TypeError(
                f"Object of type '{type(entity).__name__}' is not a "
                f"Django model instance."
            )
        return entity._meta

    def get_class_name(self, entity: Any) -> str:
        # Proxy models share history with their concrete model.
        return self._meta_for(entity).concrete_model._meta.label

    def get_identifier_values(self, entity: Any) -> dict[str, Any]:
        meta = self._meta_for(entity)
        pk = meta.pk
        if isinstance(pk, models.CompositePrimaryKey):
            fields = [meta.get_field(name) for name in pk.field_names]
        else:
            fields = [pk]
        return {field.name: field.value_from_object(entity) for field in fields}

    def get_source_id(self, entity: Any) -> str:
        return encode_source_id(self.get_identifier_values(entity))
