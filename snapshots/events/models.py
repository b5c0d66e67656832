"""
Snapshots Event Bus — Lifecycle Events
========================================
PreSnapshotEvent  — dispatched before capture; handlers may replace
                    the serializer context, which is then used downstream.
PostSnapshotEvent — dispatched after the record is registered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from snapshots.models import Snapshot


@dataclass
class PreSnapshotEvent:
    entity: Any
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PostSnapshotEvent:
    entity: Any
    snapshot: "Snapshot"
