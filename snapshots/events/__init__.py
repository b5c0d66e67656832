"""
Snapshots Event Bus — Public API
==================================
"""

from snapshots.events.dispatcher import EventDispatcher
from snapshots.events.errors import DuplicateListenerError, EventDispatchError
from snapshots.events.models import PostSnapshotEvent, PreSnapshotEvent

__all__ = [
    "EventDispatcher",
    "EventDispatchError",
    "DuplicateListenerError",
    "PreSnapshotEvent",
    "PostSnapshotEvent",
]
