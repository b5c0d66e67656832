"""
Entity Snapshots
==================
Point-in-time, checksummed copies of Django model instances, keyed
by source identity, captured automatically before rows are written.

Model-dependent names (Snapshot, SnapshotManager, SnapshotListener)
live in their modules and must be imported after Django setup.
"""

from snapshots.errors import (
    CircularReferenceError,
    DuplicateSnapshotField,
    InvalidSnapshotTarget,
    SnapshotException,
    SnapshotSerializationFailure,
)
from snapshots.fields import (
    DEFAULT_GROUP,
    SnapshotField,
    SnapshotFieldRegistry,
    register_snapshot_fields,
    snapshot_fields,
    snapshot_registry,
)

__all__ = [
    "DEFAULT_GROUP",
    "SnapshotField",
    "SnapshotFieldRegistry",
    "register_snapshot_fields",
    "snapshot_fields",
    "snapshot_registry",
    "SnapshotException",
    "InvalidSnapshotTarget",
    "SnapshotSerializationFailure",
    "CircularReferenceError",
    "DuplicateSnapshotField",
]
