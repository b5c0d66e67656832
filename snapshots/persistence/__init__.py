"""
Snapshots Persistence — Public API
====================================
"""

from snapshots.persistence.repository import SnapshotRepository
from snapshots.persistence.unit_of_work import UnitOfWork

__all__ = [
    "SnapshotRepository",
    "UnitOfWork",
]
