"""
Snapshots Serializer — Public API
===================================
"""

from snapshots.serializer.context import (
    CIRCULAR_REFERENCE_HANDLER,
    ENABLE_MAX_DEPTH,
    GROUPS,
    IGNORED_ATTRIBUTES,
    MAX_DEPTH,
    OBJECT_TO_POPULATE,
)
from snapshots.serializer.normalizer import ModelNormalizer, Normalizer

__all__ = [
    "ModelNormalizer",
    "Normalizer",
    "CIRCULAR_REFERENCE_HANDLER",
    "ENABLE_MAX_DEPTH",
    "GROUPS",
    "IGNORED_ATTRIBUTES",
    "MAX_DEPTH",
    "OBJECT_TO_POPULATE",
]
