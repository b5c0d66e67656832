"""
Snapshots Serializer — Context Keys
=====================================
Keys understood by the normalizer in the serializer context.
"""

CIRCULAR_REFERENCE_HANDLER = "circular_reference_handler"
IGNORED_ATTRIBUTES = "ignored_attributes"
ENABLE_MAX_DEPTH = "enable_max_depth"
MAX_DEPTH = "max_depth"
GROUPS = "groups"
OBJECT_TO_POPULATE = "object_to_populate"
