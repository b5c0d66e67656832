"""
Snapshots — Errors
====================
Error types for snapshot capture, serialization and configuration.

Configuration errors (InvalidSnapshotTarget, DuplicateSnapshotField)
must be fixed in code, never retried.
"""


class SnapshotException(RuntimeError):
    """Base error for snapshot operations."""
    pass


class InvalidSnapshotTarget(SnapshotException):
    """The target field declared for a snapshot marker does not exist."""

    def __init__(self, target: str, model: type):
        self.target = target
        self.model = model
        super().__init__(
            f'Target snapshot property "{target}" does not exist '
            f'in class "{model.__module__}.{model.__qualname__}".'
        )


class SnapshotSerializationFailure(SnapshotException):
    """Normalizer returned something other than a structured map."""

    def __init__(self, result_type: type):
        self.result_type = result_type
        super().__init__(
            "Failed to normalize entity to a mapping "
            f"(normalizer returned {result_type.__name__})."
        )


class CircularReferenceError(SnapshotException):
    """Object graph revisits an object and no handler is configured."""

    def __init__(self, obj: object):
        self.obj = obj
        super().__init__(
            f"A circular reference has been detected when normalizing "
            f"an object of type '{type(obj).__name__}' and no "
            f"circular_reference_handler is configured."
        )


class DuplicateSnapshotField(SnapshotException):
    """Same model field registered for snapshotting twice."""

    def __init__(self, model: type, field_name: str):
        self.model = model
        self.field_name = field_name
        super().__init__(
            f"Snapshot field '{field_name}' already registered "
            f"for '{model.__qualname__}'."
        )
