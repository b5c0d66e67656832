"""
Snapshots Event Bus — Errors
==============================
Separate from capture errors — the bus is routing, not capture.
"""


class EventDispatchError(Exception):
    """Base error for event bus registration."""
    pass


class DuplicateListenerError(EventDispatchError):
    """Same handler already registered for this event type."""

    def __init__(self, event_type: type, handler_name: str):
        self.event_type = event_type
        self.handler_name = handler_name
        super().__init__(
            f"Handler '{handler_name}' already registered "
            f"for event type '{event_type.__name__}'."
        )
