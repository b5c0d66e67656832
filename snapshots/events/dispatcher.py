"""
Snapshots Event Bus — Dispatcher
==================================
Routes snapshot lifecycle events to registered listeners.

Dispatch behavior:
1. Look up listeners by event class (including base classes)
2. Execute handlers sequentially, in registration order
3. Handler exceptions PROPAGATE to the capture caller

Listeners may observe and (for PreSnapshotEvent) rewrite the context.
They never receive the unit of work and never persist anything here.
"""

import logging
from threading import Lock
from typing import Any, Callable

from snapshots.events.errors import DuplicateListenerError, EventDispatchError

logger = logging.getLogger("snapshots.events")


class EventDispatcher:
    """
    In-memory registry of event listeners.

    Each entry maps an event class to an ordered list of handlers.
    """

    def __init__(self):
        self._listeners: dict[type, list[Callable[[Any], None]]] = {}
        self._lock = Lock()

    def add_listener(self, event_type: type, handler: Callable) -> None:
        """
        Register a handler for an event class.

        Raises:
            EventDispatchError:     handler not callable
            DuplicateListenerError: handler already registered
        """
        if not callable(handler):
            raise EventDispatchError(
                f"Handler must be callable, got {type(handler)}."
            )

        handler_name = getattr(handler, "__qualname__", str(handler))

        with self._lock:
            handlers = self._listeners.setdefault(event_type, [])
            for existing in handlers:
                if existing is handler:
                    raise DuplicateListenerError(event_type, handler_name)
            handlers.append(handler)

        logger.info(
            f"Listener registered: {handler_name} → {event_type.__name__}"
        )

    def remove_listener(self, event_type: type, handler: Callable) -> bool:
        """Returns True if the handler was registered."""
        with self._lock:
            handlers = self._listeners.get(event_type, [])
            for index, existing in enumerate(handlers):
                if existing is handler:
                    del handlers[index]
                    return True
        return False

    def get_listeners(self, event_type: type) -> list[Callable]:
        with self._lock:
            listeners: list[Callable] = []
            for cls in reversed(event_type.__mro__):
                listeners.extend(self._listeners.get(cls, ()))
            return listeners

    def has_listeners(self, event_type: type) -> bool:
        return bool(self.get_listeners(event_type))

    def dispatch(self, event: Any) -> Any:
        """
        Deliver an event to every listener and return it.

        Returning the event lets callers read values rewritten by
        listeners (e.g. PreSnapshotEvent.context).
        """
        event_name = type(event).__name__
        for handler in self.get_listeners(type(event)):
            handler(event)
            logger.debug(
                f"Dispatched {event_name} → "
                f"{getattr(handler, '__qualname__', handler)}"
            )
        return event
