"""
Event emitter shared by document hosts and the label indexer.

Delivery is synchronous and run-to-completion: ``emit`` calls every
listener in registration order before returning. A failing listener is
logged and skipped; it never interrupts the emitter or other listeners.
"""

from enum import Enum
from typing import Any, Callable

import structlog

logger = structlog.get_logger()

__all__ = ["EventEmitter", "Listener"]

Listener = Callable[..., Any]


class EventEmitter:
    """Registry of listeners keyed by event."""

    def __init__(self) -> None:
        self._listeners: dict[Enum, list[Listener]] = {}

    def on(self, event: Enum, listener: Listener) -> None:
        """Register a listener for an event."""
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: Enum, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def listener_count(self, event: Enum) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: Enum, *args: Any) -> None:
        """Deliver an event to every listener registered for it.

        Args:
            event: Event being emitted.
            *args: Positional payload passed to each listener.
        """
        # Copy so listeners may unsubscribe while being called
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(*args)
            except Exception as e:
                logger.error(
                    "events.listener_failed",
                    event=event.value,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                )
