"""
In-process publish/subscribe channel for gesture events.
"""
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List

from .types import GestureEvent

logger = logging.getLogger(__name__)

# Emitted by the two-fingers gesture; toggles an external listening mode.
LISTEN_TOGGLE = "listen_toggle"

Listener = Callable[[Dict[str, Any]], None]


class EventBus:
    """Synchronous event dispatch; a failing listener never blocks the others."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, name: str, listener: Listener) -> Callable[[], None]:
        """Subscribe to an event. Returns a callable that unsubscribes."""
        self._listeners[name].append(listener)
        return lambda: self.off(name, listener)

    def off(self, name: str, listener: Listener) -> None:
        listeners = self._listeners.get(name)
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if not listeners:
            del self._listeners[name]

    def emit(self, name: str, payload: Dict[str, Any]) -> int:
        """Deliver payload to every listener of name; returns how many succeeded."""
        delivered = 0
        for listener in list(self._listeners.get(name, ())):
            try:
                listener(payload)
                delivered += 1
            except Exception:
                logger.exception("Listener error for event %s", name)
        return delivered

    def publish(self, events: Iterable[GestureEvent]) -> None:
        """Emit engine events in order."""
        for event in events:
            self.emit(event.name, event.payload)
