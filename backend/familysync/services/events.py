"""Synchronous publish/subscribe channel for discovery and join-handshake events.

Handlers run in the emitting thread, immediately after the state change that
triggered them, so a subscriber always observes already-updated tables.
A failing handler is logged and skipped; it never reaches the emitter.
"""
import logging
import threading
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

# ── Event names ────────────────────────────────────────────────────
FAMILY_DISCOVERED = "family-discovered"
FAMILY_LOST = "family-lost"
JOIN_REQUEST_RECEIVED = "join-request-received"
JOIN_REQUEST_APPROVED = "join-request-approved"
JOIN_REQUEST_REJECTED = "join-request-rejected"
ERROR = "error"
PUBLISHING_CHANGED = "publishing-changed"
DISCOVERING_CHANGED = "discovering-changed"

EVENT_NAMES = frozenset({
    FAMILY_DISCOVERED,
    FAMILY_LOST,
    JOIN_REQUEST_RECEIVED,
    JOIN_REQUEST_APPROVED,
    JOIN_REQUEST_REJECTED,
    ERROR,
    PUBLISHING_CHANGED,
    DISCOVERING_CHANGED,
})

Handler = Callable[..., Any]


class EventEmitter:
    """Minimal named-event emitter."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, event: str, handler: Handler) -> Handler:
        """Subscribe ``handler`` to ``event`` and return it."""
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown event: {event}")
        with self._lock:
            self._handlers[event].append(handler)
        return handler

    def off(self, event: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._handlers.get(event, []))

    def remove_all_listeners(self) -> None:
        with self._lock:
            self._handlers.clear()

    def emit(self, event: str, *args: Any) -> int:
        """Deliver ``args`` to every handler of ``event``; returns how many were called."""
        with self._lock:
            handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception("Handler %r for '%s' failed", handler, event)
        return len(handlers)
