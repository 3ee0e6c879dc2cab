"""Buffer event source with explicit subscription handles.

The host (editor integration, MCP tools, tests) fires BufferEvents; consumers
subscribe a handler and keep the returned Subscription, disposing it when
they shut down. There is no global registry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class BufferEventType(str, Enum):
    """Kinds of buffer notifications."""

    ACTIVE_CHANGED = "active_changed"
    """Another buffer became the active one (carries content)."""

    EDITED = "edited"
    """Buffer content changed (carries content)."""

    CLOSED = "closed"
    """Buffer was closed."""

    FOCUS_LOST = "focus_lost"
    """No buffer is active any more."""


class BufferEvent(BaseModel):
    """One buffer notification."""

    model_config = ConfigDict(frozen=True)

    type: BufferEventType
    uri: str | None = None
    content: str | None = None
    language_id: str | None = None


BufferEventHandler = Callable[[BufferEvent], None]


class Subscription:
    """Handle returned by BufferEvents.subscribe; dispose() unsubscribes."""

    def __init__(self, source: BufferEvents, handler: BufferEventHandler):
        self._source = source
        self._handler: BufferEventHandler | None = handler

    @property
    def active(self) -> bool:
        return self._handler is not None

    def dispose(self) -> None:
        """Unsubscribe. Safe to call more than once."""
        if self._handler is None:
            return
        self._source._remove(self._handler)
        self._handler = None


class BufferEvents:
    """Synchronous fan-out of buffer events to subscribed handlers.

    Usage:
        events = BufferEvents()
        subscription = events.subscribe(controller.handle_event)
        events.fire(BufferEvent(type=BufferEventType.EDITED, uri=uri, content=text))
        subscription.dispose()
    """

    def __init__(self) -> None:
        self._handlers: list[BufferEventHandler] = []

    def subscribe(self, handler: BufferEventHandler) -> Subscription:
        """Register a handler and return its disposal handle."""
        self._handlers.append(handler)
        return Subscription(self, handler)

    def _remove(self, handler: BufferEventHandler) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def fire(self, event: BufferEvent) -> None:
        """Deliver an event to every handler in subscription order.

        A failing handler is logged and does not prevent delivery to the rest.
        """
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Buffer event handler failed on {event.type.value}: {e}", exc_info=True
                )


__all__ = ["BufferEvent", "BufferEventHandler", "BufferEventType", "BufferEvents", "Subscription"]
