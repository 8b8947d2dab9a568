"""Publish/subscribe channel for extraction results."""

from __future__ import annotations

import inspect
from collections import defaultdict
from enum import Enum
from typing import TYPE_CHECKING, Any

from etsy_automation.utils.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class Event(str, Enum):
    """Events published by the automation engine."""

    MESSAGES_UPDATED = "messages-updated"
    NEW_MESSAGES = "new-messages"
    ORDERS_UPDATED = "orders-updated"
    NEW_ORDERS = "new-orders"


class EventChannel:
    """
    In-process event bus.

    Handlers may be plain functions or coroutine functions. ``emit`` runs
    them in subscription order and returns once all have finished, so a
    summary event is always delivered before the delta event that follows it.
    A handler that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self._handlers: dict[Event, list[Callable[[Any], Any]]] = defaultdict(list)

    @staticmethod
    def _event(name: Event | str) -> Event:
        try:
            return Event(name)
        except ValueError:
            raise ValueError(f"Unknown event: {name}") from None

    def on(self, name: Event | str, handler: Callable[[Any], Any]) -> None:
        """Subscribe ``handler`` to an event."""
        self._handlers[self._event(name)].append(handler)

    def off(self, name: Event | str, handler: Callable[[Any], Any]) -> None:
        """Unsubscribe ``handler``; unknown handlers are ignored."""
        handlers = self._handlers[self._event(name)]
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, name: Event | str) -> int:
        return len(self._handlers[self._event(name)])

    def clear(self) -> None:
        self._handlers.clear()

    async def emit(self, name: Event | str, payload: Any) -> int:
        """
        Deliver ``payload`` to every subscriber of an event.

        Returns:
            Number of handlers that completed without error
        """
        event = self._event(name)
        delivered = 0
        for handler in list(self._handlers[event]):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as e:
                logger.error(
                    "Event handler failed",
                    event_name=event.value,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(e),
                )
        logger.debug("Event emitted", event_name=event.value, handlers=delivered)
        return delivered
