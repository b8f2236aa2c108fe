"""Event bus for session observers.

Simple pub/sub letting the web and CLI front ends follow a compile session
without the session knowing about them. Each session owns its own bus.
"""

from __future__ import annotations

import traceback
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from compilepad.core.logging import get_logger

_logger = get_logger(__name__)

COMPILE_SCHEDULED = "compile.scheduled"
COMPILE_STARTED = "compile.started"
COMPILE_FINISHED = "compile.finished"
NOTIFICATION_PUSHED = "notification.pushed"


class EventBus:
    """Simple event bus.

    Example:
        bus = EventBus()

        def on_finished(data):
            print(data["outcome"])

        bus.subscribe("compile.finished", on_finished)
        bus.publish("compile.finished", {"outcome": "success", "error_count": 0})
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callable[[dict[str, Any]], None]]] = defaultdict(list)
        self._all_subscribers: list[Callable[[str, dict[str, Any]], None]] = []

    def subscribe(self, event: str, callback: Callable[[dict[str, Any]], None]) -> None:
        """Subscribe to an event.

        Args:
            event: Event name
            callback: Callback function (receives event data dict)
        """
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[[dict[str, Any]], None]) -> None:
        """Unsubscribe from an event. Unknown callbacks are ignored."""
        callbacks = self._subscribers.get(event)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def subscribe_all(self, callback: Callable[[str, dict[str, Any]], None]) -> None:
        """Subscribe to all published events.

        Args:
            callback: Callback function (receives event name and event data dict)
        """
        self._all_subscribers.append(callback)

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        """Publish an event.

        Subscriber exceptions are logged and never reach the publisher.

        Args:
            event: Event name
            data: Event data (optional)
        """
        data = data or {}

        for cb_event in list(self._subscribers.get(event, [])):
            try:
                cb_event(data)
            except Exception as e:
                _logger.error(
                    f"Error in event handler for '{event}' (callback={cb_event}): "
                    f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
                )

        for cb_all in list(self._all_subscribers):
            try:
                cb_all(event, data)
            except Exception as e:
                _logger.error(
                    f"Error in all-event handler (event='{event}', callback={cb_all}): "
                    f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
                )

    def clear(self) -> None:
        """Clear all subscribers."""
        self._subscribers.clear()
        self._all_subscribers.clear()
