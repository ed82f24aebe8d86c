"""
In-process change-event publishing.

Events are published only after their transaction commits. A failing
subscriber is logged and never affects the transition that produced the event.
"""
import inspect
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Subscriber = Callable[[Dict[str, Any]], Any]


class WorkflowEventBus:
    """Fan-out of committed workflow events to in-process subscribers."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Subscriber:
        """
        Register a sync or async callback. Usable as a decorator.

        Args:
            callback: Called with the event document

        Returns:
            The callback
        """
        self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def clear(self) -> None:
        self._subscribers = []

    async def publish(self, event: Dict[str, Any]) -> None:
        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    f"Event subscriber {getattr(callback, '__name__', callback)} failed for "
                    f"{event.get('entity_type')} {event.get('entity_id')}"
                )


event_bus = WorkflowEventBus()
