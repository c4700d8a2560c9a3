"""Small synchronous publish/subscribe helper used by hubs and attached devices."""

from collections import defaultdict
from typing import Any, Callable, DefaultDict, Hashable, List

from .logging_config import get_logger

logger = get_logger(__name__)


class EventBus:
    """Calls subscribers in subscription order, in the caller's stream of control.

    A subscriber that raises is logged and skipped; the remaining subscribers
    still run and the error never reaches the code that emitted the event.
    """

    def __init__(self):
        self._subscribers: DefaultDict[Hashable, List[Callable[..., Any]]] = defaultdict(list)

    def subscribe(self, event: Hashable, callback: Callable[..., Any]) -> Callable[..., Any]:
        self._subscribers[event].append(callback)
        return callback

    def unsubscribe(self, event: Hashable, callback: Callable[..., Any]) -> None:
        if callback in self._subscribers.get(event, []):
            self._subscribers[event].remove(callback)

    def subscriber_count(self, event: Hashable) -> int:
        return len(self._subscribers.get(event, []))

    def emit(self, event: Hashable, *args: Any) -> None:
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Error in {event} subscriber {callback!r}: {e}", exc_info=True)

    def clear(self) -> None:
        self._subscribers.clear()
