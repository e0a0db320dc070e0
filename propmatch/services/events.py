"""
On-success signal for property mutations.
Subscribers (listing cache, UI adapters) react after a mutation has committed.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyChanged:
    """A property mutation completed."""

    action: str  # "created" | "updated" | "deleted"
    property_id: uuid.UUID
    owner_id: uuid.UUID
    redirect_to: str = "/"


PropertyChangedHandler = Callable[[PropertyChanged], None]


class PropertyEventBus:
    """Synchronous in-process publisher of PropertyChanged events."""

    def __init__(self):
        self._handlers: List[PropertyChangedHandler] = []

    def subscribe(self, handler: PropertyChangedHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: PropertyChangedHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, event: PropertyChanged) -> None:
        """
        Deliver an event to every subscriber.
        The mutation is already committed, so a failing subscriber is logged and skipped.
        """
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Property event handler {getattr(handler, '__name__', handler)!r} failed "
                    f"for {event.action} {event.property_id}: {e}",
                    exc_info=True
                )
