"""Observer list for notification events.

Event Flow:
    Scheduler / Backends → EventDispatcher → Consumers
                                    ↓
                    [application navigation, analytics, UI refresh]

Consumers run in registration order. A failing consumer is logged and
does not stop the others.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from notifier.events.types import EventType, NotificationEvent

logger = logging.getLogger(__name__)


class EventConsumer(ABC):
    """Abstract base class for event consumers."""

    @abstractmethod
    def handles(self, event_type: EventType) -> bool:
        """Check if this consumer handles the given event type."""
        pass

    @abstractmethod
    def process(self, event: NotificationEvent) -> None:
        """Process an event."""
        pass


class CallbackConsumer(EventConsumer):
    """Adapts a plain callable into a consumer."""

    def __init__(
        self,
        callback: Callable[[NotificationEvent], None],
        event_types: Iterable[EventType] | None = None,
    ) -> None:
        self.callback = callback
        self.event_types = frozenset(event_types) if event_types is not None else None

    def handles(self, event_type: EventType) -> bool:
        return self.event_types is None or event_type in self.event_types

    def process(self, event: NotificationEvent) -> None:
        self.callback(event)


class EventDispatcher:
    """Dispatches events to registered consumers."""

    def __init__(self) -> None:
        self._consumers: list[EventConsumer] = []

    def register(self, consumer: EventConsumer) -> None:
        self._consumers.append(consumer)

    def unregister(self, consumer: EventConsumer) -> None:
        if consumer in self._consumers:
            self._consumers.remove(consumer)

    def subscribe(
        self,
        callback: Callable[[NotificationEvent], None],
        event_types: Iterable[EventType] | None = None,
    ) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        consumer = CallbackConsumer(callback, event_types)
        self.register(consumer)
        return lambda: self.unregister(consumer)

    def dispatch(self, event: NotificationEvent) -> None:
        """Dispatch an event to all interested consumers."""
        for consumer in list(self._consumers):
            if not consumer.handles(event.event_type):
                continue

            try:
                consumer.process(event)
            except Exception as e:
                logger.error(
                    "Consumer processing failed",
                    extra={
                        "consumer": consumer.__class__.__name__,
                        "event_type": event.event_type.value,
                        "notification_id": event.notification_id,
                        "error": str(e),
                    },
                    exc_info=True,
                )

    def clear(self) -> None:
        self._consumers.clear()
