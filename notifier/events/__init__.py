"""Notification lifecycle events and their observer list."""

from notifier.events.dispatcher import CallbackConsumer, EventConsumer, EventDispatcher
from notifier.events.types import EventType, NotificationEvent

__all__ = [
    "EventType",
    "NotificationEvent",
    "EventConsumer",
    "CallbackConsumer",
    "EventDispatcher",
]
