"""Event definitions for notification lifecycle observers."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Notification lifecycle and navigation events."""

    NOTIFICATION_SCHEDULED = "notification.scheduled"
    NOTIFICATION_SENT = "notification.sent"
    NOTIFICATION_CLICKED = "notification.clicked"
    NOTIFICATION_DISMISSED = "notification.dismissed"
    NOTIFICATION_CANCELLED = "notification.cancelled"
    NOTIFICATION_EXPIRED = "notification.expired"

    # Navigation requests raised by clicks
    NAVIGATE_TO_TASK = "navigate.task"
    NAVIGATE_TO_REMINDERS = "navigate.reminders"


class NotificationEvent(BaseModel):
    """Payload delivered to observers."""

    event_type: EventType = Field(description="Event type")
    notification_id: str | None = Field(default=None, description="Notification identifier")
    timestamp: datetime = Field(default_factory=datetime.now, description="Event time")
    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific data")
