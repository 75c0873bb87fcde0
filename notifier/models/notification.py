"""ScheduledNotification model and queue bookkeeping."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlmodel import Field, SQLModel


class NotificationType(str, Enum):
    """Notification categories, each with its own settings entry."""

    TASK_DUE = "task_due"
    STUDY_REMINDER = "study_reminder"
    BREAK_REMINDER = "break_reminder"
    ACHIEVEMENT = "achievement"
    STREAK_REMINDER = "streak_reminder"
    GENERAL = "general"


class NotificationPriority(str, Enum):
    """Notification priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationAction(SQLModel):
    """An action button shown on a notification."""

    action: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=100)
    icon: str | None = None


class ScheduledNotification(SQLModel):
    """A notification waiting for its delivery time."""

    id: str = Field(default_factory=lambda: uuid4().hex, min_length=1, max_length=255)
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(default="", max_length=2000)
    scheduled_time: datetime
    type: NotificationType = NotificationType.GENERAL
    priority: NotificationPriority = NotificationPriority.MEDIUM
    related_task_id: str | None = None
    related_reminder_id: str | None = None
    icon: str | None = None
    badge: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    actions: list[NotificationAction] = Field(default_factory=list)
    require_interaction: bool = False

    def delivery_data(self) -> dict[str, Any]:
        """Payload attached to a delivered notification for click routing."""
        return {
            **self.data,
            "notificationId": self.id,
            "relatedTaskId": self.related_task_id,
            "relatedReminderId": self.related_reminder_id,
            "type": self.type.value,
        }


class ScheduleResponse(SQLModel):
    """Schema for a schedule request outcome."""

    accepted: bool
    notification_id: str


class QueuedNotificationsResponse(SQLModel):
    """Schema for the merged queue listing."""

    notifications: list[ScheduledNotification]
    total: int


@dataclass
class QueueItem:
    """Scheduler-owned record pairing a notification with its backend handle.

    Attributes:
        notification: The queued notification
        backend: Name of the delivery backend holding it
        handle: Timer handle for the foreground backend, None otherwise
        retry_count: Backends that declined before this one accepted
    """

    notification: ScheduledNotification
    backend: str
    handle: asyncio.TimerHandle | None = None
    retry_count: int = 0
