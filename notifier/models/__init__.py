"""Models for the notification scheduler."""

from notifier.models.notification import (
    NotificationAction,
    NotificationPriority,
    NotificationType,
    QueueItem,
    ScheduledNotification,
)
from notifier.models.permission import PermissionState, PermissionStatus
from notifier.models.preferences import (
    NotificationSettings,
    NotificationSettingsUpdate,
    QuietHours,
    StudyPreferences,
    TypeSettings,
)
from notifier.models.stats import NotificationStats
from notifier.models.storage import StorageEntry
from notifier.models.subscription import PushSubscription

__all__ = [
    "NotificationAction",
    "NotificationPriority",
    "NotificationType",
    "QueueItem",
    "ScheduledNotification",
    "PermissionState",
    "PermissionStatus",
    "NotificationSettings",
    "NotificationSettingsUpdate",
    "QuietHours",
    "StudyPreferences",
    "TypeSettings",
    "NotificationStats",
    "StorageEntry",
    "PushSubscription",
]
