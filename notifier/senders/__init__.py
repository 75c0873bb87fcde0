"""Delivery mechanisms invoked at fire time."""

from notifier.senders.base import NotificationSender
from notifier.senders.local import LocalNotificationSender
from notifier.senders.onesignal import OneSignalSender, PushAudience

__all__ = [
    "NotificationSender",
    "LocalNotificationSender",
    "OneSignalSender",
    "PushAudience",
]
