"""Host notification capability."""

from notifier.platform.base import (
    DisplayedNotification,
    DisplayOptions,
    NotificationPlatform,
)
from notifier.platform.headless import HeadlessPlatform

__all__ = [
    "DisplayedNotification",
    "DisplayOptions",
    "NotificationPlatform",
    "HeadlessPlatform",
]
