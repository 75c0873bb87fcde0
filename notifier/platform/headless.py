"""Headless platform for servers and tests.

Notifications are logged and kept in memory instead of being drawn on a
screen. Permission is fixed at construction; requesting permission while
it is still "default" grants it, mirroring a user accepting the prompt.
"""

import logging

from notifier.models.permission import PermissionStatus
from notifier.platform.base import (
    DisplayedNotification,
    DisplayOptions,
    NotificationPlatform,
)

logger = logging.getLogger(__name__)


class HeadlessPlatform(NotificationPlatform):
    """In-memory notification platform."""

    def __init__(
        self,
        permission: PermissionStatus = PermissionStatus.DEFAULT,
        supported: bool = True,
        grant_on_request: bool = True,
    ) -> None:
        self._permission = permission
        self._supported = supported
        self._grant_on_request = grant_on_request
        self.prompt_count = 0
        self.shown: list[DisplayedNotification] = []

    def is_supported(self) -> bool:
        return self._supported

    def permission(self) -> PermissionStatus:
        if not self._supported:
            return PermissionStatus.DENIED
        return self._permission

    async def request_permission(self) -> PermissionStatus:
        if not self._supported:
            return PermissionStatus.DENIED

        self.prompt_count += 1
        if self._permission == PermissionStatus.DEFAULT:
            self._permission = (
                PermissionStatus.GRANTED if self._grant_on_request else PermissionStatus.DENIED
            )
        return self._permission

    def show(self, title: str, options: DisplayOptions) -> DisplayedNotification:
        if not self._supported:
            raise RuntimeError("Notifications are not supported on this platform")
        if self._permission != PermissionStatus.GRANTED:
            raise PermissionError("Notification permission not granted")

        displayed = DisplayedNotification(title, options)
        self.shown.append(displayed)
        logger.info(
            f"Displayed notification: {title}",
            extra={"notification_id": options.data.get("notificationId")},
        )
        return displayed
