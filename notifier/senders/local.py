"""Direct local delivery through the host notification platform."""

import asyncio
import logging

from notifier.models.notification import ScheduledNotification
from notifier.platform.base import DisplayedNotification, DisplayOptions, NotificationPlatform
from notifier.senders.base import NotificationSender
from notifier.services.settings_store import SettingsStore

logger = logging.getLogger(__name__)

VIBRATION_PATTERN = [200, 100, 200]


class LocalNotificationSender(NotificationSender):
    """Displays notifications in the current process.

    A click closes the notification without counting it as dismissed.
    Notifications that do not require interaction close themselves after
    auto_close_seconds.
    """

    def __init__(
        self,
        platform: NotificationPlatform,
        settings_store: SettingsStore,
        default_icon: str = "/favicon.ico",
        default_badge: str = "/favicon.ico",
        auto_close_seconds: float = 10.0,
    ) -> None:
        super().__init__()
        self.platform = platform
        self.settings_store = settings_store
        self.default_icon = default_icon
        self.default_badge = default_badge
        self.auto_close_seconds = auto_close_seconds

    @property
    def name(self) -> str:
        return "local"

    def build_options(self, notification: ScheduledNotification) -> DisplayOptions:
        type_settings = self.settings_store.settings.type_settings(notification.type)
        return DisplayOptions(
            body=notification.body,
            icon=notification.icon or self.default_icon,
            badge=notification.badge or self.default_badge,
            data=notification.delivery_data(),
            actions=[a.model_dump(exclude_none=True) for a in notification.actions],
            require_interaction=notification.require_interaction,
            silent=not (type_settings and type_settings.sound),
            vibrate=VIBRATION_PATTERN if type_settings and type_settings.vibrate else None,
        )

    async def send(self, notification: ScheduledNotification) -> bool:
        try:
            displayed = self.platform.show(notification.title, self.build_options(notification))
        except Exception as e:
            logger.error(
                f"Failed to display notification: {notification.title}",
                extra={"notification_id": notification.id, "error": str(e)},
                exc_info=True,
            )
            return False

        self._attach_handlers(displayed, notification)

        if not notification.require_interaction and self.auto_close_seconds > 0:
            asyncio.get_running_loop().call_later(self.auto_close_seconds, displayed.close)

        logger.info(
            f"Notification sent: {notification.title}",
            extra={"notification_id": notification.id, "sender": self.name},
        )
        return True

    def _attach_handlers(
        self, displayed: DisplayedNotification, notification: ScheduledNotification
    ) -> None:
        clicked = False

        def handle_click(handle: DisplayedNotification, action: str | None) -> None:
            nonlocal clicked
            clicked = True
            if self._on_click is not None:
                self._on_click(notification, action)
            handle.close()

        def handle_close(handle: DisplayedNotification) -> None:
            if not clicked and self._on_close is not None:
                self._on_close(notification)

        displayed.on_click = handle_click
        displayed.on_close = handle_close
