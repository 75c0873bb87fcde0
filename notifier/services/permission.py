"""Permission and capability probe."""

import logging

from notifier.models.permission import PermissionState, PermissionStatus
from notifier.platform.base import NotificationPlatform
from notifier.services.timeutil import Clock, system_clock

logger = logging.getLogger(__name__)


class PermissionProbe:
    """Reads capability and permission from the platform.

    Never prompts on its own; request_permission() must be called from an
    explicit user action.
    """

    def __init__(self, platform: NotificationPlatform, clock: Clock = system_clock) -> None:
        self.platform = platform
        self.clock = clock

    def is_supported(self) -> bool:
        return self.platform.is_supported()

    def get_state(self) -> PermissionState:
        """Current capability and permission, stamped with the check time."""
        is_supported = self.platform.is_supported()
        permission = self.platform.permission() if is_supported else PermissionStatus.DENIED
        return PermissionState(
            permission=permission,
            is_supported=is_supported,
            last_checked=self.clock(),
        )

    async def request_permission(self) -> PermissionStatus:
        """Prompt for permission once. Errors are reported as denied."""
        if not self.platform.is_supported():
            logger.warning("Notifications are not supported on this platform")
            return PermissionStatus.DENIED

        try:
            permission = await self.platform.request_permission()
        except Exception as e:
            logger.error(
                "Failed to request notification permission",
                extra={"error": str(e)},
                exc_info=True,
            )
            return PermissionStatus.DENIED

        logger.info(f"Notification permission: {permission.value}")
        return permission
