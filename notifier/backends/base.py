"""Delivery backend interface.

A backend holds pending notifications until their fire time. The
scheduler keeps backends in preference order and falls through to the
next one when a backend is unavailable or declines.
"""

from abc import ABC, abstractmethod

from notifier.models.notification import ScheduledNotification


class DeliveryBackend(ABC):
    """Abstract holder of pending notifications."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend name for logging and queue bookkeeping."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can accept notifications right now."""
        pass

    @abstractmethod
    async def try_schedule(self, notification: ScheduledNotification) -> bool:
        """Hold a notification until its fire time.

        Returns:
            True if the backend accepted it, False to let the caller fall back
        """
        pass

    @abstractmethod
    async def cancel(self, notification_id: str) -> bool:
        """Drop a pending notification. False when the id is unknown."""
        pass

    @abstractmethod
    async def cancel_all(self) -> None:
        """Drop every pending notification."""
        pass

    @abstractmethod
    async def list(self) -> list[ScheduledNotification]:
        """Notifications currently held."""
        pass
