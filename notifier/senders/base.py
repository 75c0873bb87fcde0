"""Delivery mechanism interface used at fire time."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from notifier.models.notification import ScheduledNotification

ClickHandler = Callable[[ScheduledNotification, str | None], None]
CloseHandler = Callable[[ScheduledNotification], None]


class NotificationSender(ABC):
    """Delivers a notification immediately.

    Senders never raise on delivery problems; they log and return False.
    Interaction callbacks (click/close) are bound by whoever owns the
    sender so events route back to the right stats recorder.
    """

    def __init__(self) -> None:
        self._on_click: ClickHandler | None = None
        self._on_close: CloseHandler | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the sender name for logging."""
        pass

    @abstractmethod
    async def send(self, notification: ScheduledNotification) -> bool:
        """Deliver now. Returns True on success."""
        pass

    def bind(self, on_click: ClickHandler | None, on_close: CloseHandler | None) -> None:
        """Route user interaction with delivered notifications."""
        self._on_click = on_click
        self._on_close = on_close

    async def aclose(self) -> None:
        """Release resources held by the sender."""
        return None
