"""Capability surface for displaying notifications on the host.

A platform answers three questions (is display supported, what is the
current permission, ask for permission) and can show a notification.
Shown notifications report clicks and closes through callbacks.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from notifier.models.permission import PermissionStatus


@dataclass
class DisplayOptions:
    """Options passed to the platform display primitive."""

    body: str
    icon: str | None = None
    badge: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    actions: list[dict[str, Any]] = field(default_factory=list)
    require_interaction: bool = False
    silent: bool = False
    vibrate: list[int] | None = None


class DisplayedNotification:
    """Handle to a notification currently shown by the platform."""

    def __init__(self, title: str, options: DisplayOptions) -> None:
        self.title = title
        self.options = options
        self.closed = False
        self.on_click: Callable[["DisplayedNotification", str | None], None] | None = None
        self.on_close: Callable[["DisplayedNotification"], None] | None = None

    def click(self, action: str | None = None) -> None:
        """Deliver a click (optionally on an action button)."""
        if self.on_click is not None:
            self.on_click(self, action)

    def close(self) -> None:
        """Close the notification. Fires on_close once."""
        if self.closed:
            return
        self.closed = True
        if self.on_close is not None:
            self.on_close(self)


class NotificationPlatform(ABC):
    """Abstract host notification capability."""

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether notifications can be displayed at all."""
        pass

    @abstractmethod
    def permission(self) -> PermissionStatus:
        """Current permission grant."""
        pass

    @abstractmethod
    async def request_permission(self) -> PermissionStatus:
        """Prompt for permission once and return the outcome."""
        pass

    @abstractmethod
    def show(self, title: str, options: DisplayOptions) -> DisplayedNotification:
        """Display a notification immediately.

        Raises:
            Exception: If the platform rejects the notification
        """
        pass
