"""In-process timer backend.

Arms one event-loop timer per notification. Everything held here is lost
when the process exits, which is why it is only the fallback.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from notifier.backends.base import DeliveryBackend
from notifier.models.notification import ScheduledNotification
from notifier.services.timeutil import Clock, system_clock, to_local_naive

logger = logging.getLogger(__name__)

DeliverCallback = Callable[[ScheduledNotification], Awaitable[bool]]


class ForegroundTimerBackend(DeliveryBackend):
    """Schedules notifications with loop.call_later."""

    def __init__(self, deliver: DeliverCallback, clock: Clock = system_clock) -> None:
        self.deliver = deliver
        self.clock = clock
        self._pending: dict[str, tuple[ScheduledNotification, asyncio.TimerHandle]] = {}
        self._fires: set[asyncio.Task] = set()

    @property
    def name(self) -> str:
        return "foreground"

    def is_available(self) -> bool:
        return True

    def handle_for(self, notification_id: str) -> asyncio.TimerHandle | None:
        entry = self._pending.get(notification_id)
        return entry[1] if entry else None

    async def try_schedule(self, notification: ScheduledNotification) -> bool:
        delay = (to_local_naive(notification.scheduled_time) - self.clock()).total_seconds()
        await self.cancel(notification.id)

        handle = asyncio.get_running_loop().call_later(
            max(delay, 0.0), self._on_timer, notification.id
        )
        self._pending[notification.id] = (notification, handle)
        return True

    def _on_timer(self, notification_id: str) -> None:
        task = asyncio.create_task(self.fire(notification_id))
        self._fires.add(task)
        task.add_done_callback(self._fires.discard)

    async def fire(self, notification_id: str) -> bool:
        """Deliver a pending notification now (the timer's action)."""
        entry = self._pending.pop(notification_id, None)
        if entry is None:
            return False

        notification, handle = entry
        handle.cancel()
        try:
            return await self.deliver(notification)
        except Exception as e:
            logger.error(
                f"Foreground delivery failed for {notification_id}",
                extra={"notification_id": notification_id, "error": str(e)},
                exc_info=True,
            )
            return False

    async def cancel(self, notification_id: str) -> bool:
        entry = self._pending.pop(notification_id, None)
        if entry is None:
            return False
        entry[1].cancel()
        return True

    async def cancel_all(self) -> None:
        for _, handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

    async def list(self) -> list[ScheduledNotification]:
        return [notification for notification, _ in self._pending.values()]

    async def close(self) -> None:
        """Cancel timers and any in-flight deliveries."""
        await self.cancel_all()
        for task in list(self._fires):
            task.cancel()
        self._fires.clear()
