"""Bridge to the background notification worker.

Requests are posted to the worker with a reply future and must be
acknowledged within ack_timeout seconds. A missing or late acknowledgement
is a soft failure: try_schedule returns False and the scheduler falls back
to the foreground backend. Events posted by the worker (sent, clicked,
dismissed) are pumped to a listener supplied by the owner.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from notifier.backends.base import DeliveryBackend
from notifier.models.notification import ScheduledNotification
from notifier.workers.messages import MessageType, WorkerMessage

logger = logging.getLogger(__name__)

WorkerEventListener = Callable[[WorkerMessage], None]


class WorkerChannel(Protocol):
    """What the bridge needs from a background worker."""

    outbox: asyncio.Queue

    @property
    def is_running(self) -> bool: ...

    def post(self, message: WorkerMessage) -> None: ...


class WorkerTimeoutError(Exception):
    """The background worker did not acknowledge in time."""


class BackgroundWorkerBackend(DeliveryBackend):
    """Delegates scheduling to a NotificationWorker."""

    def __init__(
        self,
        worker: WorkerChannel | None,
        ack_timeout: float = 5.0,
        on_event: WorkerEventListener | None = None,
    ) -> None:
        self.worker = worker
        self.ack_timeout = ack_timeout
        self.on_event = on_event
        self._pump: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return "background"

    def is_available(self) -> bool:
        return self.worker is not None and self.worker.is_running

    # ------------------------------------------------------------------
    # Event pump
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin forwarding worker events to on_event."""
        if self.worker is None or self._pump is not None:
            return
        self._pump = asyncio.create_task(self._pump_events(), name="worker-event-pump")

    async def stop(self) -> None:
        if self._pump is not None:
            self._pump.cancel()
            try:
                await self._pump
            except asyncio.CancelledError:
                pass
            self._pump = None

    async def _pump_events(self) -> None:
        while True:
            message = await self.worker.outbox.get()
            if self.on_event is None:
                continue
            try:
                self.on_event(message)
            except Exception as e:
                logger.error(
                    f"Worker event handler failed for {message.type.value}",
                    extra={"error": str(e)},
                    exc_info=True,
                )

    # ------------------------------------------------------------------
    # Request/response
    # ------------------------------------------------------------------

    async def _request(self, message_type: MessageType, data: dict[str, Any] | None = None) -> Any:
        """Post a request and wait for its acknowledgement.

        Raises:
            WorkerTimeoutError: If no acknowledgement arrives in time
        """
        reply: asyncio.Future = asyncio.get_running_loop().create_future()
        self.worker.post(WorkerMessage(type=message_type, data=data or {}, reply=reply))
        try:
            return await asyncio.wait_for(reply, timeout=self.ack_timeout)
        except asyncio.TimeoutError as e:
            raise WorkerTimeoutError(
                f"{message_type.value} not acknowledged within {self.ack_timeout}s"
            ) from e

    async def try_schedule(self, notification: ScheduledNotification) -> bool:
        if not self.is_available():
            logger.warning("Background worker not available, falling back to foreground scheduling")
            return False

        try:
            ack = await self._request(
                MessageType.SCHEDULE_NOTIFICATION,
                {"notification": notification.model_dump(mode="json")},
            )
        except WorkerTimeoutError as e:
            logger.warning(str(e), extra={"notification_id": notification.id})
            # The worker may still process the request later
            self.worker.post(
                WorkerMessage(
                    type=MessageType.CANCEL_NOTIFICATION,
                    data={"notification_id": notification.id},
                )
            )
            return False
        except Exception as e:
            logger.error(
                "Background worker rejected notification",
                extra={"notification_id": notification.id, "error": str(e)},
            )
            return False

        return bool(ack and ack.get("scheduled"))

    async def cancel(self, notification_id: str) -> bool:
        if not self.is_available():
            return False
        try:
            ack = await self._request(
                MessageType.CANCEL_NOTIFICATION, {"notification_id": notification_id}
            )
        except Exception as e:
            logger.warning(
                "Failed to cancel notification via background worker",
                extra={"notification_id": notification_id, "error": str(e)},
            )
            return False
        return bool(ack and ack.get("cancelled"))

    async def cancel_all(self) -> None:
        if not self.is_available():
            return
        try:
            await self._request(MessageType.CANCEL_ALL_NOTIFICATIONS)
        except Exception as e:
            logger.warning(
                "Failed to cancel all notifications via background worker",
                extra={"error": str(e)},
            )

    async def list(self) -> list[ScheduledNotification]:
        if not self.is_available():
            return []
        try:
            entries = await self._request(MessageType.GET_SCHEDULED_NOTIFICATIONS)
            return [ScheduledNotification.model_validate(entry) for entry in entries or []]
        except Exception as e:
            logger.warning(
                "Failed to get background worker notifications",
                extra={"error": str(e)},
            )
            return []
