"""Background execution context for scheduled notifications.

The worker runs as its own asyncio task and is addressed only through
messages. It keeps its pending set in the key-value store so that a
restart (new process, new scheduler) picks the schedule back up:
1. start() restores persisted entries and re-arms their timers
2. SCHEDULE/CANCEL/CANCEL_ALL/GET requests are acknowledged via reply futures
3. At fire time it delivers through its own senders and posts NOTIFICATION_SENT
4. Clicks and closes on what it delivered come back as NOTIFICATION_CLICKED
   and NOTIFICATION_DISMISSED events
"""

import asyncio
import json
import logging
from datetime import timedelta
from typing import Any

from pydantic import ValidationError

from notifier.models.notification import ScheduledNotification
from notifier.senders.base import NotificationSender
from notifier.services.timeutil import Clock, system_clock, to_local_naive
from notifier.storage.base import KeyValueStore
from notifier.workers.messages import MessageType, WorkerMessage

logger = logging.getLogger(__name__)


class NotificationWorker:
    """Long-lived notification scheduler addressed by message passing."""

    def __init__(
        self,
        senders: list[NotificationSender],
        storage: KeyValueStore,
        storage_key: str = "notification_worker_schedule",
        clock: Clock = system_clock,
        stale_after_seconds: float = 3600.0,
    ) -> None:
        """Initialize the worker.

        Args:
            senders: Delivery mechanisms, tried in order
            storage: Store for the persisted pending set
            storage_key: Key of the persisted pending set
            clock: Source of the current time
            stale_after_seconds: Restored entries later than this are dropped
        """
        self.senders = senders
        self.storage = storage
        self.storage_key = storage_key
        self.clock = clock
        self.stale_after = timedelta(seconds=stale_after_seconds)

        self.inbox: asyncio.Queue[WorkerMessage] = asyncio.Queue()
        self.outbox: asyncio.Queue[WorkerMessage] = asyncio.Queue()

        self._scheduled: dict[str, ScheduledNotification] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._pending_fires: set[asyncio.Task] = set()
        self._task: asyncio.Task | None = None
        self._logger = logging.getLogger(self.__class__.__name__)

        for sender in self.senders:
            sender.bind(self._handle_click, self._handle_close)

    @property
    def worker_name(self) -> str:
        return "NotificationWorker"

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Restore the persisted schedule and start processing messages."""
        if self.is_running:
            return

        self._restore()
        self._task = asyncio.create_task(self._run(), name=self.worker_name)
        self._logger.info(
            f"[{self.worker_name}] Started",
            extra={"restored": len(self._scheduled)},
        )

    async def stop(self) -> None:
        """Stop processing. The persisted schedule is kept for the next start."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._scheduled.clear()

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        for task in list(self._pending_fires):
            task.cancel()
        self._pending_fires.clear()
        self._logger.info(f"[{self.worker_name}] Stopped")

    def post(self, message: WorkerMessage) -> None:
        """Deliver a message to the worker's inbox."""
        self.inbox.put_nowait(message)

    async def _run(self) -> None:
        while True:
            message = await self.inbox.get()
            try:
                self._handle_message(message)
            except Exception as e:
                self._logger.error(
                    f"[{self.worker_name}] Failed to handle {message.type.value}",
                    extra={"error": str(e)},
                    exc_info=True,
                )
                message.fail(e)

    def _handle_message(self, message: WorkerMessage) -> None:
        if message.type == MessageType.SCHEDULE_NOTIFICATION:
            notification = ScheduledNotification.model_validate(message.data["notification"])
            self._schedule(notification)
            message.respond({"scheduled": True, "id": notification.id})

        elif message.type == MessageType.CANCEL_NOTIFICATION:
            cancelled = self._cancel(message.data["notification_id"])
            message.respond({"cancelled": cancelled})

        elif message.type == MessageType.CANCEL_ALL_NOTIFICATIONS:
            count = len(self._scheduled)
            for notification_id in list(self._scheduled):
                self._cancel(notification_id, persist=False)
            self._persist()
            message.respond({"cancelled": count})

        elif message.type == MessageType.GET_SCHEDULED_NOTIFICATIONS:
            message.respond([n.model_dump(mode="json") for n in self._scheduled.values()])

        else:
            self._logger.warning(
                f"[{self.worker_name}] Unknown message type: {message.type.value}"
            )
            message.fail(ValueError(f"Unsupported message type {message.type.value}"))

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _schedule(self, notification: ScheduledNotification, persist: bool = True) -> None:
        existing = self._timers.pop(notification.id, None)
        if existing is not None:
            existing.cancel()

        delay = (to_local_naive(notification.scheduled_time) - self.clock()).total_seconds()
        loop = asyncio.get_running_loop()
        self._scheduled[notification.id] = notification
        self._timers[notification.id] = loop.call_later(
            max(delay, 0.0), self._on_timer, notification.id
        )
        if persist:
            self._persist()

        self._logger.debug(
            f"[{self.worker_name}] Scheduled {notification.id} in {max(delay, 0.0):.0f}s",
            extra={"notification_id": notification.id},
        )

    def _cancel(self, notification_id: str, persist: bool = True) -> bool:
        handle = self._timers.pop(notification_id, None)
        if handle is not None:
            handle.cancel()
        removed = self._scheduled.pop(notification_id, None) is not None
        if removed and persist:
            self._persist()
        return removed

    def _on_timer(self, notification_id: str) -> None:
        task = asyncio.create_task(self.fire(notification_id))
        self._pending_fires.add(task)
        task.add_done_callback(self._pending_fires.discard)

    async def fire(self, notification_id: str) -> bool:
        """Deliver a held notification now and report it to the scheduler."""
        self._timers.pop(notification_id, None)
        notification = self._scheduled.pop(notification_id, None)
        if notification is None:
            return False
        self._persist()

        for sender in self.senders:
            try:
                delivered = await sender.send(notification)
            except Exception as e:
                self._logger.error(
                    f"[{self.worker_name}] Sender {sender.name} raised for {notification_id}",
                    extra={"notification_id": notification_id, "error": str(e)},
                    exc_info=True,
                )
                delivered = False

            if delivered:
                self.outbox.put_nowait(
                    WorkerMessage(
                        type=MessageType.NOTIFICATION_SENT,
                        data={"notification": notification.model_dump(mode="json"), "sender": sender.name},
                    )
                )
                return True

        self._logger.error(
            f"[{self.worker_name}] All senders failed for {notification_id}",
            extra={"notification_id": notification_id},
        )
        return False

    # ------------------------------------------------------------------
    # Interaction events
    # ------------------------------------------------------------------

    def _handle_click(self, notification: ScheduledNotification, action: str | None) -> None:
        self.outbox.put_nowait(
            WorkerMessage(
                type=MessageType.NOTIFICATION_CLICKED,
                data={**notification.delivery_data(), "action": action},
            )
        )

    def _handle_close(self, notification: ScheduledNotification) -> None:
        self.outbox.put_nowait(
            WorkerMessage(
                type=MessageType.NOTIFICATION_DISMISSED,
                data=notification.delivery_data(),
            )
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        try:
            self.storage.set(
                self.storage_key,
                json.dumps([n.model_dump(mode="json") for n in self._scheduled.values()]),
            )
        except Exception as e:
            self._logger.warning(
                f"[{self.worker_name}] Failed to persist schedule",
                extra={"error": str(e)},
            )

    def _load_persisted(self) -> list[dict[str, Any]]:
        try:
            raw = self.storage.get(self.storage_key)
            entries = json.loads(raw) if raw else []
        except Exception as e:
            self._logger.warning(
                f"[{self.worker_name}] Failed to load persisted schedule",
                extra={"error": str(e)},
            )
            return []
        return entries if isinstance(entries, list) else []

    def _restore(self) -> None:
        now = self.clock()
        dropped = 0
        for entry in self._load_persisted():
            try:
                notification = ScheduledNotification.model_validate(entry)
            except ValidationError:
                dropped += 1
                continue

            if now - to_local_naive(notification.scheduled_time) > self.stale_after:
                dropped += 1
                continue
            self._schedule(notification, persist=False)

        self._persist()
        if dropped:
            self._logger.info(
                f"[{self.worker_name}] Dropped {dropped} stale or invalid entries on restore"
            )
