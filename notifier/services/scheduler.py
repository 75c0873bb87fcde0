"""Notification scheduler: validation, quiet hours and backend selection.

Flow for schedule():
1. Reject (return False, no side effects) when notifications are
   unsupported, globally disabled, disabled for the type, not permitted,
   the queue is full, or today's sent count reached the daily cap
2. Deliver immediately when the scheduled time is not in the future
3. Push the time to the end of quiet hours when it falls inside them
4. Hand the notification to the first backend that accepts it
   (background worker preferred, foreground timers as fallback)
5. Count it as scheduled and record it in the queue

Nothing here raises to the caller on delivery problems; failures end as
"not delivered" and are logged.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any

from notifier.backends.background import BackgroundWorkerBackend
from notifier.backends.base import DeliveryBackend
from notifier.backends.foreground import ForegroundTimerBackend
from notifier.events.dispatcher import EventDispatcher
from notifier.events.types import EventType, NotificationEvent
from notifier.models.notification import NotificationType, QueueItem, ScheduledNotification
from notifier.models.permission import PermissionState, PermissionStatus
from notifier.models.preferences import (
    NotificationSettings,
    NotificationSettingsUpdate,
    StudyPreferences,
)
from notifier.models.stats import NotificationStats
from notifier.senders.base import NotificationSender
from notifier.services import templates
from notifier.services.permission import PermissionProbe
from notifier.services.quiet_hours import is_quiet_time, next_available_time
from notifier.services.settings_store import SettingsStore
from notifier.services.stats import StatsRecorder
from notifier.services.timeutil import Clock, system_clock, to_local_naive
from notifier.workers.messages import MessageType, WorkerMessage

logger = logging.getLogger(__name__)


class NotificationScheduler:
    """Orchestrates scheduling, delivery and lifecycle bookkeeping."""

    def __init__(
        self,
        settings_store: SettingsStore,
        stats: StatsRecorder,
        probe: PermissionProbe,
        senders: list[NotificationSender],
        dispatcher: EventDispatcher | None = None,
        background: BackgroundWorkerBackend | None = None,
        clock: Clock = system_clock,
        max_queue_size: int = 100,
        stale_after_seconds: float = 3600.0,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        """Initialize the scheduler.

        Args:
            settings_store: Source of user preferences
            stats: Daily counters
            probe: Capability and permission probe
            senders: Delivery mechanisms, tried in order at fire time
            dispatcher: Observer list for lifecycle events
            background: Background worker backend, preferred when available
            clock: Source of the current time
            max_queue_size: Queue capacity
            stale_after_seconds: Age past due after which a queued item is dropped
            sweep_interval_seconds: Period of the staleness sweep
        """
        self.settings_store = settings_store
        self.stats = stats
        self.probe = probe
        self.senders = senders
        self.dispatcher = dispatcher or EventDispatcher()
        self.clock = clock
        self.max_queue_size = max_queue_size
        self.stale_after = timedelta(seconds=stale_after_seconds)
        self.sweep_interval_seconds = sweep_interval_seconds

        self.background = background
        self.foreground = ForegroundTimerBackend(self._deliver_from_timer, clock=clock)
        if self.background is not None:
            self.background.on_event = self._handle_worker_event
        self.backends: list[DeliveryBackend] = [
            b for b in (self.background, self.foreground) if b is not None
        ]

        for sender in self.senders:
            sender.bind(self.handle_click, self.handle_dismiss)

        self._queue: dict[str, QueueItem] = {}
        # Queue slots held by placements still awaiting a backend
        self._reserved = 0
        self._sweep_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the staleness sweep and the worker event pump."""
        if self.background is not None:
            self.background.start()
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop(), name="notification-sweep")

    async def stop(self) -> None:
        """Stop the sweep, disarm foreground timers and stop listening to the worker."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

        await self.foreground.close()
        if self.background is not None:
            await self.background.stop()
        self._queue.clear()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                await self.sweep_expired()
            except Exception as e:
                logger.error("Expired notification sweep failed", extra={"error": str(e)}, exc_info=True)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def can_schedule(self, notification: ScheduledNotification) -> bool:
        """Check settings, permission and quotas for a notification."""
        if not self.probe.is_supported():
            logger.warning("Notifications are not supported on this platform")
            return False

        settings = self.settings_store.settings
        if not settings.enabled:
            logger.info("Notifications are disabled")
            return False

        type_settings = settings.type_settings(notification.type)
        if type_settings is None or not type_settings.enabled:
            logger.info(f"Notifications for type {notification.type.value} are disabled")
            return False

        if self.probe.get_state().permission != PermissionStatus.GRANTED:
            logger.info("Notification permission not granted")
            return False

        if len(self._queue) + self._reserved >= self.max_queue_size:
            logger.warning("Notification queue is full")
            return False

        if self.stats.sent_today() >= settings.max_daily_notifications:
            logger.info("Daily notification limit reached")
            return False

        return True

    async def schedule(self, notification: ScheduledNotification) -> bool:
        """Schedule a notification.

        Returns:
            True if accepted (or delivered immediately), False if rejected
        """
        notification = notification.model_copy(
            update={"scheduled_time": to_local_naive(notification.scheduled_time)}
        )
        if not self.can_schedule(notification):
            return False

        # Check and reserve happen before the first await
        self._reserved += 1
        try:
            return await self._place(notification)
        finally:
            self._reserved -= 1

    async def _place(self, notification: ScheduledNotification) -> bool:
        if notification.scheduled_time <= self.clock():
            return await self.deliver_now(notification)

        quiet_hours = self.settings_store.settings.quiet_hours
        if is_quiet_time(notification.scheduled_time, quiet_hours):
            new_time = next_available_time(notification.scheduled_time, quiet_hours)
            logger.info(
                f"Notification falls in quiet hours, delaying to {new_time.isoformat()}",
                extra={"notification_id": notification.id},
            )
            return await self._place(notification.model_copy(update={"scheduled_time": new_time}))

        attempts = 0
        for backend in self.backends:
            if not backend.is_available():
                continue
            if await backend.try_schedule(notification):
                self._record_scheduled(notification, backend, retry_count=attempts)
                return True
            attempts += 1

        logger.error(
            "No delivery backend accepted the notification",
            extra={"notification_id": notification.id},
        )
        return False

    def _record_scheduled(
        self,
        notification: ScheduledNotification,
        backend: DeliveryBackend,
        retry_count: int = 0,
    ) -> None:
        handle = self.foreground.handle_for(notification.id) if backend is self.foreground else None
        self._queue[notification.id] = QueueItem(
            notification=notification,
            backend=backend.name,
            handle=handle,
            retry_count=retry_count,
        )
        self.stats.record_scheduled()
        self._publish(EventType.NOTIFICATION_SCHEDULED, notification.id, {
            "backend": backend.name,
            "scheduled_time": notification.scheduled_time.isoformat(),
        })
        logger.info(
            f"Notification scheduled via {backend.name} for "
            f"{notification.scheduled_time.isoformat()}: {notification.title}",
            extra={
                "notification_id": notification.id,
                "backend": backend.name,
                "retry_count": retry_count,
            },
        )

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def deliver_now(self, notification: ScheduledNotification) -> bool:
        """Deliver through the first sender that succeeds."""
        for sender in self.senders:
            try:
                delivered = await sender.send(notification)
            except Exception as e:
                logger.error(
                    f"Sender {sender.name} raised while delivering",
                    extra={"notification_id": notification.id, "error": str(e)},
                    exc_info=True,
                )
                delivered = False

            if delivered:
                self._record_sent(notification, sender.name)
                return True

        logger.error(
            f"Failed to deliver notification: {notification.title}",
            extra={"notification_id": notification.id},
        )
        return False

    async def _deliver_from_timer(self, notification: ScheduledNotification) -> bool:
        self._queue.pop(notification.id, None)
        return await self.deliver_now(notification)

    def _record_sent(self, notification: ScheduledNotification, sender_name: str) -> None:
        self.stats.record_sent()
        self._publish(EventType.NOTIFICATION_SENT, notification.id, {"sender": sender_name})

    def _handle_worker_event(self, message: WorkerMessage) -> None:
        if message.type == MessageType.NOTIFICATION_SENT:
            notification = ScheduledNotification.model_validate(message.data["notification"])
            self._queue.pop(notification.id, None)
            self._record_sent(notification, message.data.get("sender", "background"))

        elif message.type == MessageType.NOTIFICATION_CLICKED:
            data = message.data
            self.record_click(
                data.get("notificationId"),
                related_task_id=data.get("relatedTaskId"),
                related_reminder_id=data.get("relatedReminderId"),
                action=data.get("action"),
            )

        elif message.type == MessageType.NOTIFICATION_DISMISSED:
            self.record_dismiss(message.data.get("notificationId"))

        else:
            logger.debug(f"Ignoring worker message {message.type.value}")

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def handle_click(self, notification: ScheduledNotification, action: str | None = None) -> None:
        """Route a click on a delivered notification."""
        self.record_click(
            notification.id,
            related_task_id=notification.related_task_id,
            related_reminder_id=notification.related_reminder_id,
            action=action,
        )

    def handle_dismiss(self, notification: ScheduledNotification) -> None:
        self.record_dismiss(notification.id)

    def record_click(
        self,
        notification_id: str | None,
        related_task_id: str | None = None,
        related_reminder_id: str | None = None,
        action: str | None = None,
    ) -> None:
        """Count a click and raise navigation events for related content."""
        self.stats.record_clicked()
        self._publish(EventType.NOTIFICATION_CLICKED, notification_id, {
            "action": action,
            "related_task_id": related_task_id,
            "related_reminder_id": related_reminder_id,
        })

        if related_task_id:
            self._publish(EventType.NAVIGATE_TO_TASK, notification_id, {"task_id": related_task_id})
        elif related_reminder_id:
            self._publish(EventType.NAVIGATE_TO_REMINDERS, notification_id, {
                "reminder_id": related_reminder_id,
            })

    def record_dismiss(self, notification_id: str | None) -> None:
        self.stats.record_dismissed()
        self._publish(EventType.NOTIFICATION_DISMISSED, notification_id)

    # ------------------------------------------------------------------
    # Cancellation and queries
    # ------------------------------------------------------------------

    async def cancel(self, notification_id: str) -> bool:
        """Cancel a pending notification. Unknown ids return False."""
        item = self._queue.pop(notification_id, None)
        cancelled = item is not None

        for backend in self.backends:
            if await backend.cancel(notification_id):
                cancelled = True

        if cancelled:
            self._publish(EventType.NOTIFICATION_CANCELLED, notification_id)
            logger.info(f"Cancelled notification: {notification_id}")
        return cancelled

    async def cancel_all(self) -> None:
        for backend in self.backends:
            await backend.cancel_all()
        self._queue.clear()
        logger.info("All notifications cancelled")

    async def get_queued(self) -> list[ScheduledNotification]:
        """Queued notifications across backends, deduplicated by id.

        The background worker's view wins for ids both sides report.
        """
        merged: dict[str, ScheduledNotification] = {
            notification_id: item.notification for notification_id, item in self._queue.items()
        }
        if self.background is not None:
            for notification in await self.background.list():
                merged[notification.id] = notification
        return sorted(merged.values(), key=lambda n: to_local_naive(n.scheduled_time))

    async def sweep_expired(self) -> int:
        """Drop queued items more than stale_after past their time, without firing."""
        now = self.clock()
        expired = [
            notification_id
            for notification_id, item in self._queue.items()
            if now - item.notification.scheduled_time > self.stale_after
        ]

        for notification_id in expired:
            item = self._queue.pop(notification_id)
            if item.handle is not None:
                item.handle.cancel()
            for backend in self.backends:
                if backend.name == item.backend:
                    await backend.cancel(notification_id)
            self._publish(EventType.NOTIFICATION_EXPIRED, notification_id)

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired notifications")
        return len(expired)

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    # ------------------------------------------------------------------
    # Settings, stats and permission
    # ------------------------------------------------------------------

    def get_settings(self) -> NotificationSettings:
        return self.settings_store.get()

    def update_settings(
        self, partial: NotificationSettingsUpdate | dict[str, Any]
    ) -> NotificationSettings:
        return self.settings_store.update(partial)

    def update_from_preferences(self, preferences: StudyPreferences) -> NotificationSettings:
        return self.settings_store.update_from_preferences(preferences)

    def get_stats(self) -> NotificationStats:
        return self.stats.get()

    def reset_stats(self) -> NotificationStats:
        return self.stats.reset()

    def get_permission_state(self) -> PermissionState:
        return self.probe.get_state()

    async def request_permission(self) -> PermissionStatus:
        """Prompt for permission (call only from a user action) and remember the result."""
        permission = await self.probe.request_permission()
        self.settings_store.set_permission(permission)
        return permission

    # ------------------------------------------------------------------
    # Common notification kinds
    # ------------------------------------------------------------------

    async def schedule_task_due(
        self,
        task_id: str,
        task_title: str,
        due_at: datetime,
        advance_minutes: int | None = None,
    ) -> bool:
        if advance_minutes is None:
            type_settings = self.settings_store.settings.type_settings(NotificationType.TASK_DUE)
            advance_minutes = (type_settings.advance_time if type_settings else None) or 15
        return await self.schedule(
            templates.task_due(task_id, task_title, to_local_naive(due_at), advance_minutes)
        )

    async def schedule_task_reminders(
        self,
        task_id: str,
        task_title: str,
        due_at: datetime,
        offsets: list[int] | tuple[int, ...] | None = None,
    ) -> list[bool]:
        """Schedule a series of task reminders, one per offset in minutes.

        Without offsets the series escalates from the configured advance
        time. Offsets whose reminder time has already passed are skipped
        (False) rather than delivered immediately.
        """
        due_at = to_local_naive(due_at)
        if offsets is None:
            type_settings = self.settings_store.settings.type_settings(NotificationType.TASK_DUE)
            advance = (type_settings.advance_time if type_settings else None) or 15
            offsets = templates.escalating_offsets(advance)

        results = []
        for minutes in offsets:
            if due_at - timedelta(minutes=minutes) <= self.clock():
                logger.info(
                    f"Reminder {minutes} minutes before task {task_id} is in the past, skipping"
                )
                results.append(False)
                continue
            results.append(await self.schedule_task_due(task_id, task_title, due_at, minutes))
        return results

    async def cancel_task_reminders(self, task_id: str) -> int:
        """Cancel every queued reminder tied to a task. Returns how many were cancelled."""
        cancelled = 0
        for notification in await self.get_queued():
            if notification.related_task_id == task_id and await self.cancel(notification.id):
                cancelled += 1
        logger.info(f"Cancelled {cancelled} reminders for task {task_id}")
        return cancelled

    async def schedule_daily_summary(self, preferred_time: str = "18:00") -> bool:
        """Schedule the study summary at the next occurrence of preferred_time (HH:MM)."""
        scheduled_time = templates.next_occurrence(self.clock(), preferred_time)
        return await self.schedule(templates.daily_summary(scheduled_time))

    async def schedule_study_reminder(self, title: str, body: str, scheduled_time: datetime) -> bool:
        return await self.schedule(
            templates.study_reminder(title, body, scheduled_time, now=self.clock())
        )

    async def schedule_break_reminder(self, scheduled_time: datetime) -> bool:
        return await self.schedule(templates.break_reminder(scheduled_time, now=self.clock()))

    async def send_achievement(self, title: str, description: str) -> bool:
        return await self.schedule(templates.achievement(title, description, now=self.clock()))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def subscribe(self, callback, event_types=None):
        """Register an observer; returns an unsubscribe function."""
        return self.dispatcher.subscribe(callback, event_types)

    def _publish(
        self,
        event_type: EventType,
        notification_id: str | None,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.dispatcher.dispatch(
            NotificationEvent(
                event_type=event_type,
                notification_id=notification_id,
                timestamp=self.clock(),
                data=data or {},
            )
        )
