"""Wiring for one notification scheduler instance.

Everything the scheduler needs (storage, platform, senders, worker,
backends) is built here once and passed in explicitly, so tests and the
HTTP app can each own an isolated instance.
"""

import logging

from notifier.backends.background import BackgroundWorkerBackend
from notifier.config import Settings
from notifier.db.session import build_engine
from notifier.events.dispatcher import EventDispatcher
from notifier.models.permission import PermissionStatus
from notifier.platform.base import NotificationPlatform
from notifier.platform.headless import HeadlessPlatform
from notifier.senders.base import NotificationSender
from notifier.senders.local import LocalNotificationSender
from notifier.senders.onesignal import OneSignalSender, PushAudience
from notifier.services.permission import PermissionProbe
from notifier.services.scheduler import NotificationScheduler
from notifier.services.settings_store import SettingsStore
from notifier.services.stats import StatsRecorder
from notifier.services.subscriptions import PushSubscriptionRegistry
from notifier.services.timeutil import Clock, system_clock
from notifier.storage.base import KeyValueStore
from notifier.storage.memory import MemoryStore
from notifier.storage.sql import SQLStore
from notifier.workers.notification_worker import NotificationWorker

logger = logging.getLogger(__name__)


class NotificationContext:
    """Owns a scheduler and its collaborators."""

    def __init__(
        self,
        settings: Settings,
        storage: KeyValueStore,
        platform: NotificationPlatform,
        scheduler: NotificationScheduler,
        worker: NotificationWorker | None,
        push: OneSignalSender | None,
        subscriptions: PushSubscriptionRegistry,
    ) -> None:
        self.settings = settings
        self.storage = storage
        self.platform = platform
        self.scheduler = scheduler
        self.worker = worker
        self.push = push
        self.subscriptions = subscriptions
        self._started = False

    @classmethod
    def build(
        cls,
        settings: Settings,
        storage: KeyValueStore | None = None,
        platform: NotificationPlatform | None = None,
        clock: Clock = system_clock,
    ) -> "NotificationContext":
        """Assemble a context from configuration.

        Args:
            settings: Loaded environment settings
            storage: Key-value store; SQL when DATABASE_URL is set, else in-memory
            platform: Display platform; headless by default
            clock: Source of the current time
        """
        if storage is None:
            if settings.DATABASE_URL:
                storage = SQLStore(build_engine(settings.DATABASE_URL))
            else:
                logger.info("DATABASE_URL not set, using in-memory storage")
                storage = MemoryStore()

        if platform is None:
            platform = HeadlessPlatform(permission=PermissionStatus(settings.PLATFORM_PERMISSION))

        probe = PermissionProbe(platform, clock=clock)
        settings_store = SettingsStore(
            storage,
            storage_key=settings.SETTINGS_STORAGE_KEY,
            default_permission=probe.get_state().permission,
        )
        stats = StatsRecorder(storage, storage_key=settings.STATS_STORAGE_KEY, clock=clock)

        subscriptions = PushSubscriptionRegistry(
            storage, storage_key=settings.PUSH_SUBSCRIPTIONS_STORAGE_KEY, clock=clock
        )
        push = cls._build_push(settings, subscriptions)

        worker = None
        background = None
        if settings.ENABLE_BACKGROUND_WORKER:
            # The worker gets its own sender instances so their click and
            # close handlers report back through the worker outbox.
            worker = NotificationWorker(
                senders=cls._build_senders(settings, platform, settings_store, subscriptions),
                storage=storage,
                storage_key=settings.WORKER_STORAGE_KEY,
                clock=clock,
                stale_after_seconds=settings.STALE_AFTER_SECONDS,
            )
            background = BackgroundWorkerBackend(
                worker, ack_timeout=settings.WORKER_ACK_TIMEOUT_SECONDS
            )

        scheduler = NotificationScheduler(
            settings_store=settings_store,
            stats=stats,
            probe=probe,
            senders=cls._build_senders(settings, platform, settings_store, subscriptions),
            dispatcher=EventDispatcher(),
            background=background,
            clock=clock,
            max_queue_size=settings.MAX_QUEUE_SIZE,
            stale_after_seconds=settings.STALE_AFTER_SECONDS,
            sweep_interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
        )
        return cls(settings, storage, platform, scheduler, worker, push, subscriptions)

    @staticmethod
    def _build_push(
        settings: Settings, subscriptions: PushSubscriptionRegistry
    ) -> OneSignalSender | None:
        if not settings.onesignal_configured:
            return None
        audience = PushAudience(
            external_user_ids=[settings.NOTIFIER_USER_ID] if settings.NOTIFIER_USER_ID else []
        )
        return OneSignalSender(
            app_id=settings.ONESIGNAL_APP_ID,
            rest_api_key=settings.ONESIGNAL_REST_API_KEY,
            audience=audience,
            subscriptions=subscriptions,
            api_url=settings.ONESIGNAL_API_URL,
            timeout=settings.ONESIGNAL_TIMEOUT_SECONDS,
        )

    @classmethod
    def _build_senders(
        cls,
        settings: Settings,
        platform: NotificationPlatform,
        settings_store: SettingsStore,
        subscriptions: PushSubscriptionRegistry,
    ) -> list[NotificationSender]:
        senders: list[NotificationSender] = [
            LocalNotificationSender(
                platform,
                settings_store,
                default_icon=settings.DEFAULT_ICON,
                default_badge=settings.DEFAULT_BADGE,
                auto_close_seconds=settings.AUTO_CLOSE_SECONDS,
            )
        ]
        push = cls._build_push(settings, subscriptions)
        if push is not None:
            senders.append(push)
        return senders

    async def start(self) -> None:
        """Start the worker, then the scheduler's sweep and event pump."""
        if self._started:
            return
        if self.worker is not None:
            await self.worker.start()
        self.scheduler.start()
        self._started = True
        logger.info("Notification context started")

    async def stop(self) -> None:
        if not self._started:
            return
        await self.scheduler.stop()
        if self.worker is not None:
            await self.worker.stop()

        senders = list(self.scheduler.senders)
        if self.worker is not None:
            senders.extend(self.worker.senders)
        if self.push is not None:
            senders.append(self.push)
        for sender in senders:
            await sender.aclose()

        self._started = False
        logger.info("Notification context stopped")
