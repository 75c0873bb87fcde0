"""Shared fixtures for notifier tests."""

from datetime import datetime, timedelta

import pytest

from notifier.events.dispatcher import EventDispatcher
from notifier.events.types import NotificationEvent
from notifier.models.notification import NotificationType, ScheduledNotification
from notifier.models.permission import PermissionStatus
from notifier.platform.headless import HeadlessPlatform
from notifier.senders.local import LocalNotificationSender
from notifier.services.permission import PermissionProbe
from notifier.services.scheduler import NotificationScheduler
from notifier.services.settings_store import SettingsStore
from notifier.services.stats import StatsRecorder
from notifier.storage.memory import MemoryStore


class FakeClock:
    """Settable clock for deterministic tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 11, 12, 0, 0))


@pytest.fixture
def storage() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def platform() -> HeadlessPlatform:
    return HeadlessPlatform(permission=PermissionStatus.GRANTED)


@pytest.fixture
def events() -> list[NotificationEvent]:
    return []


@pytest.fixture
def make_scheduler(clock, storage, platform, events):
    """Factory for schedulers sharing the test's clock, storage and platform."""

    def _make(background=None, **kwargs) -> NotificationScheduler:
        settings_store = SettingsStore(storage)
        dispatcher = EventDispatcher()
        dispatcher.subscribe(events.append)
        scheduler = NotificationScheduler(
            settings_store=settings_store,
            stats=StatsRecorder(storage, clock=clock),
            probe=PermissionProbe(platform, clock=clock),
            senders=[LocalNotificationSender(platform, settings_store)],
            dispatcher=dispatcher,
            background=background,
            clock=clock,
            **kwargs,
        )
        return scheduler

    return _make


@pytest.fixture
def make_notification(clock):
    """Factory for notifications relative to the test clock."""

    def _make(minutes: float = 30, **kwargs) -> ScheduledNotification:
        kwargs.setdefault("title", "Review chapter 3")
        kwargs.setdefault("body", "Flashcards for the midterm")
        kwargs.setdefault("type", NotificationType.GENERAL)
        return ScheduledNotification(
            scheduled_time=clock() + timedelta(minutes=minutes),
            **kwargs,
        )

    return _make
