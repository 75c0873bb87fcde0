"""Tests for notification settings persistence and merging."""

import json

import pytest
from pydantic import ValidationError

from notifier.models.notification import NotificationType
from notifier.models.permission import PermissionStatus
from notifier.models.preferences import (
    NotificationSettingsUpdate,
    QuietHoursUpdate,
    StudyPreferences,
    TypeSettingsUpdate,
)
from notifier.services.settings_store import SettingsStore, merge_settings
from notifier.storage.base import KeyValueStore, StorageError
from notifier.storage.memory import MemoryStore


class BrokenStore(KeyValueStore):
    """Store whose every operation fails."""

    def get(self, key):
        raise StorageError("disk unavailable")

    def set(self, key, value):
        raise StorageError("disk unavailable")

    def delete(self, key):
        raise StorageError("disk unavailable")


class TestLoad:
    """Tests for loading settings."""

    def test_defaults_when_empty(self):
        settings = SettingsStore(MemoryStore()).get()

        assert settings.enabled is True
        assert settings.max_daily_notifications == 20
        assert settings.quiet_hours.enabled is False
        assert settings.quiet_hours.start_time == "22:00"
        assert settings.types[NotificationType.TASK_DUE].advance_time == 15
        assert settings.types[NotificationType.STUDY_REMINDER].sound is True
        assert settings.types[NotificationType.BREAK_REMINDER].vibrate is True

    def test_older_blob_merges_onto_defaults(self):
        """A stored blob missing newer types still yields every type."""
        storage = MemoryStore({
            "notification_settings": json.dumps({
                "enabled": True,
                "types": {"task_due": {"enabled": False}},
                "quiet_hours": {"enabled": True},
                "max_daily_notifications": 5,
            })
        })

        settings = SettingsStore(storage).get()

        assert settings.max_daily_notifications == 5
        assert settings.types[NotificationType.TASK_DUE].enabled is False
        # Stored partial type keeps default fields it did not mention
        assert settings.types[NotificationType.TASK_DUE].advance_time == 15
        assert settings.types[NotificationType.STREAK_REMINDER].enabled is True
        assert settings.quiet_hours.enabled is True
        assert settings.quiet_hours.end_time == "07:00"

    def test_enabled_only_blob_gets_full_defaults(self):
        storage = MemoryStore({"notification_settings": json.dumps({"enabled": True})})

        settings = SettingsStore(storage).get()

        assert settings.enabled is True
        assert set(settings.types) == set(NotificationType)
        assert settings.types[NotificationType.TASK_DUE].advance_time == 15
        assert settings.quiet_hours.start_time == "22:00"
        assert settings.quiet_hours.end_time == "07:00"
        assert settings.max_daily_notifications == 20
        assert settings.permission == PermissionStatus.DEFAULT

    def test_unknown_types_dropped(self):
        storage = MemoryStore({
            "notification_settings": json.dumps({"types": {"legacy_type": {"enabled": False}}})
        })

        settings = SettingsStore(storage).get()

        assert "legacy_type" not in {t.value for t in settings.types}

    def test_corrupt_blob_uses_defaults(self):
        storage = MemoryStore({"notification_settings": "{not json"})

        settings = SettingsStore(storage).get()

        assert settings.enabled is True
        assert settings.max_daily_notifications == 20

    def test_invalid_values_use_defaults(self):
        storage = MemoryStore({
            "notification_settings": json.dumps({"quiet_hours": {"start_time": "99:99"}})
        })

        settings = SettingsStore(storage).get()

        assert settings.quiet_hours.start_time == "22:00"

    def test_storage_failure_uses_defaults(self):
        store = SettingsStore(BrokenStore())

        assert store.get().enabled is True

    def test_default_permission(self):
        store = SettingsStore(MemoryStore(), default_permission=PermissionStatus.GRANTED)

        assert store.get().permission == PermissionStatus.GRANTED


class TestUpdate:
    """Tests for partial updates."""

    def test_update_persists(self):
        storage = MemoryStore()
        store = SettingsStore(storage)

        store.update(NotificationSettingsUpdate(max_daily_notifications=3))

        assert SettingsStore(storage).get().max_daily_notifications == 3

    def test_update_merges_nested_keys(self):
        store = SettingsStore(MemoryStore())

        updated = store.update(
            NotificationSettingsUpdate(
                types={NotificationType.GENERAL: TypeSettingsUpdate(sound=True)},
                quiet_hours=QuietHoursUpdate(enabled=True),
            )
        )

        assert updated.types[NotificationType.GENERAL].sound is True
        assert updated.types[NotificationType.GENERAL].enabled is True
        assert updated.types[NotificationType.TASK_DUE].advance_time == 15
        assert updated.quiet_hours.enabled is True
        assert updated.quiet_hours.start_time == "22:00"

    def test_invalid_update_rejected(self):
        store = SettingsStore(MemoryStore())

        with pytest.raises(ValidationError):
            store.update({"quiet_hours": {"start_time": "24:61"}})

        assert store.get().quiet_hours.start_time == "22:00"

    def test_save_failure_keeps_memory_copy(self):
        store = SettingsStore(BrokenStore())

        updated = store.update({"enabled": False})

        assert updated.enabled is False
        assert store.settings.enabled is False

    def test_get_returns_copy(self):
        store = SettingsStore(MemoryStore())

        copy = store.get()
        copy.max_daily_notifications = 1

        assert store.get().max_daily_notifications == 20

    def test_set_permission(self):
        store = SettingsStore(MemoryStore())

        store.set_permission(PermissionStatus.DENIED)

        assert store.get().permission == PermissionStatus.DENIED

    def test_update_from_preferences(self):
        store = SettingsStore(MemoryStore())

        updated = store.update_from_preferences(
            StudyPreferences(
                enable_study_reminders=False,
                enable_break_reminders=True,
                reminder_advance_time=12,
            )
        )

        assert updated.types[NotificationType.STUDY_REMINDER].enabled is False
        assert updated.types[NotificationType.STUDY_REMINDER].advance_time == 12
        assert updated.types[NotificationType.BREAK_REMINDER].enabled is True
        assert updated.types[NotificationType.BREAK_REMINDER].advance_time == 12


class TestMergeSettings:
    """Tests for the merge helper."""

    def test_top_level_replaces(self):
        merged = merge_settings({"enabled": True, "max_daily_notifications": 20}, {"enabled": False})

        assert merged == {"enabled": False, "max_daily_notifications": 20}

    def test_unknown_top_level_keys_ignored(self):
        merged = merge_settings({"enabled": True}, {"theme": "dark"})

        assert "theme" not in merged
