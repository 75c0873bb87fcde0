"""Settings store for per-user notification preferences.

Settings are persisted as one JSON blob. Loading merges the stored blob
onto the factory defaults key by key, so data written by an older
release (missing newer notification types) still loads cleanly.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from notifier.models.notification import NotificationType
from notifier.models.permission import PermissionStatus
from notifier.models.preferences import (
    NotificationSettings,
    NotificationSettingsUpdate,
    StudyPreferences,
)
from notifier.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

NESTED_KEYS = ("quiet_hours",)


def _merge_types(base: dict[str, Any], incoming: Any) -> dict[str, Any]:
    """Merge per-type entries, dropping types this release does not know."""
    merged = {key: dict(value) for key, value in base.items()}
    if not isinstance(incoming, dict):
        return merged

    known = {t.value for t in NotificationType}
    for type_key, type_value in incoming.items():
        if type_key not in known:
            logger.debug(f"Ignoring unknown notification type in settings: {type_key}")
            continue
        if isinstance(type_value, dict):
            merged[type_key] = {**merged.get(type_key, {}), **type_value}
    return merged


def merge_settings(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Merge a (possibly partial) settings dict onto a full one.

    Top-level keys replace; "types" and "quiet_hours" merge per key.
    """
    merged = dict(base)
    for key, value in incoming.items():
        if key == "types":
            merged["types"] = _merge_types(base.get("types", {}), value)
        elif key in NESTED_KEYS and isinstance(value, dict):
            merged[key] = {**base.get(key, {}), **value}
        elif key in NotificationSettings.model_fields:
            merged[key] = value
    return merged


class SettingsStore:
    """Loads, updates and persists NotificationSettings."""

    def __init__(
        self,
        storage: KeyValueStore,
        storage_key: str = "notification_settings",
        default_permission: PermissionStatus = PermissionStatus.DEFAULT,
    ) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self.default_permission = default_permission
        self._settings = self.load()

    @property
    def settings(self) -> NotificationSettings:
        return self._settings

    def defaults(self) -> NotificationSettings:
        return NotificationSettings(permission=self.default_permission)

    def load(self) -> NotificationSettings:
        """Read persisted settings merged onto defaults. Never raises."""
        defaults = self.defaults()
        try:
            raw = self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning(
                "Failed to load notification settings",
                extra={"error": str(e)},
            )
            return defaults

        if not raw:
            return defaults

        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                raise ValueError("settings blob is not an object")
            merged = merge_settings(defaults.model_dump(mode="json"), parsed)
            return NotificationSettings.model_validate(merged)
        except (ValueError, ValidationError) as e:
            logger.warning(
                "Stored notification settings are invalid, using defaults",
                extra={"error": str(e)},
            )
            return defaults

    def save(self) -> None:
        """Persist current settings. Failures are logged, not raised."""
        try:
            self.storage.set(
                self.storage_key,
                json.dumps(self._settings.model_dump(mode="json")),
            )
        except Exception as e:
            logger.warning(
                "Failed to save notification settings",
                extra={"error": str(e)},
            )

    def get(self) -> NotificationSettings:
        """Return a copy of the current settings."""
        return self._settings.model_copy(deep=True)

    def update(
        self, partial: NotificationSettingsUpdate | dict[str, Any]
    ) -> NotificationSettings:
        """Merge a partial update into the current settings and persist.

        Raises:
            ValidationError: If the merged settings are invalid
        """
        if isinstance(partial, NotificationSettingsUpdate):
            changes = partial.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        else:
            changes = dict(partial)

        merged = merge_settings(self._settings.model_dump(mode="json"), changes)
        self._settings = NotificationSettings.model_validate(merged)
        self.save()
        return self.get()

    def set_permission(self, permission: PermissionStatus) -> None:
        self.update({"permission": permission.value})

    def update_from_preferences(self, preferences: StudyPreferences) -> NotificationSettings:
        """Apply study-assistant preferences to study and break reminders."""
        return self.update({
            "types": {
                NotificationType.STUDY_REMINDER.value: {
                    "enabled": preferences.enable_study_reminders,
                    "advance_time": preferences.reminder_advance_time,
                },
                NotificationType.BREAK_REMINDER.value: {
                    "enabled": preferences.enable_break_reminders,
                    "advance_time": preferences.reminder_advance_time,
                },
            }
        })
