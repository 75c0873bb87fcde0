"""Per-user notification preferences (NotificationSettings)."""

import re

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from notifier.models.notification import NotificationType
from notifier.models.permission import PermissionStatus

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class TypeSettings(SQLModel):
    """Settings for one notification type."""

    enabled: bool = True
    advance_time: int | None = Field(default=None, ge=0)
    sound: bool = False
    vibrate: bool = False


class QuietHours(SQLModel):
    """Time-of-day window during which deliveries are deferred."""

    enabled: bool = False
    start_time: str = "22:00"
    end_time: str = "07:00"

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_hhmm(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError(f"expected HH:MM, got {value!r}")
        return value


def default_type_settings() -> dict[NotificationType, TypeSettings]:
    """Factory defaults for every notification type."""
    return {
        NotificationType.TASK_DUE: TypeSettings(advance_time=15, sound=True, vibrate=True),
        NotificationType.STUDY_REMINDER: TypeSettings(advance_time=5, sound=True),
        NotificationType.BREAK_REMINDER: TypeSettings(advance_time=0, vibrate=True),
        NotificationType.ACHIEVEMENT: TypeSettings(sound=True, vibrate=True),
        NotificationType.STREAK_REMINDER: TypeSettings(),
        NotificationType.GENERAL: TypeSettings(),
    }


class NotificationSettings(SQLModel):
    """Complete notification preferences for the current user."""

    enabled: bool = True
    permission: PermissionStatus = PermissionStatus.DEFAULT
    types: dict[NotificationType, TypeSettings] = Field(default_factory=default_type_settings)
    quiet_hours: QuietHours = Field(default_factory=QuietHours)
    max_daily_notifications: int = Field(default=20, ge=0)

    def type_settings(self, notification_type: NotificationType) -> TypeSettings | None:
        return self.types.get(notification_type)


class QuietHoursUpdate(SQLModel):
    """Partial quiet-hours update."""

    enabled: bool | None = None
    start_time: str | None = None
    end_time: str | None = None


class TypeSettingsUpdate(SQLModel):
    """Partial per-type update."""

    enabled: bool | None = None
    advance_time: int | None = Field(default=None, ge=0)
    sound: bool | None = None
    vibrate: bool | None = None


class NotificationSettingsUpdate(SQLModel):
    """Schema for settings update (all fields optional)."""

    enabled: bool | None = None
    types: dict[NotificationType, TypeSettingsUpdate] | None = None
    quiet_hours: QuietHoursUpdate | None = None
    max_daily_notifications: int | None = Field(default=None, ge=0)


class StudyPreferences(SQLModel):
    """Study-assistant preferences that drive reminder settings."""

    enable_study_reminders: bool = True
    enable_break_reminders: bool = True
    reminder_advance_time: int = Field(default=5, ge=0)
