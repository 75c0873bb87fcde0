"""Builders for the common notification kinds."""

import math
from datetime import datetime, timedelta

from notifier.models.notification import (
    NotificationAction,
    NotificationPriority,
    NotificationType,
    ScheduledNotification,
)
from notifier.services.quiet_hours import parse_hhmm


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def task_due(
    task_id: str,
    task_title: str,
    due_at: datetime,
    advance_minutes: int = 15,
) -> ScheduledNotification:
    """Reminder fired advance_minutes before a task is due."""
    scheduled_time = due_at - timedelta(minutes=advance_minutes)
    return ScheduledNotification(
        id=f"task_due_{task_id}_{_epoch_ms(scheduled_time)}",
        title="📚 Task Due Soon",
        body=f'"{task_title}" is due in {advance_minutes} minutes',
        scheduled_time=scheduled_time,
        type=NotificationType.TASK_DUE,
        priority=NotificationPriority.HIGH,
        related_task_id=task_id,
        require_interaction=True,
        actions=[
            NotificationAction(action="view", title="View Task"),
            NotificationAction(action="complete", title="Mark Complete"),
        ],
    )


def study_reminder(
    title: str, body: str, scheduled_time: datetime, now: datetime
) -> ScheduledNotification:
    return ScheduledNotification(
        id=f"study_reminder_{_epoch_ms(now)}",
        title=f"🎯 {title}",
        body=body,
        scheduled_time=scheduled_time,
        type=NotificationType.STUDY_REMINDER,
        priority=NotificationPriority.MEDIUM,
        actions=[
            NotificationAction(action="start", title="Start Studying"),
            NotificationAction(action="snooze", title="Snooze 10min"),
        ],
    )


def break_reminder(scheduled_time: datetime, now: datetime) -> ScheduledNotification:
    return ScheduledNotification(
        id=f"break_reminder_{_epoch_ms(now)}",
        title="☕ Time for a Break",
        body="You've been studying hard! Take a short break to recharge.",
        scheduled_time=scheduled_time,
        type=NotificationType.BREAK_REMINDER,
        priority=NotificationPriority.LOW,
        actions=[
            NotificationAction(action="break", title="Take Break"),
            NotificationAction(action="continue", title="Keep Studying"),
        ],
    )


def achievement(title: str, description: str, now: datetime) -> ScheduledNotification:
    """Achievement notice; scheduled for now so it is delivered immediately."""
    return ScheduledNotification(
        id=f"achievement_{_epoch_ms(now)}",
        title="🏆 Achievement Unlocked!",
        body=f"{title}: {description}",
        scheduled_time=now,
        type=NotificationType.ACHIEVEMENT,
        priority=NotificationPriority.MEDIUM,
        require_interaction=True,
    )


# Day, hour and quarter-hour before the due time
TASK_REMINDER_OFFSETS = (1440, 60, 15)


def escalating_offsets(advance_minutes: int) -> list[int]:
    """Offsets for a reminder series closing in on the due time: m, ceil(m/2), 5."""
    offsets = [advance_minutes, math.ceil(advance_minutes / 2), 5]
    # Keep the first of any repeated offset so ids stay unique
    return list(dict.fromkeys(offsets))


def next_occurrence(now: datetime, preferred_time: str) -> datetime:
    """Next moment strictly after now at the given HH:MM wall-clock time."""
    minutes = parse_hhmm(preferred_time)
    candidate = now.replace(hour=minutes // 60, minute=minutes % 60, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def daily_summary(scheduled_time: datetime) -> ScheduledNotification:
    return ScheduledNotification(
        id=f"daily_summary_{scheduled_time.date().isoformat()}",
        title="📊 Your Study Summary",
        body="Check out what you accomplished today and plan for tomorrow!",
        scheduled_time=scheduled_time,
        type=NotificationType.GENERAL,
        priority=NotificationPriority.LOW,
        data={"url": "/dashboard?tab=analytics"},
        actions=[
            NotificationAction(action="view", title="View Summary"),
            NotificationAction(action="plan", title="Plan Tomorrow"),
        ],
    )
