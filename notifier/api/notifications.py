"""Notification scheduling API endpoints."""

from datetime import datetime

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel, Field, NonNegativeInt

from notifier.api.deps import CurrentUserId, Scheduler
from notifier.models.notification import (
    QueuedNotificationsResponse,
    ScheduledNotification,
    ScheduleResponse,
)
from notifier.services import templates

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


class TaskRemindersRequest(BaseModel):
    """Request body for a series of reminders before a task is due."""

    task_title: str = Field(min_length=1, max_length=200)
    due_at: datetime
    offsets: list[NonNegativeInt] | None = Field(default=None, min_length=1)


class TaskRemindersResponse(BaseModel):
    scheduled: list[bool]


class TaskRemindersCancelResponse(BaseModel):
    cancelled: int


class DailySummaryRequest(BaseModel):
    preferred_time: str = Field(default="18:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


@router.post("", response_model=ScheduleResponse)
async def schedule_notification_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    notification: ScheduledNotification,
    response: Response,
) -> ScheduleResponse:
    """Schedule a notification.

    Rejections (disabled, no permission, queue full, daily cap) are not
    errors: they return accepted=false with 200.
    """
    accepted = await scheduler.schedule(notification)
    if accepted:
        response.status_code = status.HTTP_201_CREATED
    return ScheduleResponse(accepted=accepted, notification_id=notification.id)


@router.get("", response_model=QueuedNotificationsResponse)
async def list_notifications_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
) -> QueuedNotificationsResponse:
    """List pending notifications across all delivery backends."""
    notifications = await scheduler.get_queued()
    return QueuedNotificationsResponse(notifications=notifications, total=len(notifications))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_all_notifications_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
) -> None:
    """Cancel every pending notification."""
    await scheduler.cancel_all()


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_notification_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    notification_id: str,
) -> None:
    """Cancel a pending notification."""
    if not await scheduler.cancel(notification_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )


@router.post("/{notification_id}/click", status_code=status.HTTP_204_NO_CONTENT)
def click_notification_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    notification_id: str,
    related_task_id: str | None = None,
    related_reminder_id: str | None = None,
    action: str | None = None,
) -> None:
    """Record a click reported by a client that displayed the notification."""
    scheduler.record_click(
        notification_id,
        related_task_id=related_task_id,
        related_reminder_id=related_reminder_id,
        action=action,
    )


@router.post("/{notification_id}/dismiss", status_code=status.HTTP_204_NO_CONTENT)
def dismiss_notification_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    notification_id: str,
) -> None:
    """Record a dismissal reported by a client."""
    scheduler.record_dismiss(notification_id)


@router.post("/tasks/{task_id}/reminders", response_model=TaskRemindersResponse)
async def schedule_task_reminders_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    task_id: str,
    request: TaskRemindersRequest,
) -> TaskRemindersResponse:
    """Schedule a series of reminders ahead of a task's due time.

    Without offsets the series escalates from the configured advance time.
    """
    scheduled = await scheduler.schedule_task_reminders(
        task_id, request.task_title, request.due_at, request.offsets
    )
    return TaskRemindersResponse(scheduled=scheduled)


@router.delete("/tasks/{task_id}/reminders", response_model=TaskRemindersCancelResponse)
async def cancel_task_reminders_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    task_id: str,
) -> TaskRemindersCancelResponse:
    """Cancel every pending reminder for a task (completed or deleted)."""
    cancelled = await scheduler.cancel_task_reminders(task_id)
    return TaskRemindersCancelResponse(cancelled=cancelled)


@router.post("/daily-summary", response_model=ScheduleResponse)
async def schedule_daily_summary_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    request: DailySummaryRequest,
    response: Response,
) -> ScheduleResponse:
    """Schedule the study summary at the next occurrence of preferred_time."""
    notification = templates.daily_summary(
        templates.next_occurrence(scheduler.clock(), request.preferred_time)
    )
    accepted = await scheduler.schedule(notification)
    if accepted:
        response.status_code = status.HTTP_201_CREATED
    return ScheduleResponse(accepted=accepted, notification_id=notification.id)
