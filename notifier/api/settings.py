"""Settings, stats and permission API endpoints."""

from fastapi import APIRouter, HTTPException, status
from pydantic import ValidationError

from notifier.api.deps import CurrentUserId, Scheduler
from notifier.models.permission import PermissionState
from notifier.models.preferences import (
    NotificationSettings,
    NotificationSettingsUpdate,
    StudyPreferences,
)
from notifier.models.stats import NotificationStats

router = APIRouter(prefix="/api", tags=["Settings"])


@router.get("/settings", response_model=NotificationSettings)
def get_settings_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
) -> NotificationSettings:
    """Get the current notification settings."""
    return scheduler.get_settings()


@router.patch("/settings", response_model=NotificationSettings)
def update_settings_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    settings_data: NotificationSettingsUpdate,
) -> NotificationSettings:
    """Merge a partial update into the settings."""
    try:
        return scheduler.update_settings(settings_data)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )


@router.put("/settings/preferences", response_model=NotificationSettings)
def update_preferences_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
    preferences: StudyPreferences,
) -> NotificationSettings:
    """Apply study preferences to the study and break reminder settings."""
    return scheduler.update_from_preferences(preferences)


@router.get("/stats", response_model=NotificationStats)
def get_stats_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
) -> NotificationStats:
    """Get today's notification counters."""
    return scheduler.get_stats()


@router.post("/stats/reset", response_model=NotificationStats)
def reset_stats_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
) -> NotificationStats:
    """Zero the notification counters."""
    return scheduler.reset_stats()


@router.get("/permission", response_model=PermissionState)
def get_permission_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
) -> PermissionState:
    """Get platform capability and permission."""
    return scheduler.get_permission_state()


@router.post("/permission/request", response_model=PermissionState)
async def request_permission_endpoint(
    scheduler: Scheduler,
    current_user_id: CurrentUserId,
) -> PermissionState:
    """Prompt for notification permission on behalf of the user."""
    await scheduler.request_permission()
    return scheduler.get_permission_state()
