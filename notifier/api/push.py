"""Vendor push API endpoints (OneSignal)."""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from notifier.api.deps import Context, CurrentUserId, Scheduler
from notifier.models.notification import (
    NotificationAction,
    NotificationPriority,
    NotificationType,
    ScheduledNotification,
)
from notifier.models.subscription import (
    PushSubscription,
    PushSubscriptionCreate,
    PushSubscriptionStatus,
)
from notifier.senders.onesignal import PushAudience

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Push"])


class PushSendRequest(BaseModel):
    """Request body for an immediate or vendor-scheduled push."""

    title: str = Field(min_length=1, max_length=200)
    body: str = Field(default="", max_length=2000)
    type: NotificationType = NotificationType.GENERAL
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: dict[str, Any] = Field(default_factory=dict)
    actions: list[NotificationAction] = Field(default_factory=list)
    url: str | None = None
    send_after: datetime | None = None


class PushSendResponse(BaseModel):
    success: bool
    notification_id: str | None = None
    recipients: int | None = None


class WebhookNotification(BaseModel):
    id: str | None = None
    custom_data: dict[str, Any] = Field(default_factory=dict)


class OneSignalWebhookEvent(BaseModel):
    """Event body posted by OneSignal's event webhooks."""

    event: str
    notification: WebhookNotification | None = None
    player: dict[str, Any] | None = None


@router.post("/push/send", response_model=PushSendResponse)
async def send_push_endpoint(
    context: Context,
    current_user_id: CurrentUserId,
    request: PushSendRequest,
) -> PushSendResponse:
    """Send a vendor push to the authenticated user."""
    if context.push is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push notifications are not configured",
        )

    data = dict(request.data)
    if request.url:
        data["url"] = request.url
    notification = ScheduledNotification(
        title=request.title,
        body=request.body,
        scheduled_time=request.send_after or context.scheduler.clock(),
        type=request.type,
        priority=request.priority,
        data=data,
        actions=request.actions,
    )
    audience = PushAudience(
        external_user_ids=[current_user_id],
        player_ids=context.subscriptions.active_player_ids(current_user_id),
    )

    if request.send_after is not None:
        result = await context.push.schedule_remote(notification, request.send_after, audience)
    else:
        result = await context.push.send_notification(
            context.push.build_payload(notification, audience=audience)
        )

    if result is None:
        return PushSendResponse(success=False)
    return PushSendResponse(
        success=True,
        notification_id=result.get("id"),
        recipients=result.get("recipients"),
    )


@router.post(
    "/push/subscriptions",
    response_model=PushSubscription,
    status_code=status.HTTP_201_CREATED,
)
def subscribe_endpoint(
    context: Context,
    current_user_id: CurrentUserId,
    request: PushSubscriptionCreate,
) -> PushSubscription:
    """Register the caller's push device, replacing any earlier one."""
    return context.subscriptions.subscribe(current_user_id, request.player_id, request.device_type)


@router.get("/push/subscriptions/me", response_model=PushSubscriptionStatus)
def subscription_status_endpoint(
    context: Context,
    current_user_id: CurrentUserId,
) -> PushSubscriptionStatus:
    subscription = context.subscriptions.get(current_user_id)
    return PushSubscriptionStatus(
        active=subscription is not None,
        player_id=subscription.player_id if subscription else None,
    )


@router.delete("/push/subscriptions/{player_id}", status_code=status.HTTP_204_NO_CONTENT)
def unsubscribe_endpoint(
    context: Context,
    current_user_id: CurrentUserId,
    player_id: str,
) -> None:
    """Deactivate a push device."""
    subscription = context.subscriptions.get(current_user_id)
    if subscription is None or subscription.player_id != player_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subscription not found",
        )
    context.subscriptions.unsubscribe(player_id)


@router.post("/onesignal/webhook")
def onesignal_webhook_endpoint(
    scheduler: Scheduler,
    event: OneSignalWebhookEvent,
) -> dict[str, bool]:
    """Record clicks and dismissals reported by the push vendor."""
    custom_data = event.notification.custom_data if event.notification else {}
    notification_id = custom_data.get("notificationId") or (
        event.notification.id if event.notification else None
    )
    logger.info(
        f"OneSignal webhook received: {event.event}",
        extra={"notification_id": notification_id},
    )

    if event.event == "notification.clicked":
        scheduler.record_click(
            notification_id,
            related_task_id=custom_data.get("relatedTaskId"),
            related_reminder_id=custom_data.get("relatedReminderId"),
        )
    elif event.event == "notification.dismissed":
        scheduler.record_dismiss(notification_id)
    else:
        logger.debug(f"Ignoring OneSignal webhook event: {event.event}")

    return {"success": True}
