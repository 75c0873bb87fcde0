"""Vendor push delivery through the OneSignal REST API.

Failures (missing credentials, network errors, non-2xx, malformed JSON)
are logged and reported as None/False. This layer never retries.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx

from notifier.models.notification import NotificationPriority, ScheduledNotification
from notifier.senders.base import NotificationSender
from notifier.services.subscriptions import PushSubscriptionRegistry

logger = logging.getLogger(__name__)

ONESIGNAL_API_URL = "https://onesignal.com/api/v1"

PRIORITY_MAP: dict[NotificationPriority, int] = {
    NotificationPriority.LOW: 3,
    NotificationPriority.MEDIUM: 5,
    NotificationPriority.HIGH: 8,
    NotificationPriority.URGENT: 10,
}


@dataclass
class PushAudience:
    """Who receives a vendor push: external user ids and/or device ids."""

    external_user_ids: list[str] = field(default_factory=list)
    player_ids: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.external_user_ids and not self.player_ids


class OneSignalSender(NotificationSender):
    """Sends notifications through OneSignal's REST API."""

    def __init__(
        self,
        app_id: str,
        rest_api_key: str,
        audience: PushAudience | None = None,
        subscriptions: PushSubscriptionRegistry | None = None,
        api_url: str = ONESIGNAL_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the sender.

        Args:
            app_id: OneSignal application id
            rest_api_key: OneSignal REST API key
            audience: Default recipients for send()
            subscriptions: Registry whose active devices join the default audience
            api_url: REST API base URL
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        super().__init__()
        self.app_id = app_id
        self.rest_api_key = rest_api_key
        self.audience = audience or PushAudience()
        self.subscriptions = subscriptions
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self.configured:
            logger.warning("OneSignal credentials not properly configured")

    @property
    def name(self) -> str:
        return "onesignal"

    @property
    def configured(self) -> bool:
        return bool(self.app_id and self.rest_api_key)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    def resolve_audience(self) -> PushAudience:
        """Default audience plus every registered active device."""
        if self.subscriptions is None:
            return self.audience
        player_ids = [*self.audience.player_ids, *self.subscriptions.active_player_ids()]
        return PushAudience(
            external_user_ids=list(self.audience.external_user_ids),
            player_ids=list(dict.fromkeys(player_ids)),
        )

    def build_payload(
        self,
        notification: ScheduledNotification,
        audience: PushAudience | None = None,
        send_after: datetime | None = None,
    ) -> dict[str, Any]:
        """Serialize a notification into a OneSignal create-notification body."""
        audience = audience or self.resolve_audience()
        urgent = notification.priority in (NotificationPriority.HIGH, NotificationPriority.URGENT)

        payload: dict[str, Any] = {
            "app_id": self.app_id,
            "headings": {"en": notification.title},
            "contents": {"en": notification.body or notification.title},
            "data": notification.delivery_data(),
            "priority": PRIORITY_MAP[notification.priority],
            "ios_sound": "default",
            "ios_badgeType": "Increase",
            "ios_badgeCount": 1,
            "ios_interruption_level": "time-sensitive" if urgent else "active",
        }
        if audience.external_user_ids:
            payload["include_external_user_ids"] = list(audience.external_user_ids)
        if audience.player_ids:
            payload["include_player_ids"] = list(audience.player_ids)
        if notification.icon:
            payload["small_icon"] = notification.icon
            payload["large_icon"] = notification.icon
        if notification.actions:
            payload["buttons"] = [
                {"id": a.action, "text": a.title, **({"icon": a.icon} if a.icon else {})}
                for a in notification.actions
            ]
        url = notification.data.get("url")
        if url:
            payload["url"] = url
        if send_after is not None:
            payload["send_after"] = send_after.astimezone().isoformat()
            payload["delayed_option"] = "timezone"
        return payload

    async def send_notification(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        """POST a raw payload. Returns the vendor response or None on failure."""
        if not self.configured:
            logger.warning("OneSignal not configured, skipping push")
            return None

        body = {"app_id": self.app_id, "contents": {"en": "Default message"}, **payload}

        try:
            response = await self.client.post(
                f"{self.api_url}/notifications",
                json=body,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Basic {self.rest_api_key}",
                },
            )
            response.raise_for_status()
            result = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                "OneSignal API error",
                extra={
                    "status_code": e.response.status_code,
                    "response": e.response.text[:500],
                },
            )
            return None

        except httpx.HTTPError as e:
            logger.error("OneSignal request failed", extra={"error": str(e)})
            return None

        except ValueError as e:
            logger.error("OneSignal returned malformed JSON", extra={"error": str(e)})
            return None

        if not isinstance(result, dict) or not result.get("id"):
            logger.warning(
                "OneSignal accepted request but created no notification",
                extra={"response": result},
            )
            return None
        return result

    async def send(self, notification: ScheduledNotification) -> bool:
        audience = self.resolve_audience()
        if audience.is_empty:
            logger.warning(
                "No push audience configured",
                extra={"notification_id": notification.id},
            )
            return False

        result = await self.send_notification(self.build_payload(notification, audience=audience))
        if result is None:
            return False

        logger.info(
            f"Push sent: {notification.title}",
            extra={
                "notification_id": notification.id,
                "onesignal_id": result.get("id"),
                "recipients": result.get("recipients"),
            },
        )
        return True

    async def schedule_remote(
        self,
        notification: ScheduledNotification,
        deliver_at: datetime,
        audience: PushAudience | None = None,
    ) -> dict[str, Any] | None:
        """Hand delivery timing to the vendor using send_after."""
        audience = audience or self.resolve_audience()
        if audience.is_empty:
            logger.warning("No push audience configured for remote schedule")
            return None
        return await self.send_notification(
            self.build_payload(notification, audience=audience, send_after=deliver_at)
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
