"""Registry of vendor push subscriptions.

Subscriptions are kept as one JSON blob keyed by external user id, like
settings and stats. Reads and writes never raise; storage failures are
logged and the registry behaves as empty.
"""

import json
import logging

from pydantic import ValidationError

from notifier.models.subscription import PushSubscription
from notifier.services.timeutil import Clock, system_clock
from notifier.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class PushSubscriptionRegistry:
    """Maps external user ids to their OneSignal player ids."""

    def __init__(
        self,
        storage: KeyValueStore,
        storage_key: str = "push_subscriptions",
        clock: Clock = system_clock,
    ) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self.clock = clock

    def _load(self) -> dict[str, PushSubscription]:
        try:
            raw = self.storage.get(self.storage_key)
            entries = json.loads(raw) if raw else {}
        except Exception as e:
            logger.warning("Failed to load push subscriptions", extra={"error": str(e)})
            return {}

        if not isinstance(entries, dict):
            return {}

        subscriptions = {}
        for user_id, entry in entries.items():
            try:
                subscriptions[user_id] = PushSubscription.model_validate(entry)
            except ValidationError:
                logger.warning(f"Dropping invalid push subscription for {user_id}")
        return subscriptions

    def _save(self, subscriptions: dict[str, PushSubscription]) -> None:
        try:
            self.storage.set(
                self.storage_key,
                json.dumps({k: v.model_dump(mode="json") for k, v in subscriptions.items()}),
            )
        except Exception as e:
            logger.warning("Failed to save push subscriptions", extra={"error": str(e)})

    def subscribe(self, external_user_id: str, player_id: str, device_type: str = "web") -> PushSubscription:
        """Register (or replace) the user's push device."""
        subscriptions = self._load()
        subscription = PushSubscription(
            external_user_id=external_user_id,
            player_id=player_id,
            device_type=device_type,
            is_active=True,
            updated_at=self.clock(),
        )
        subscriptions[external_user_id] = subscription
        self._save(subscriptions)
        logger.info(
            "Push subscription stored",
            extra={"user_id": external_user_id, "player_id": player_id},
        )
        return subscription

    def unsubscribe(self, player_id: str) -> bool:
        """Deactivate the subscription holding a player id. Unknown ids return False."""
        subscriptions = self._load()
        for subscription in subscriptions.values():
            if subscription.player_id == player_id and subscription.is_active:
                subscription.is_active = False
                subscription.updated_at = self.clock()
                self._save(subscriptions)
                logger.info("Push subscription removed", extra={"player_id": player_id})
                return True
        return False

    def get(self, external_user_id: str) -> PushSubscription | None:
        subscription = self._load().get(external_user_id)
        if subscription is None or not subscription.is_active:
            return None
        return subscription

    def has_active_subscription(self, external_user_id: str) -> bool:
        return self.get(external_user_id) is not None

    def active_player_ids(self, external_user_id: str | None = None) -> list[str]:
        """Player ids of active subscriptions, for one user or for everyone."""
        return [
            subscription.player_id
            for user_id, subscription in self._load().items()
            if subscription.is_active and (external_user_id is None or user_id == external_user_id)
        ]
