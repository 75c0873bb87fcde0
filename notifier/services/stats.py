"""Daily notification analytics counters."""

import json
import logging

from pydantic import ValidationError

from notifier.models.stats import NotificationStats
from notifier.services.timeutil import Clock, system_clock, to_local_naive
from notifier.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class StatsRecorder:
    """Counts scheduled/sent/clicked/dismissed events per day.

    Counters only grow; the sole reset path is a date rollover (or an
    explicit reset()).
    """

    def __init__(
        self,
        storage: KeyValueStore,
        storage_key: str = "notification_stats",
        clock: Clock = system_clock,
    ) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self.clock = clock
        self._stats = self.load()

    def _fresh(self) -> NotificationStats:
        return NotificationStats(last_reset=self.clock())

    def load(self) -> NotificationStats:
        """Read persisted stats, zeroed when they belong to an earlier day."""
        try:
            raw = self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning("Failed to load notification stats", extra={"error": str(e)})
            return self._fresh()

        if not raw:
            return self._fresh()

        try:
            stats = NotificationStats.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(
                "Stored notification stats are invalid, starting fresh",
                extra={"error": str(e)},
            )
            return self._fresh()

        if to_local_naive(stats.last_reset).date() != self.clock().date():
            logger.info("Daily rollover, resetting notification stats")
            return self._fresh()
        return stats

    def save(self) -> None:
        try:
            self.storage.set(self.storage_key, json.dumps(self._stats.model_dump(mode="json")))
        except Exception as e:
            logger.warning("Failed to save notification stats", extra={"error": str(e)})

    def _current(self) -> NotificationStats:
        if to_local_naive(self._stats.last_reset).date() != self.clock().date():
            self._stats = self._fresh()
            self.save()
        return self._stats

    def get(self) -> NotificationStats:
        """Return a copy of today's counters."""
        return self._current().model_copy()

    def sent_today(self) -> int:
        return self._current().total_sent

    def record_scheduled(self) -> None:
        self._current().total_scheduled += 1
        self.save()

    def record_sent(self) -> None:
        self._current().total_sent += 1
        self.save()

    def record_clicked(self) -> None:
        self._current().total_clicked += 1
        self.save()

    def record_dismissed(self) -> None:
        self._current().total_dismissed += 1
        self.save()

    def reset(self) -> NotificationStats:
        self._stats = self._fresh()
        self.save()
        return self.get()
