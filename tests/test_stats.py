"""Tests for daily notification counters."""

import json
from datetime import datetime

from notifier.services.stats import StatsRecorder
from notifier.storage.memory import MemoryStore


class TestCounters:
    """Tests for recording events."""

    def test_starts_at_zero(self, clock, storage):
        stats = StatsRecorder(storage, clock=clock).get()

        assert stats.total_scheduled == 0
        assert stats.total_sent == 0
        assert stats.total_clicked == 0
        assert stats.total_dismissed == 0
        assert stats.last_reset == clock()

    def test_record_each_counter(self, clock, storage):
        recorder = StatsRecorder(storage, clock=clock)

        recorder.record_scheduled()
        recorder.record_sent()
        recorder.record_sent()
        recorder.record_clicked()
        recorder.record_dismissed()

        stats = recorder.get()
        assert stats.total_scheduled == 1
        assert stats.total_sent == 2
        assert stats.total_clicked == 1
        assert stats.total_dismissed == 1
        assert recorder.sent_today() == 2

    def test_counters_persist(self, clock, storage):
        StatsRecorder(storage, clock=clock).record_sent()

        assert StatsRecorder(storage, clock=clock).sent_today() == 1

    def test_reset(self, clock, storage):
        recorder = StatsRecorder(storage, clock=clock)
        recorder.record_sent()

        stats = recorder.reset()

        assert stats.total_sent == 0


class TestRollover:
    """Counters reset when the local date changes."""

    def test_rollover_on_load(self, clock):
        storage = MemoryStore({
            "notification_stats": json.dumps({
                "total_scheduled": 4,
                "total_sent": 19,
                "total_clicked": 2,
                "total_dismissed": 1,
                "last_reset": "2024-03-10T08:00:00",
            })
        })

        recorder = StatsRecorder(storage, clock=clock)

        assert recorder.sent_today() == 0
        assert recorder.get().last_reset == clock()

    def test_same_day_kept(self, clock):
        storage = MemoryStore({
            "notification_stats": json.dumps({
                "total_sent": 7,
                "last_reset": "2024-03-11T00:05:00",
            })
        })

        assert StatsRecorder(storage, clock=clock).sent_today() == 7

    def test_rollover_while_running(self, clock, storage):
        recorder = StatsRecorder(storage, clock=clock)
        recorder.record_sent()

        clock.now = datetime(2024, 3, 12, 0, 1)

        assert recorder.sent_today() == 0
        assert recorder.get().last_reset == datetime(2024, 3, 12, 0, 1)

    def test_corrupt_blob_starts_fresh(self, clock):
        storage = MemoryStore({"notification_stats": "[]"})

        assert StatsRecorder(storage, clock=clock).sent_today() == 0
