"""Tests for quiet hours window arithmetic."""

from datetime import datetime

import pytest

from notifier.models.preferences import QuietHours
from notifier.services.quiet_hours import (
    is_in_window,
    is_quiet_time,
    next_available_time,
    parse_hhmm,
)

NIGHT = QuietHours(enabled=True, start_time="22:00", end_time="07:00")
LUNCH = QuietHours(enabled=True, start_time="12:00", end_time="13:30")


class TestParsing:
    """Tests for HH:MM parsing and validation."""

    def test_parse_hhmm(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("07:00") == 420
        assert parse_hhmm("22:15") == 1335

    def test_invalid_time_rejected(self):
        """QuietHours refuses malformed times."""
        with pytest.raises(ValueError):
            QuietHours(start_time="25:00")
        with pytest.raises(ValueError):
            QuietHours(end_time="7am")


class TestWrappingWindow:
    """22:00-07:00 crosses midnight."""

    @pytest.mark.parametrize(
        "hour,minute,expected",
        [
            (21, 59, False),
            (22, 0, True),
            (23, 30, True),
            (0, 0, True),
            (3, 0, True),
            (6, 59, True),
            (7, 0, False),
            (12, 0, False),
        ],
    )
    def test_is_quiet(self, hour, minute, expected):
        moment = datetime(2024, 3, 11, hour, minute)
        assert is_quiet_time(moment, NIGHT) is expected

    def test_late_evening_moves_to_next_morning(self):
        """22:30 moves to 07:00 the following day."""
        result = next_available_time(datetime(2024, 3, 11, 22, 30), NIGHT)
        assert result == datetime(2024, 3, 12, 7, 0)

    def test_early_morning_moves_to_same_morning(self):
        """03:00 moves to 07:00 the same day."""
        result = next_available_time(datetime(2024, 3, 12, 3, 0), NIGHT)
        assert result == datetime(2024, 3, 12, 7, 0)

    def test_result_is_outside_window(self):
        for hour in (22, 23, 0, 1, 5, 6):
            moment = datetime(2024, 3, 11, hour, 45)
            result = next_available_time(moment, NIGHT)
            assert not is_quiet_time(result, NIGHT)
            assert result > moment


class TestNonWrappingWindow:
    """12:00-13:30 within one day."""

    def test_is_quiet(self):
        assert is_in_window(datetime(2024, 3, 11, 12, 0), "12:00", "13:30")
        assert is_in_window(datetime(2024, 3, 11, 13, 29), "12:00", "13:30")
        assert not is_in_window(datetime(2024, 3, 11, 13, 30), "12:00", "13:30")
        assert not is_in_window(datetime(2024, 3, 11, 11, 59), "12:00", "13:30")

    def test_next_available_time(self):
        result = next_available_time(datetime(2024, 3, 11, 12, 45), LUNCH)
        assert result == datetime(2024, 3, 11, 13, 30)

    def test_empty_window_never_quiet(self):
        assert not is_in_window(datetime(2024, 3, 11, 9, 0), "09:00", "09:00")


class TestDisabled:
    """Disabled quiet hours never delay anything."""

    def test_disabled_is_never_quiet(self):
        quiet_hours = QuietHours(enabled=False)
        assert not is_quiet_time(datetime(2024, 3, 11, 23, 0), quiet_hours)

    def test_disabled_returns_moment(self):
        moment = datetime(2024, 3, 11, 23, 0)
        assert next_available_time(moment, QuietHours(enabled=False)) == moment
