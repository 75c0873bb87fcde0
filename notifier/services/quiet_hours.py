"""Quiet-hours window arithmetic.

Windows are half-open [start, end) wall-clock ranges at minute
granularity. A window whose start is later than its end wraps midnight.
"""

from datetime import datetime, time, timedelta

from notifier.models.preferences import QuietHours


def parse_hhmm(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def is_in_window(moment: datetime, start_time: str, end_time: str) -> bool:
    """Check whether a moment falls inside a [start, end) window.

    Args:
        moment: Candidate instant (wall-clock)
        start_time: Window start as HH:MM
        end_time: Window end as HH:MM

    Returns:
        True if the moment is inside the window
    """
    start = parse_hhmm(start_time)
    end = parse_hhmm(end_time)
    current = minutes_since_midnight(moment)

    if start > end:
        # Window crosses midnight
        return current >= start or current < end
    return start <= current < end


def is_quiet_time(moment: datetime, quiet_hours: QuietHours) -> bool:
    """Check a moment against configured quiet hours (disabled means never quiet)."""
    if not quiet_hours.enabled:
        return False
    return is_in_window(moment, quiet_hours.start_time, quiet_hours.end_time)


def next_available_time(moment: datetime, quiet_hours: QuietHours) -> datetime:
    """Earliest time at or after the window end that follows a quiet moment.

    Uses the window end on the moment's own date when that lies after the
    moment, otherwise the end on the following day.
    """
    if not quiet_hours.enabled:
        return moment

    end_minutes = parse_hhmm(quiet_hours.end_time)
    end_of_window = datetime.combine(
        moment.date(),
        time(hour=end_minutes // 60, minute=end_minutes % 60),
        tzinfo=moment.tzinfo,
    )
    if end_of_window <= moment:
        end_of_window += timedelta(days=1)
    return end_of_window
