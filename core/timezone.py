"""
Timezone and wall-clock utilities.

Event dates and times are stored as naive wall-clock values in the campus
timezone (EVENT_TIMEZONE). Everything that compares them against "now"
goes through these helpers so both sides use the same clock.
"""

from datetime import date, datetime, time, timedelta

import pytz

from .config import get_event_timezone_name


def get_event_timezone(tz_name: str | None = None):
    """Return the pytz timezone events are expressed in."""
    return pytz.timezone(tz_name or get_event_timezone_name())


def local_now(tz_name: str | None = None) -> datetime:
    """
    Current wall-clock time in the event timezone, without tzinfo.

    Comparable directly with event_start()/event_end() results and with the
    date + time expressions used in SQL.
    """
    tz = get_event_timezone(tz_name)
    return datetime.now(pytz.UTC).astimezone(tz).replace(tzinfo=None)


def event_start(event_date: date, time_start: time) -> datetime:
    """Start instant of an event."""
    return datetime.combine(event_date, time_start)


def event_end(event_date: date, time_start: time, time_end: time) -> datetime:
    """
    End instant of an event.

    An end time earlier than the start time means the event runs past
    midnight and ends on the following day.
    """
    end = datetime.combine(event_date, time_end)
    if time_end < time_start:
        end += timedelta(days=1)
    return end


def is_running(
    event_date: date, time_start: time, time_end: time, now: datetime
) -> bool:
    """True when start <= now < end."""
    return (
        event_start(event_date, time_start)
        <= now
        < event_end(event_date, time_start, time_end)
    )


def format_event_date(event_date: date) -> str:
    """Format an event date for message bodies, e.g. "Monday, 19 October 2026"."""
    return event_date.strftime("%A, %d %B %Y")


def format_event_time(value: time) -> str:
    """Format an event time of day, e.g. "14:30"."""
    return value.strftime("%H:%M")
