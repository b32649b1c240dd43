"""
Reminder timings

A timing turns an event's local date and time into the local moment a
reminder is due.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from ...models import EVENT_BOTH, EVENT_PRESCRIPTION, EVENT_VISIT

DAY_BEFORE_18 = "day_before_18"
SAME_DAY_9 = "same_day_9"
ONE_HOUR_BEFORE = "1_hour_before"
THIRTY_MIN_BEFORE = "30_min_before"

VISIT_TIMINGS = (DAY_BEFORE_18, SAME_DAY_9, ONE_HOUR_BEFORE, THIRTY_MIN_BEFORE)
RX_TIMINGS = (DAY_BEFORE_18, SAME_DAY_9)

DEFAULT_SETTINGS = {
    "visit_enabled": True,
    "visit_timings": [DAY_BEFORE_18, SAME_DAY_9],
    "rx_enabled": True,
    "rx_timings": [DAY_BEFORE_18],
}


def parse_event_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    hours, minutes = value.split(":")[:2]
    return time(int(hours), int(minutes))


def scheduled_at(event_date: date, event_time: Optional[str], timing: str) -> Optional[datetime]:
    """Local due time, or None when the timing does not apply (relative timings need a time)"""
    if timing == DAY_BEFORE_18:
        return datetime.combine(event_date - timedelta(days=1), time(18, 0))
    if timing == SAME_DAY_9:
        return datetime.combine(event_date, time(9, 0))

    start = parse_event_time(event_time)
    if start is None:
        return None
    if timing == ONE_HOUR_BEFORE:
        return datetime.combine(event_date, start) - timedelta(hours=1)
    if timing == THIRTY_MIN_BEFORE:
        return datetime.combine(event_date, start) - timedelta(minutes=30)
    return None


def timings_for_event(event_type: str, settings: dict) -> list[tuple[str, str]]:
    """(kind, timing) pairs that apply to an event type, kind being "visit" or "rx" """
    pairs = []
    if event_type in (EVENT_VISIT, EVENT_BOTH) and settings["visit_enabled"]:
        pairs += [("visit", t) for t in settings["visit_timings"] if t in VISIT_TIMINGS]
    if event_type in (EVENT_PRESCRIPTION, EVENT_BOTH) and settings["rx_enabled"]:
        pairs += [("rx", t) for t in settings["rx_timings"] if t in RX_TIMINGS]
    return pairs


def reminder_message(
    kind: str, target_name: str, due: datetime, event_date: date, event_time: Optional[str]
) -> str:
    """e.g. "Tanaka: visit tomorrow at 10:00" """
    label = "visit" if kind == "visit" else "prescription"
    if due.date() == event_date:
        when = "today"
    elif due.date() + timedelta(days=1) == event_date:
        when = "tomorrow"
    else:
        when = f"on {event_date.isoformat()}"
    at = f" at {event_time}" if event_time else ""
    return f"{target_name}: {label} {when}{at}"
