"""
Calendar grouping

Partitions formatted events per day into facility groups and individual
entries. Nothing here is persisted; it only shapes the calendar view.
"""

from datetime import date
from typing import Optional, Protocol

from ...models import EVENT_BOTH, EVENT_PRESCRIPTION, EVENT_VISIT

GROUPED = "grouped"


class CalendarEvent(Protocol):
    id: int
    date: date
    time: Optional[str]
    type: str
    patient_name: Optional[str]
    facility_name: Optional[str]
    display_mode: Optional[str]


def time_sort_key(event: CalendarEvent):
    """Timed events by time, all-day events last"""
    return (event.time is None, event.time or "", event.id)


def is_grouped(event: CalendarEvent) -> bool:
    return event.display_mode == GROUPED and bool(event.facility_name)


def build_facility_group(facility_name: str, events: list) -> dict:
    events = sorted(events, key=time_sort_key)
    patient_names = []
    for event in events:
        if event.patient_name and event.patient_name not in patient_names:
            patient_names.append(event.patient_name)
    return {
        "facility_name": facility_name,
        "events": events,
        "patient_names": patient_names,
        "has_visit": any(e.type in (EVENT_VISIT, EVENT_BOTH) for e in events),
        "has_prescription": any(e.type in (EVENT_PRESCRIPTION, EVENT_BOTH) for e in events),
    }


def group_calendar(events: list) -> list[dict]:
    """
    Days in ascending order, each with its facility groups (by facility name)
    and its individual events.
    """
    days: dict[date, dict] = {}
    for event in events:
        day = days.setdefault(event.date, {"groups": {}, "individual": []})
        if is_grouped(event):
            day["groups"].setdefault(event.facility_name, []).append(event)
        else:
            day["individual"].append(event)

    result = []
    for day_date in sorted(days):
        day = days[day_date]
        result.append(
            {
                "date": day_date,
                "facility_groups": [
                    build_facility_group(name, day["groups"][name])
                    for name in sorted(day["groups"])
                ],
                "individual_events": sorted(day["individual"], key=time_sort_key),
            }
        )
    return result
