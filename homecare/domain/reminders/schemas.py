"""Reminder schemas"""

from datetime import date as DateType
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, field_validator

from .timings import RX_TIMINGS, VISIT_TIMINGS


class ReminderEvent(BaseModel):
    id: int
    type: str
    date: DateType
    time: Optional[str] = None
    patient_name: Optional[str] = None
    facility_name: Optional[str] = None


class ReminderResponse(BaseModel):
    # "generated-{event_id}" for reminders derived on the fly
    id: Union[int, str]
    event_id: int
    scheduled_at: datetime
    message: str
    is_read: bool
    event: ReminderEvent


def _check_timings(values: list[str], allowed: tuple[str, ...]) -> list[str]:
    unknown = [v for v in values if v not in allowed]
    if unknown:
        raise ValueError(f"Unsupported timings: {', '.join(unknown)}. Allowed: {', '.join(allowed)}")
    # Keep order, drop duplicates
    return list(dict.fromkeys(values))


class ReminderSettings(BaseModel):
    visit_enabled: bool = True
    visit_timings: list[str] = []
    rx_enabled: bool = True
    rx_timings: list[str] = []

    @field_validator("visit_timings")
    @classmethod
    def check_visit_timings(cls, v):
        return _check_timings(v, VISIT_TIMINGS)

    @field_validator("rx_timings")
    @classmethod
    def check_rx_timings(cls, v):
        return _check_timings(v, RX_TIMINGS)


class ReadAllResponse(BaseModel):
    count: int
