"""Event domain schemas - Pydantic models for validation"""

from datetime import date as DateType
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_time

EventType = Literal["visit", "prescription", "both"]
EventStatus = Literal["draft", "confirmed"]


class RepeatRequest(BaseModel):
    """Recurrence rule; ranges are checked when the rule is expanded"""

    mode: Literal["days", "weeks", "offsets"]
    interval: int = 1
    count: int = 1
    offsets: list[int] = []
    until: Optional[DateType] = None


class EventCreate(BaseModel):
    type: EventType = "visit"
    date: DateType
    time: Optional[str] = None
    patient_id: Optional[int] = None
    facility_id: Optional[int] = None
    assignee_id: Optional[int] = None
    memo: Optional[str] = None
    status: EventStatus = "draft"
    is_completed: bool = False
    report_done: bool = False
    repeat: Optional[RepeatRequest] = None

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class EventUpdate(BaseModel):
    """Partial update: only fields present in the request are applied"""

    type: Optional[EventType] = None
    date: Optional[DateType] = None
    time: Optional[str] = None
    patient_id: Optional[int] = None
    facility_id: Optional[int] = None
    assignee_id: Optional[int] = None
    memo: Optional[str] = None
    status: Optional[EventStatus] = None
    is_completed: Optional[bool] = None
    report_done: Optional[bool] = None

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class CopyRequest(BaseModel):
    repeat: RepeatRequest


class ConfirmRequest(BaseModel):
    ids: list[int]


class ConfirmResponse(BaseModel):
    count: int


class EventResponse(BaseModel):
    id: int
    organization_id: int
    type: str
    date: DateType
    time: Optional[str] = None
    patient_id: Optional[int] = None
    patient_name: Optional[str] = None
    facility_id: Optional[int] = None
    facility_name: Optional[str] = None
    display_mode: Optional[str] = None
    is_facility_event: bool = False
    assignee_id: Optional[int] = None
    assignee_name: Optional[str] = None
    memo: Optional[str] = None
    status: str
    is_completed: bool
    report_done: bool
    is_recurring: bool
    recurring_interval: Optional[int] = None
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventCreateResponse(BaseModel):
    event: EventResponse
    copies: list[EventResponse] = []


class FacilityGroup(BaseModel):
    facility_name: str
    events: list[EventResponse]
    patient_names: list[str]
    has_visit: bool
    has_prescription: bool


class CalendarDay(BaseModel):
    date: DateType
    facility_groups: list[FacilityGroup]
    individual_events: list[EventResponse]
