"""Event router - FastAPI endpoints for scheduling"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...organization import OrganizationContext, require_editor, require_organization
from .schemas import (
    CalendarDay,
    ConfirmRequest,
    ConfirmResponse,
    CopyRequest,
    EventCreate,
    EventCreateResponse,
    EventResponse,
    EventUpdate,
)
from .service import EventService, format_event

router = APIRouter(prefix="/api/events", tags=["Events"])


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Dependency injection for EventService"""
    return EventService(db)


@router.get("", response_model=list[EventResponse])
async def list_events(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    type: Optional[Literal["visit", "prescription", "both"]] = Query(None),
    patient_id: Optional[int] = Query(None),
    facility_id: Optional[int] = Query(None),
    ctx: OrganizationContext = Depends(require_organization),
    service: EventService = Depends(get_event_service),
):
    return service.list_events(ctx, start, end, type, patient_id, facility_id)


@router.get("/calendar", response_model=list[CalendarDay])
async def get_calendar(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    ctx: OrganizationContext = Depends(require_organization),
    service: EventService = Depends(get_event_service),
):
    """Events per day, split into facility groups and individual entries"""
    return service.calendar(ctx, start, end)


@router.post("", response_model=EventCreateResponse)
async def create_event(
    data: EventCreate,
    ctx: OrganizationContext = Depends(require_editor),
    service: EventService = Depends(get_event_service),
):
    return service.create_event(data, ctx)


@router.post("/confirm", response_model=ConfirmResponse)
async def confirm_events(
    data: ConfirmRequest,
    ctx: OrganizationContext = Depends(require_editor),
    service: EventService = Depends(get_event_service),
):
    return {"count": service.confirm_events(data.ids, ctx)}


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    ctx: OrganizationContext = Depends(require_organization),
    service: EventService = Depends(get_event_service),
):
    return format_event(service.get_event(event_id, ctx))


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    data: EventUpdate,
    ctx: OrganizationContext = Depends(require_editor),
    service: EventService = Depends(get_event_service),
):
    return service.update_event(event_id, data, ctx)


@router.delete("/{event_id}")
async def delete_event(
    event_id: int,
    ctx: OrganizationContext = Depends(require_editor),
    service: EventService = Depends(get_event_service),
):
    return service.delete_event(event_id, ctx)


@router.post("/{event_id}/copy", response_model=list[EventResponse])
async def copy_event(
    event_id: int,
    data: CopyRequest,
    ctx: OrganizationContext = Depends(require_editor),
    service: EventService = Depends(get_event_service),
):
    """Bulk copy an event onto the dates of a recurrence rule"""
    return service.copy_event(event_id, data.repeat, ctx)
