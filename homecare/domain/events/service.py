"""Event service - scheduling, bulk copy, confirmation and calendar view"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Event
from ...organization import OrganizationContext, ensure_same_organization, owning_organization_id
from .grouping import group_calendar, time_sort_key
from .recurrence import RecurrenceError, RecurrenceRule, expand_dates
from .repository import EventRepository
from .schemas import EventCreate, EventResponse, EventUpdate, RepeatRequest

logger = logging.getLogger(__name__)

# Columns a copy inherits from its source event
COPIED_FIELDS = ("type", "time", "patient_id", "facility_id", "assignee_id", "memo")


def format_event(event: Event) -> EventResponse:
    """Event with the names the calendar displays"""
    patient = event.patient
    # A patient's own facility decides where the visit takes place
    if patient is not None:
        location = patient.facility
    else:
        location = event.facility

    return EventResponse(
        id=event.id,
        organization_id=event.organization_id,
        type=event.type,
        date=event.date,
        time=event.time,
        patient_id=event.patient_id,
        patient_name=patient.name if patient else None,
        facility_id=event.facility_id,
        facility_name=location.name if location else None,
        display_mode=location.display_mode if location else None,
        is_facility_event=event.is_facility_event,
        assignee_id=event.assignee_id,
        assignee_name=event.assignee.name if event.assignee else None,
        memo=event.memo,
        status=event.status,
        is_completed=event.is_completed,
        report_done=event.report_done,
        is_recurring=event.is_recurring,
        recurring_interval=event.recurring_interval,
        created_by=event.created_by,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def sort_events(events: list[EventResponse]) -> list[EventResponse]:
    """By date, then time with all-day events last"""
    return sorted(events, key=lambda e: (e.date, *time_sort_key(e)))


def to_rule(repeat: RepeatRequest) -> RecurrenceRule:
    return RecurrenceRule(
        mode=repeat.mode,
        interval=repeat.interval,
        count=repeat.count,
        offsets=list(repeat.offsets),
        until=repeat.until,
    )


class EventService:
    """Service layer for event business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EventRepository()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_events(
        self,
        ctx: OrganizationContext,
        start: Optional[date] = None,
        end: Optional[date] = None,
        event_type: Optional[str] = None,
        patient_id: Optional[int] = None,
        facility_id: Optional[int] = None,
    ) -> list[EventResponse]:
        events = self.repo.list_events(
            self.db,
            ctx,
            start=start,
            end=end,
            types=(event_type,) if event_type else None,
            patient_id=patient_id,
            facility_id=facility_id,
        )
        return sort_events([format_event(e) for e in events])

    def calendar(
        self, ctx: OrganizationContext, start: Optional[date], end: Optional[date]
    ) -> list[dict]:
        return group_calendar(self.list_events(ctx, start=start, end=end))

    def get_event(self, event_id: int, ctx: OrganizationContext) -> Event:
        event = self.repo.get_by_id(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        ensure_same_organization(ctx, event.organization_id, detail="Event not found")
        return event

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _check_references(
        self,
        organization_id: int,
        patient_id: Optional[int],
        facility_id: Optional[int],
        assignee_id: Optional[int],
        require_target: bool = True,
    ) -> None:
        if require_target and patient_id is None and facility_id is None:
            raise HTTPException(status_code=400, detail="Either patient or facility is required")

        if patient_id is not None:
            patient = self.repo.get_patient(self.db, patient_id)
            if not patient or patient.organization_id != organization_id:
                raise HTTPException(status_code=400, detail="Patient not found")

        if facility_id is not None:
            facility = self.repo.get_facility(self.db, facility_id)
            if not facility or facility.organization_id != organization_id:
                raise HTTPException(status_code=400, detail="Facility not found")

        if assignee_id is not None:
            assignee = self.repo.get_user(self.db, assignee_id)
            if not assignee or assignee.organization_id != organization_id:
                raise HTTPException(status_code=400, detail="Assignee not found")

    def _expand(self, base: date, repeat: RepeatRequest) -> tuple[RecurrenceRule, list[date]]:
        rule = to_rule(repeat)
        try:
            return rule, expand_dates(base, rule)
        except RecurrenceError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    def _stage_copies(
        self, source: Event, rule: RecurrenceRule, dates: list[date], user_id: int
    ) -> list[Event]:
        """One draft row per date, in date order"""
        step = rule.step_days
        if step is not None:
            source.is_recurring = True
            source.recurring_interval = step

        copies = []
        for copy_date in dates:
            copy = Event(
                organization_id=source.organization_id,
                date=copy_date,
                status="draft",
                is_completed=False,
                report_done=False,
                is_recurring=step is not None,
                recurring_interval=step,
                created_by=user_id,
                **{name: getattr(source, name) for name in COPIED_FIELDS},
            )
            self.db.add(copy)
            copies.append(copy)
        return copies

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {action}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to {action}") from e

    def _reload(self, events: list[Event]) -> list[EventResponse]:
        return [format_event(self.repo.get_by_id(self.db, e.id)) for e in events]

    def create_event(self, data: EventCreate, ctx: OrganizationContext) -> dict:
        organization_id = owning_organization_id(ctx)
        self._check_references(organization_id, data.patient_id, data.facility_id, data.assignee_id)

        rule, dates = (None, [])
        if data.repeat is not None:
            rule, dates = self._expand(data.date, data.repeat)

        event = Event(
            organization_id=organization_id,
            created_by=ctx.user_id,
            **data.model_dump(exclude={"repeat"}),
        )
        self.db.add(event)
        copies = self._stage_copies(event, rule, dates, ctx.user_id) if rule else []
        self._commit("create event")

        logger.info(f"✅ Created event {event.id} with {len(copies)} copies")
        return {"event": self._reload([event])[0], "copies": self._reload(copies)}

    def update_event(self, event_id: int, data: EventUpdate, ctx: OrganizationContext) -> EventResponse:
        event = self.get_event(event_id, ctx)
        updates = data.model_dump(exclude_unset=True)

        for required in ("type", "date", "status", "is_completed", "report_done"):
            if required in updates and updates[required] is None:
                raise HTTPException(status_code=400, detail=f"{required} cannot be empty")

        merged = {name: updates.get(name, getattr(event, name)) for name in ("patient_id", "facility_id")}
        if merged["patient_id"] is None and merged["facility_id"] is None:
            raise HTTPException(status_code=400, detail="Either patient or facility is required")

        # Unchanged references stay valid after their patient, facility or user is deactivated
        changed = {
            name: updates[name] if name in updates and updates[name] != getattr(event, name) else None
            for name in ("patient_id", "facility_id", "assignee_id")
        }
        self._check_references(event.organization_id, **changed, require_target=False)

        for key, value in updates.items():
            setattr(event, key, value)
        self._commit("update event")
        return self._reload([event])[0]

    def delete_event(self, event_id: int, ctx: OrganizationContext) -> dict:
        event = self.get_event(event_id, ctx)
        self.db.delete(event)
        self._commit("delete event")
        logger.info(f"🗑️ Deleted event {event_id}")
        return {"success": True}

    def copy_event(self, event_id: int, repeat: RepeatRequest, ctx: OrganizationContext) -> list[EventResponse]:
        """Copy an existing event onto every date of the rule"""
        source = self.get_event(event_id, ctx)
        rule, dates = self._expand(source.date, repeat)
        copies = self._stage_copies(source, rule, dates, ctx.user_id)
        self._commit("copy event")
        logger.info(f"📋 Copied event {event_id} onto {len(copies)} dates")
        return self._reload(copies)

    def confirm_events(self, event_ids: list[int], ctx: OrganizationContext) -> int:
        """Mark draft events of the caller's organization as confirmed"""
        if not event_ids:
            return 0
        events = [e for e in self.repo.get_by_ids(self.db, ctx, event_ids) if e.status == "draft"]
        for event in events:
            event.status = "confirmed"
        self._commit("confirm events")
        return len(events)
