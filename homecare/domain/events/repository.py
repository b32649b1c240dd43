"""Event repository - Database operations for events"""

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Event, Facility, Patient, User
from ...organization import OrganizationContext, organization_filter


def _with_relations(query):
    return query.options(
        joinedload(Event.patient).joinedload(Patient.facility),
        joinedload(Event.facility),
        joinedload(Event.assignee),
    )


class EventRepository:
    """Repository for event database operations"""

    @staticmethod
    def list_events(
        db: Session,
        ctx: OrganizationContext,
        start: Optional[date] = None,
        end: Optional[date] = None,
        types: Optional[tuple[str, ...]] = None,
        patient_id: Optional[int] = None,
        facility_id: Optional[int] = None,
    ) -> list[Event]:
        query = organization_filter(db.query(Event), Event, ctx)
        if start is not None:
            query = query.filter(Event.date >= start)
        if end is not None:
            query = query.filter(Event.date <= end)
        if types:
            query = query.filter(Event.type.in_(types))
        if patient_id is not None:
            query = query.filter(Event.patient_id == patient_id)
        if facility_id is not None:
            resident_ids = db.query(Patient.id).filter(Patient.facility_id == facility_id)
            query = query.filter(
                or_(Event.facility_id == facility_id, Event.patient_id.in_(resident_ids))
            )
        return _with_relations(query).order_by(Event.date, Event.id).all()

    @staticmethod
    def get_by_id(db: Session, event_id: int) -> Optional[Event]:
        return _with_relations(db.query(Event).filter(Event.id == event_id)).first()

    @staticmethod
    def get_by_ids(db: Session, ctx: OrganizationContext, event_ids: list[int]) -> list[Event]:
        query = db.query(Event).filter(Event.id.in_(event_ids))
        return organization_filter(query, Event, ctx).all()

    @staticmethod
    def get_patient(db: Session, patient_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id, Patient.is_active.is_(True)).first()

    @staticmethod
    def get_facility(db: Session, facility_id: int) -> Optional[Facility]:
        return (
            db.query(Facility)
            .filter(Facility.id == facility_id, Facility.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
