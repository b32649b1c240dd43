"""Organization repository - Database operations for tenants"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Event, Facility, Organization, Patient, User


class OrganizationRepository:
    """Repository for organization database operations"""

    @staticmethod
    def list_organizations(db: Session) -> list[Organization]:
        return db.query(Organization).order_by(Organization.created_at.desc(), Organization.id.desc()).all()

    @staticmethod
    def get_by_id(db: Session, organization_id: int) -> Optional[Organization]:
        return db.query(Organization).filter(Organization.id == organization_id).first()

    @staticmethod
    def get_by_code(db: Session, code: str, exclude_id: Optional[int] = None) -> Optional[Organization]:
        query = db.query(Organization).filter(Organization.code == code)
        if exclude_id is not None:
            query = query.filter(Organization.id != exclude_id)
        return query.first()

    @staticmethod
    def count_by_organization(db: Session, model) -> dict[int, int]:
        """Row counts of an organization-owned model keyed by organization id"""
        rows = (
            db.query(model.organization_id, func.count(model.id))
            .group_by(model.organization_id)
            .all()
        )
        return {org_id: count for org_id, count in rows if org_id is not None}

    @staticmethod
    def get_counts(db: Session, organization_id: int) -> dict[str, int]:
        return {
            "users": db.query(User).filter(User.organization_id == organization_id).count(),
            "patients": db.query(Patient).filter(Patient.organization_id == organization_id).count(),
            "facilities": db.query(Facility)
            .filter(Facility.organization_id == organization_id)
            .count(),
        }

    @staticmethod
    def count_events(
        db: Session,
        organization_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        types: Optional[tuple[str, ...]] = None,
    ) -> int:
        query = db.query(func.count(Event.id)).filter(Event.organization_id == organization_id)
        if start is not None:
            query = query.filter(Event.date >= start)
        if end is not None:
            query = query.filter(Event.date <= end)
        if types:
            query = query.filter(Event.type.in_(types))
        return query.scalar() or 0
