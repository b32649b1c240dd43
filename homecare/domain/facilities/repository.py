"""Facility repository - Database operations for facilities"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Facility, Patient
from ...organization import OrganizationContext, organization_filter


class FacilityRepository:
    """Repository for facility database operations"""

    @staticmethod
    def list_active(db: Session, ctx: OrganizationContext) -> list[Facility]:
        query = db.query(Facility).filter(Facility.is_active.is_(True))
        return organization_filter(query, Facility, ctx).order_by(Facility.name).all()

    @staticmethod
    def active_patient_counts(db: Session, facility_ids: list[int]) -> dict[int, int]:
        if not facility_ids:
            return {}
        rows = (
            db.query(Patient.facility_id, func.count(Patient.id))
            .filter(Patient.facility_id.in_(facility_ids), Patient.is_active.is_(True))
            .group_by(Patient.facility_id)
            .all()
        )
        return dict(rows)

    @staticmethod
    def get_active(db: Session, facility_id: int) -> Optional[Facility]:
        return (
            db.query(Facility)
            .filter(Facility.id == facility_id, Facility.is_active.is_(True))
            .first()
        )

    @staticmethod
    def active_patients(db: Session, facility_id: int) -> list[Patient]:
        return (
            db.query(Patient)
            .filter(Patient.facility_id == facility_id, Patient.is_active.is_(True))
            .order_by(Patient.name_kana, Patient.name)
            .all()
        )

    @staticmethod
    def detach_patients(db: Session, facility_id: int) -> int:
        return (
            db.query(Patient)
            .filter(Patient.facility_id == facility_id)
            .update({Patient.facility_id: None}, synchronize_session=False)
        )
