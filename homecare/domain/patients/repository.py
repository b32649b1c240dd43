"""Patient repository - Database operations for patients"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Facility, Patient
from ...organization import OrganizationContext, organization_filter


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def list_active(db: Session, ctx: OrganizationContext) -> list[Patient]:
        query = (
            db.query(Patient)
            .filter(Patient.is_active.is_(True))
            .options(joinedload(Patient.facility))
        )
        return (
            organization_filter(query, Patient, ctx)
            .order_by(Patient.name_kana, Patient.name)
            .all()
        )

    @staticmethod
    def get_active(db: Session, patient_id: int) -> Optional[Patient]:
        return (
            db.query(Patient)
            .filter(Patient.id == patient_id, Patient.is_active.is_(True))
            .options(joinedload(Patient.facility))
            .first()
        )

    @staticmethod
    def get_active_facility(db: Session, facility_id: int) -> Optional[Facility]:
        return (
            db.query(Facility)
            .filter(Facility.id == facility_id, Facility.is_active.is_(True))
            .first()
        )
