"""Patient service - Business logic for patients"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Patient
from ...organization import OrganizationContext, ensure_same_organization, owning_organization_id
from .repository import PatientRepository
from .schemas import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)


class PatientService:
    """Service layer for patient business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def list_patients(self, ctx: OrganizationContext) -> list[Patient]:
        return self.repo.list_active(self.db, ctx)

    def get_patient(self, patient_id: int, ctx: OrganizationContext) -> Patient:
        patient = self.repo.get_active(self.db, patient_id)
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        ensure_same_organization(ctx, patient.organization_id, detail="Patient not found")
        return patient

    def _check_facility(self, facility_id: Optional[int], organization_id: int) -> None:
        if facility_id is None:
            return
        facility = self.repo.get_active_facility(self.db, facility_id)
        if not facility or facility.organization_id != organization_id:
            raise HTTPException(status_code=400, detail="Facility not found")

    def create_patient(self, data: PatientCreate, ctx: OrganizationContext) -> Patient:
        organization_id = owning_organization_id(ctx)
        self._check_facility(data.facility_id, organization_id)

        patient = Patient(organization_id=organization_id, **data.model_dump())
        self.db.add(patient)
        self.db.commit()
        self.db.refresh(patient)
        logger.info(f"✅ Created patient {patient.id} in organization {organization_id}")
        return patient

    def update_patient(self, patient_id: int, data: PatientUpdate, ctx: OrganizationContext) -> Patient:
        patient = self.get_patient(patient_id, ctx)
        self._check_facility(data.facility_id, patient.organization_id)

        for key, value in data.model_dump().items():
            setattr(patient, key, value)
        self.db.commit()
        self.db.refresh(patient)
        return patient

    def delete_patient(self, patient_id: int, ctx: OrganizationContext) -> dict:
        """Soft delete"""
        patient = self.get_patient(patient_id, ctx)
        patient.is_active = False
        self.db.commit()
        logger.info(f"🗑️ Deactivated patient {patient_id}")
        return {"success": True}
