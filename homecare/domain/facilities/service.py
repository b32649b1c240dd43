"""Facility service - Business logic for facilities"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Facility
from ...organization import OrganizationContext, ensure_same_organization, owning_organization_id
from .repository import FacilityRepository
from .schemas import FacilityCreate, FacilityUpdate

logger = logging.getLogger(__name__)


class FacilityService:
    """Service layer for facility business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FacilityRepository()

    def list_facilities(self, ctx: OrganizationContext) -> list[tuple[Facility, int]]:
        """Active facilities with their active patient count"""
        facilities = self.repo.list_active(self.db, ctx)
        counts = self.repo.active_patient_counts(self.db, [f.id for f in facilities])
        return [(f, counts.get(f.id, 0)) for f in facilities]

    def get_facility(self, facility_id: int, ctx: OrganizationContext) -> Facility:
        facility = self.repo.get_active(self.db, facility_id)
        if not facility:
            raise HTTPException(status_code=404, detail="Facility not found")
        ensure_same_organization(ctx, facility.organization_id, detail="Facility not found")
        return facility

    def get_active_patients(self, facility: Facility):
        return self.repo.active_patients(self.db, facility.id)

    def create_facility(self, data: FacilityCreate, ctx: OrganizationContext) -> Facility:
        facility = Facility(organization_id=owning_organization_id(ctx), **data.model_dump())
        self.db.add(facility)
        self.db.commit()
        self.db.refresh(facility)
        logger.info(f"✅ Created facility {facility.id} in organization {facility.organization_id}")
        return facility

    def update_facility(
        self, facility_id: int, data: FacilityUpdate, ctx: OrganizationContext
    ) -> Facility:
        facility = self.get_facility(facility_id, ctx)
        for key, value in data.model_dump().items():
            setattr(facility, key, value)
        self.db.commit()
        self.db.refresh(facility)
        return facility

    def delete_facility(self, facility_id: int, ctx: OrganizationContext) -> dict:
        """Soft delete; residents become home patients"""
        facility = self.get_facility(facility_id, ctx)
        facility.is_active = False
        detached = self.repo.detach_patients(self.db, facility.id)
        self.db.commit()
        logger.info(f"🗑️ Deactivated facility {facility_id}, detached {detached} patients")
        return {"success": True}
