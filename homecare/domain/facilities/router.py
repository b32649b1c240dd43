"""Facility router - FastAPI endpoints for facilities"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...organization import OrganizationContext, require_editor, require_organization
from .schemas import (
    FacilityCreate,
    FacilityDetail,
    FacilityListItem,
    FacilityPatient,
    FacilityResponse,
    FacilityUpdate,
)
from .service import FacilityService

router = APIRouter(prefix="/api/facilities", tags=["Facilities"])


def get_facility_service(db: Session = Depends(get_db)) -> FacilityService:
    """Dependency injection for FacilityService"""
    return FacilityService(db)


@router.get("", response_model=list[FacilityListItem])
async def list_facilities(
    ctx: OrganizationContext = Depends(require_organization),
    service: FacilityService = Depends(get_facility_service),
):
    return [
        FacilityListItem(
            **FacilityResponse.model_validate(facility).model_dump(), patient_count=count
        )
        for facility, count in service.list_facilities(ctx)
    ]


@router.get("/{facility_id}", response_model=FacilityDetail)
async def get_facility(
    facility_id: int,
    ctx: OrganizationContext = Depends(require_organization),
    service: FacilityService = Depends(get_facility_service),
):
    facility = service.get_facility(facility_id, ctx)
    return FacilityDetail(
        **FacilityResponse.model_validate(facility).model_dump(),
        patients=[FacilityPatient.model_validate(p) for p in service.get_active_patients(facility)],
    )


@router.post("", response_model=FacilityResponse)
async def create_facility(
    data: FacilityCreate,
    ctx: OrganizationContext = Depends(require_editor),
    service: FacilityService = Depends(get_facility_service),
):
    return service.create_facility(data, ctx)


@router.put("/{facility_id}", response_model=FacilityResponse)
async def update_facility(
    facility_id: int,
    data: FacilityUpdate,
    ctx: OrganizationContext = Depends(require_editor),
    service: FacilityService = Depends(get_facility_service),
):
    return service.update_facility(facility_id, data, ctx)


@router.delete("/{facility_id}")
async def delete_facility(
    facility_id: int,
    ctx: OrganizationContext = Depends(require_editor),
    service: FacilityService = Depends(get_facility_service),
):
    return service.delete_facility(facility_id, ctx)
