"""Handover summary endpoints, nested under patients"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...organization import OrganizationContext, require_editor, require_organization
from ..patients.service import PatientService
from .schemas import SummaryHistoryResponse, SummaryInput, SummaryResponse
from .service import SummaryService, to_summary_response

router = APIRouter(prefix="/api/patients", tags=["Patient summaries"])


def get_summary_service(db: Session = Depends(get_db)) -> SummaryService:
    return SummaryService(db)


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    return PatientService(db)


@router.get("/{patient_id}/summary", response_model=Optional[SummaryResponse])
async def get_summary(
    patient_id: int,
    ctx: OrganizationContext = Depends(require_organization),
    patients: PatientService = Depends(get_patient_service),
    service: SummaryService = Depends(get_summary_service),
):
    patients.get_patient(patient_id, ctx)
    return to_summary_response(service.get_summary(patient_id))


@router.put("/{patient_id}/summary", response_model=SummaryResponse)
async def save_summary(
    patient_id: int,
    data: SummaryInput,
    ctx: OrganizationContext = Depends(require_editor),
    patients: PatientService = Depends(get_patient_service),
    service: SummaryService = Depends(get_summary_service),
):
    """Create or update; answers 422 with every validation error at once"""
    patients.get_patient(patient_id, ctx)
    return to_summary_response(service.save_summary(patient_id, data, ctx.user_id))


@router.get("/{patient_id}/summary/history", response_model=list[SummaryHistoryResponse])
async def get_summary_history(
    patient_id: int,
    ctx: OrganizationContext = Depends(require_organization),
    patients: PatientService = Depends(get_patient_service),
    service: SummaryService = Depends(get_summary_service),
):
    patients.get_patient(patient_id, ctx)
    return service.get_history(patient_id)
