"""Patient router - FastAPI endpoints for patients"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...organization import OrganizationContext, require_editor, require_organization
from ..summaries.service import SummaryService, to_summary_response
from .schemas import PatientCreate, PatientDetail, PatientResponse, PatientUpdate
from .service import PatientService

router = APIRouter(prefix="/api/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


@router.get("", response_model=list[PatientResponse])
async def list_patients(
    ctx: OrganizationContext = Depends(require_organization),
    service: PatientService = Depends(get_patient_service),
):
    """Active patients ordered by reading (kana) then name"""
    return service.list_patients(ctx)


@router.get("/{patient_id}", response_model=PatientDetail)
async def get_patient(
    patient_id: int,
    ctx: OrganizationContext = Depends(require_organization),
    service: PatientService = Depends(get_patient_service),
    db: Session = Depends(get_db),
):
    patient = service.get_patient(patient_id, ctx)
    summary = SummaryService(db).get_summary(patient.id)
    return PatientDetail(
        **PatientResponse.model_validate(patient).model_dump(),
        summary=to_summary_response(summary),
    )


@router.post("", response_model=PatientResponse)
async def create_patient(
    data: PatientCreate,
    ctx: OrganizationContext = Depends(require_editor),
    service: PatientService = Depends(get_patient_service),
):
    return service.create_patient(data, ctx)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: int,
    data: PatientUpdate,
    ctx: OrganizationContext = Depends(require_editor),
    service: PatientService = Depends(get_patient_service),
):
    return service.update_patient(patient_id, data, ctx)


@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: int,
    ctx: OrganizationContext = Depends(require_editor),
    service: PatientService = Depends(get_patient_service),
):
    return service.delete_patient(patient_id, ctx)
