"""PDF report endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import EVENT_PRESCRIPTION, EVENT_VISIT
from ...organization import OrganizationContext, require_organization
from ...shared.validators import parse_date
from .pdf_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pdf", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    """Dependency injection for ReportService"""
    return ReportService(db)


def pdf_response(pdf_bytes: bytes, filename: str) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-cache, must-revalidate",
    }
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)


def period(start: Optional[str], end: Optional[str]) -> tuple[date, date]:
    if not start or not end:
        raise HTTPException(status_code=400, detail="start and end are required")
    try:
        return parse_date(start), parse_date(end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/schedule")
async def schedule_pdf(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    ctx: OrganizationContext = Depends(require_organization),
    service: ReportService = Depends(get_report_service),
):
    """All events of the period as a landscape table"""
    start_date, end_date = period(start, end)
    pdf_bytes = service.schedule_pdf(ctx, start_date, end_date)
    return pdf_response(pdf_bytes, f"schedule_{start_date}_{end_date}.pdf")


@router.get("/schedule-list")
async def schedule_list_pdf(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    ctx: OrganizationContext = Depends(require_organization),
    service: ReportService = Depends(get_report_service),
):
    if not start or not end or not type:
        raise HTTPException(status_code=400, detail="Missing parameters")
    if type not in (EVENT_VISIT, EVENT_PRESCRIPTION):
        raise HTTPException(status_code=400, detail="type must be visit or prescription")

    start_date, end_date = period(start, end)
    pdf_bytes = service.schedule_list_pdf(ctx, start_date, end_date, type)
    return pdf_response(pdf_bytes, f"{type}_schedule_{start_date}_to_{end_date}.pdf")


@router.get("/patient-summary")
async def patient_summary_pdf(
    patient_id: Optional[int] = Query(None),
    ctx: OrganizationContext = Depends(require_organization),
    service: ReportService = Depends(get_report_service),
):
    """Handover summary sheet of one patient"""
    if patient_id is None:
        raise HTTPException(status_code=400, detail="Missing patient_id")

    patient, pdf_bytes = service.patient_summary_pdf(ctx, patient_id)
    logger.info(f"✅ Served handover summary PDF for patient {patient.id}")
    return pdf_response(pdf_bytes, f"patient_summary_{patient.id}.pdf")
