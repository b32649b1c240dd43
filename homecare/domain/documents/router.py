"""Patient document endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...database import get_db
from ...organization import OrganizationContext, require_editor, require_organization
from .schemas import DocumentResponse, DocumentUrlResponse
from .service import DocumentService, to_document_response
from .storage import DocumentStorage, get_document_storage

router = APIRouter(prefix="/api/documents", tags=["Documents"])


def get_document_service(
    db: Session = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
) -> DocumentService:
    """Dependency injection for DocumentService"""
    return DocumentService(db, storage)


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    patient_id: Optional[int] = Query(None),
    ctx: OrganizationContext = Depends(require_organization),
    service: DocumentService = Depends(get_document_service),
):
    return [to_document_response(d) for d in service.list_documents(patient_id, ctx)]


@router.post("/upload", response_model=DocumentResponse)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    patient_id: Optional[int] = Form(None),
    type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    ctx: OrganizationContext = Depends(require_editor),
    service: DocumentService = Depends(get_document_service),
):
    """Upload a file (PDF or image, 10MB max) for a patient"""
    contents = await file.read() if file is not None else None
    document = service.upload_document(
        ctx,
        patient_id=patient_id,
        file_name=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        contents=contents,
        document_type=type,
        description=description,
    )
    return to_document_response(document)


@router.get("/{document_id}", response_model=DocumentUrlResponse)
async def get_document(
    document_id: int,
    ctx: OrganizationContext = Depends(require_organization),
    service: DocumentService = Depends(get_document_service),
):
    """Signed download URL valid for one hour"""
    return service.get_download_url(document_id, ctx)


@router.delete("/{document_id}")
async def delete_document(
    document_id: int,
    ctx: OrganizationContext = Depends(require_editor),
    service: DocumentService = Depends(get_document_service),
):
    return service.delete_document(document_id, ctx)
