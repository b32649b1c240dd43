"""Patient document service - uploads, signed downloads and removal"""

import logging
import re
import time
import uuid
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import DOCUMENT_TYPES, PatientDocument
from ...organization import OrganizationContext, ensure_same_organization
from ..patients.service import PatientService
from .repository import DocumentRepository
from .schemas import DocumentResponse
from .storage import DocumentStorage

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_MIME_TYPES = (
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/heic",
    "image/heif",
    "image/webp",
)
EXTENSION_PATTERN = re.compile(r"^[a-z0-9]{1,10}$")


def file_extension(file_name: Optional[str]) -> str:
    """Lowercase extension of an uploaded file name, "bin" when unusable"""
    if not file_name or "." not in file_name:
        return "bin"
    ext = file_name.rsplit(".", 1)[1].lower()
    return ext if EXTENSION_PATTERN.match(ext) else "bin"


def build_storage_path(patient_id: int, file_name: Optional[str]) -> str:
    """{patient_id}/{epoch millis}_{uuid}.{ext}"""
    timestamp = int(time.time() * 1000)
    return f"{patient_id}/{timestamp}_{uuid.uuid4()}.{file_extension(file_name)}"


def to_document_response(document: PatientDocument) -> DocumentResponse:
    response = DocumentResponse.model_validate(document)
    response.uploaded_by_name = document.uploader.name if document.uploader else None
    return response


class DocumentService:
    def __init__(self, db: Session, storage: DocumentStorage):
        self.db = db
        self.storage = storage
        self.repo = DocumentRepository()

    def list_documents(self, patient_id: Optional[int], ctx: OrganizationContext) -> list[PatientDocument]:
        if patient_id is None:
            raise HTTPException(status_code=400, detail="patient_id is required")
        PatientService(self.db).get_patient(patient_id, ctx)
        return self.repo.list_for_patient(self.db, patient_id)

    def get_document(self, document_id: int, ctx: OrganizationContext) -> PatientDocument:
        document = self.repo.get_by_id(self.db, document_id)
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")
        ensure_same_organization(ctx, document.patient.organization_id, detail="Document not found")
        return document

    def upload_document(
        self,
        ctx: OrganizationContext,
        patient_id: Optional[int],
        file_name: Optional[str],
        content_type: Optional[str],
        contents: Optional[bytes],
        document_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> PatientDocument:
        if contents is None or patient_id is None:
            raise HTTPException(status_code=400, detail="File and patient ID are required")

        if len(contents) > MAX_FILE_SIZE:
            raise HTTPException(status_code=400, detail="File size must be 10MB or less")

        if content_type not in ALLOWED_MIME_TYPES:
            raise HTTPException(
                status_code=400, detail="Only PDF, JPEG, PNG, HEIC and WebP files can be uploaded"
            )

        document_type = document_type or "other"
        if document_type not in DOCUMENT_TYPES:
            raise HTTPException(status_code=400, detail=f"Invalid document type: {document_type}")

        patient = PatientService(self.db).get_patient(patient_id, ctx)
        storage_path = build_storage_path(patient.id, file_name)

        try:
            self.storage.upload(storage_path, contents, content_type)
        except Exception as e:
            logger.error(f"❌ Storage upload failed for {storage_path}: {e}")
            raise HTTPException(status_code=500, detail="Failed to upload file") from e

        document = PatientDocument(
            patient_id=patient.id,
            type=document_type,
            file_name=file_name or storage_path.rsplit("/", 1)[1],
            file_size=len(contents),
            mime_type=content_type,
            storage_path=storage_path,
            description=description or None,
            uploaded_by=ctx.user_id,
        )
        self.db.add(document)
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save document row for {storage_path}: {e}")
            self._discard_object(storage_path)
            raise HTTPException(status_code=500, detail="Failed to upload file") from e
        logger.info(f"✅ Stored document {document.id} for patient {patient.id}")
        return self.repo.get_by_id(self.db, document.id)

    def get_download_url(self, document_id: int, ctx: OrganizationContext) -> dict:
        document = self.get_document(document_id, ctx)
        try:
            url = self.storage.presigned_url(document.storage_path)
        except Exception as e:
            raise HTTPException(status_code=500, detail="Failed to create download URL") from e
        return {"url": url, "document": to_document_response(document)}

    def _discard_object(self, storage_path: str) -> None:
        """Best-effort object removal; failures are only logged"""
        try:
            self.storage.delete(storage_path)
        except Exception as e:
            logger.error(f"❌ Storage delete failed for {storage_path}: {e}")

    def delete_document(self, document_id: int, ctx: OrganizationContext) -> dict:
        document = self.get_document(document_id, ctx)
        # The row is removed even when the object could not be
        self._discard_object(document.storage_path)

        self.db.delete(document)
        self.db.commit()
        logger.info(f"🗑️ Deleted document {document_id}")
        return {"success": True}
