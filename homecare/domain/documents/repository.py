"""Patient document repository"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import PatientDocument


class DocumentRepository:
    @staticmethod
    def list_for_patient(db: Session, patient_id: int) -> list[PatientDocument]:
        return (
            db.query(PatientDocument)
            .filter(PatientDocument.patient_id == patient_id)
            .options(joinedload(PatientDocument.uploader))
            .order_by(PatientDocument.uploaded_at.desc(), PatientDocument.id.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, document_id: int) -> Optional[PatientDocument]:
        return (
            db.query(PatientDocument)
            .filter(PatientDocument.id == document_id)
            .options(joinedload(PatientDocument.patient), joinedload(PatientDocument.uploader))
            .first()
        )
