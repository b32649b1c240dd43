"""Handover summary repository"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import PatientSummary, PatientSummaryHistory


class SummaryRepository:
    @staticmethod
    def get_by_patient(db: Session, patient_id: int) -> Optional[PatientSummary]:
        return (
            db.query(PatientSummary)
            .filter(PatientSummary.patient_id == patient_id)
            .options(
                joinedload(PatientSummary.recent_changes_updater),
                joinedload(PatientSummary.updater),
            )
            .first()
        )

    @staticmethod
    def list_history(db: Session, summary_id: int) -> list[PatientSummaryHistory]:
        return (
            db.query(PatientSummaryHistory)
            .filter(PatientSummaryHistory.summary_id == summary_id)
            .options(joinedload(PatientSummaryHistory.changer))
            .order_by(PatientSummaryHistory.changed_at.desc(), PatientSummaryHistory.id.desc())
            .all()
        )
