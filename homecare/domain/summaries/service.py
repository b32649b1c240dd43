"""Handover summary service - validation, upsert and change history"""

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import APPROACH_TYPES, PatientSummary, PatientSummaryHistory
from ...shared.validators import is_valid_phone
from .repository import SummaryRepository
from .schemas import SummaryHistoryResponse, SummaryInput, SummaryResponse

logger = logging.getLogger(__name__)

# Fields whose changes are tracked in the history
CONTENT_FIELDS = (
    "caution_medication_refusal",
    "caution_understanding_difficulty",
    "caution_family_presence_required",
    "caution_time_restriction",
    "caution_trouble_risk",
    "caution_other",
    "caution_other_text",
    "prohibited_actions",
    "approach_type",
    "approach_note",
    "primary_contact_name",
    "primary_contact_relation",
    "primary_contact_phone",
    "secondary_contact_name",
    "secondary_contact_relation",
    "secondary_contact_phone",
    "recent_changes",
    "free_note",
)

LENGTH_LIMITS = (
    ("caution_other_text", 100, "Other caution"),
    ("prohibited_actions", 300, "Prohibited actions"),
    ("approach_note", 100, "Approach note"),
    ("recent_changes", 300, "Recent changes"),
    ("free_note", 500, "Free note"),
)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_summary(data: SummaryInput) -> list[str]:
    """Every problem of the form, in display order"""
    errors = []

    if not data.approach_type:
        errors.append("Approach type is required")
    elif data.approach_type not in APPROACH_TYPES:
        errors.append(f"Approach type must be one of: {', '.join(APPROACH_TYPES)}")

    if _blank(data.primary_contact_name):
        errors.append("Primary contact name is required")
    if _blank(data.primary_contact_relation):
        errors.append("Primary contact relation is required")
    if _blank(data.primary_contact_phone):
        errors.append("Primary contact phone is required")

    if data.primary_contact_phone and not is_valid_phone(data.primary_contact_phone):
        errors.append("Phone numbers may contain digits and hyphens only")
    if data.secondary_contact_phone and not is_valid_phone(data.secondary_contact_phone):
        errors.append("Secondary contact phone may contain digits and hyphens only")

    if _blank(data.recent_changes):
        errors.append("Recent changes are required")

    if data.caution_other and _blank(data.caution_other_text):
        errors.append("Describe the other caution")

    for field, limit, label in LENGTH_LIMITS:
        value = getattr(data, field)
        if value and len(value) > limit:
            errors.append(f"{label} must be {limit} characters or fewer")

    return errors


def normalize_summary(data: SummaryInput) -> dict[str, Any]:
    """Column values for a validated form"""
    values = data.model_dump()
    values["caution_other_text"] = data.caution_other_text if data.caution_other else None
    for field in (
        "prohibited_actions",
        "approach_note",
        "secondary_contact_name",
        "secondary_contact_relation",
        "secondary_contact_phone",
        "free_note",
    ):
        values[field] = values[field] or None
    return values


def snapshot_summary(summary: PatientSummary) -> dict[str, Any]:
    snapshot = {field: getattr(summary, field) for field in CONTENT_FIELDS}
    snapshot["id"] = summary.id
    snapshot["patient_id"] = summary.patient_id
    snapshot["updated_by"] = summary.updated_by
    for field in ("recent_changes_updated_at", "updated_at"):
        value = getattr(summary, field)
        snapshot[field] = value.isoformat() if value else None
    return snapshot


class SummaryService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SummaryRepository()

    def get_summary(self, patient_id: int) -> Optional[PatientSummary]:
        return self.repo.get_by_patient(self.db, patient_id)

    def save_summary(self, patient_id: int, data: SummaryInput, user_id: int) -> PatientSummary:
        """Create or update the summary of a patient already checked for access"""
        errors = validate_summary(data)
        if errors:
            raise HTTPException(status_code=422, detail={"errors": errors})

        values = normalize_summary(data)
        now = datetime.utcnow()
        summary = self.repo.get_by_patient(self.db, patient_id)

        try:
            if summary is None:
                summary = PatientSummary(
                    patient_id=patient_id,
                    created_by=user_id,
                    updated_by=user_id,
                    recent_changes_updated_at=now,
                    recent_changes_updated_by=user_id,
                    **values,
                )
                self.db.add(summary)
                logger.info(f"📝 Created handover summary for patient {patient_id}")
            else:
                changed = [f for f in CONTENT_FIELDS if getattr(summary, f) != values[f]]
                if changed:
                    self.db.add(
                        PatientSummaryHistory(
                            summary_id=summary.id,
                            snapshot=snapshot_summary(summary),
                            changed_fields=changed,
                            changed_by=user_id,
                        )
                    )
                    for field, value in values.items():
                        setattr(summary, field, value)
                    if "recent_changes" in changed:
                        summary.recent_changes_updated_at = now
                        summary.recent_changes_updated_by = user_id
                    summary.updated_by = user_id
                    logger.info(
                        f"📝 Updated handover summary for patient {patient_id}: {', '.join(changed)}"
                    )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save handover summary for patient {patient_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save summary") from e

        return self.repo.get_by_patient(self.db, patient_id)

    def get_history(self, patient_id: int) -> list[SummaryHistoryResponse]:
        summary = self.repo.get_by_patient(self.db, patient_id)
        if summary is None:
            return []
        return [
            SummaryHistoryResponse(
                id=h.id,
                summary_id=h.summary_id,
                snapshot=h.snapshot,
                changed_fields=h.changed_fields or [],
                changed_by=h.changed_by,
                changed_by_name=h.changer.name if h.changer else None,
                changed_at=h.changed_at,
            )
            for h in self.repo.list_history(self.db, summary.id)
        ]


def to_summary_response(summary: Optional[PatientSummary]) -> Optional[SummaryResponse]:
    if summary is None:
        return None
    response = SummaryResponse.model_validate(summary)
    response.recent_changes_updated_by_name = (
        summary.recent_changes_updater.name if summary.recent_changes_updater else None
    )
    response.updated_by_name = summary.updater.name if summary.updater else None
    return response
