"""Handover summary schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class SummaryInput(BaseModel):
    """
    Handover summary as submitted by the editor form.

    Fields are loosely typed: the service validates the whole form at once so
    every problem is reported in a single response.
    """

    # 1. Key cautions
    caution_medication_refusal: bool = False
    caution_understanding_difficulty: bool = False
    caution_family_presence_required: bool = False
    caution_time_restriction: bool = False
    caution_trouble_risk: bool = False
    caution_other: bool = False
    caution_other_text: Optional[str] = None
    # 2. Things never to do
    prohibited_actions: Optional[str] = None
    # 3. Approach
    approach_type: Optional[str] = None
    approach_note: Optional[str] = None
    # 4. Contacts
    primary_contact_name: Optional[str] = None
    primary_contact_relation: Optional[str] = None
    primary_contact_phone: Optional[str] = None
    secondary_contact_name: Optional[str] = None
    secondary_contact_relation: Optional[str] = None
    secondary_contact_phone: Optional[str] = None
    # 5. Recent changes
    recent_changes: Optional[str] = None
    # 6. Free note
    free_note: Optional[str] = None


class SummaryResponse(BaseModel):
    id: int
    patient_id: int
    caution_medication_refusal: bool
    caution_understanding_difficulty: bool
    caution_family_presence_required: bool
    caution_time_restriction: bool
    caution_trouble_risk: bool
    caution_other: bool
    caution_other_text: Optional[str] = None
    prohibited_actions: Optional[str] = None
    approach_type: str
    approach_note: Optional[str] = None
    primary_contact_name: str
    primary_contact_relation: str
    primary_contact_phone: str
    secondary_contact_name: Optional[str] = None
    secondary_contact_relation: Optional[str] = None
    secondary_contact_phone: Optional[str] = None
    recent_changes: str
    recent_changes_updated_at: Optional[datetime] = None
    recent_changes_updated_by_name: Optional[str] = None
    free_note: Optional[str] = None
    updated_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SummaryHistoryResponse(BaseModel):
    id: int
    summary_id: int
    snapshot: dict[str, Any]
    changed_fields: list[str]
    changed_by: Optional[int] = None
    changed_by_name: Optional[str] = None
    changed_at: Optional[datetime] = None
