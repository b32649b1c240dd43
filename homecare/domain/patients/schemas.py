"""Patient domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_phone, validate_required_text
from ..summaries.schemas import SummaryResponse


class PatientBase(BaseModel):
    name: str
    name_kana: Optional[str] = None
    facility_id: Optional[int] = None
    address: Optional[str] = None
    area: Optional[str] = None
    phone: Optional[str] = None
    memo: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_required_text(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class PatientCreate(PatientBase):
    pass


class PatientUpdate(PatientBase):
    pass


class FacilityRef(BaseModel):
    id: int
    name: str
    display_mode: str

    class Config:
        from_attributes = True


class PatientResponse(BaseModel):
    id: int
    organization_id: int
    name: str
    name_kana: Optional[str] = None
    facility_id: Optional[int] = None
    facility: Optional[FacilityRef] = None
    address: Optional[str] = None
    area: Optional[str] = None
    phone: Optional[str] = None
    memo: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PatientDetail(PatientResponse):
    summary: Optional[SummaryResponse] = None
