"""Facility domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_phone, validate_required_text


class FacilityBase(BaseModel):
    name: str
    name_kana: Optional[str] = None
    address: Optional[str] = None
    area: Optional[str] = None
    phone: Optional[str] = None
    contact_person: Optional[str] = None
    display_mode: Literal["grouped", "individual"] = "grouped"
    memo: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_required_text(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class FacilityCreate(FacilityBase):
    pass


class FacilityUpdate(FacilityBase):
    pass


class FacilityPatient(BaseModel):
    id: int
    name: str
    name_kana: Optional[str] = None

    class Config:
        from_attributes = True


class FacilityResponse(BaseModel):
    id: int
    organization_id: int
    name: str
    name_kana: Optional[str] = None
    address: Optional[str] = None
    area: Optional[str] = None
    phone: Optional[str] = None
    contact_person: Optional[str] = None
    display_mode: str
    memo: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FacilityListItem(FacilityResponse):
    patient_count: int = 0


class FacilityDetail(FacilityResponse):
    patients: list[FacilityPatient] = []
