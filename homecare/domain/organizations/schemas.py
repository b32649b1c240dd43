"""Organization domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..users.schemas import UserCreate, UserListItem


class OrganizationCreate(BaseModel):
    """name and code are checked by the service so that omissions answer 400"""

    name: Optional[str] = None
    code: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    admin: Optional[UserCreate] = None


class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None


class OrganizationCounts(BaseModel):
    users: int = 0
    patients: int = 0
    facilities: int = 0


class OrganizationResponse(BaseModel):
    id: int
    name: str
    code: str
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrganizationListItem(OrganizationResponse):
    counts: OrganizationCounts


class OrganizationDetail(OrganizationResponse):
    users: list[UserListItem]
    counts: OrganizationCounts


class OrganizationStats(BaseModel):
    total_events: int
    this_month_events: int
    upcoming_visits: int
    upcoming_prescriptions: int
