"""User domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel


class UserOption(BaseModel):
    """Entry of an assignee picker"""

    id: int
    name: str

    class Config:
        from_attributes = True


class UserListItem(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool = True

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Required fields are checked by the service so that omissions answer 400"""

    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class PasswordReset(BaseModel):
    new_password: Optional[str] = None
