"""User service - Business logic for user accounts"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import ROLE_ADMIN, ROLE_STAFF, ROLE_SUPER_ADMIN, ROLE_VIEWER, User
from ...organization import OrganizationContext, ensure_same_organization
from ...security_utils import hash_password, validate_password_length, verify_password
from .repository import UserRepository
from .schemas import PasswordChange, PasswordReset, ProfileUpdate, UserCreate

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = (ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER)


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def list_active_users(self, ctx: OrganizationContext) -> list[User]:
        """Active users of the caller's organization"""
        return self.repo.list_users(self.db, ctx.organization_id)

    def list_all_users(self, ctx: OrganizationContext) -> list[User]:
        return self.repo.list_users(self.db, ctx.organization_id, active_only=False)

    def stage_member(self, organization_id: int, data: UserCreate) -> User:
        """
        Validate and add a user to an organization without committing.

        Callers commit, so the user can share a transaction with other writes.
        """
        email = (data.email or "").strip().lower()
        name = (data.name or "").strip()
        if not email or not name or not data.password:
            raise HTTPException(status_code=400, detail="Email, name and password are required")

        password_error = validate_password_length(data.password)
        if password_error:
            raise HTTPException(status_code=400, detail=password_error)

        role = data.role or ROLE_STAFF
        if role == ROLE_SUPER_ADMIN:
            raise HTTPException(status_code=400, detail="The super_admin role cannot be granted")
        if role not in ASSIGNABLE_ROLES:
            raise HTTPException(status_code=400, detail=f"Invalid role: {role}")

        if self.repo.get_by_email(self.db, email):
            raise HTTPException(status_code=400, detail="This email address is already in use")

        return self.repo.add_user(
            self.db,
            email=email,
            name=name,
            password_hash=hash_password(data.password),
            role=role,
            organization_id=organization_id,
            is_active=True,
        )

    def create_member(self, organization_id: int, data: UserCreate) -> User:
        user = self.stage_member(organization_id, data)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ Created user {user.id} ({user.role}) in organization {organization_id}")
        return user

    def deactivate_member(
        self, organization_id: int, user_id: int, ctx: OrganizationContext
    ) -> dict:
        user = self.repo.get_by_id(self.db, user_id)
        if not user or user.organization_id != organization_id:
            raise HTTPException(status_code=404, detail="User not found")
        if user.id == ctx.user_id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")

        user.is_active = False
        self.db.commit()
        logger.info(f"🗑️ Deactivated user {user_id} of organization {organization_id}")
        return {"success": True}

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        name = (data.name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Name is required")
        user.name = name
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user: User, data: PasswordChange) -> dict:
        if not data.current_password or not verify_password(
            data.current_password, user.password_hash
        ):
            raise HTTPException(status_code=400, detail="Current password is incorrect")

        password_error = validate_password_length(data.new_password)
        if password_error:
            raise HTTPException(status_code=400, detail=password_error)

        user.password_hash = hash_password(data.new_password)
        self.db.commit()
        logger.info(f"🔑 User {user.id} changed their password")
        return {"success": True}

    def reset_password(self, user_id: int, data: PasswordReset, ctx: OrganizationContext) -> dict:
        """Admin reset of another user's password within the same organization"""
        password_error = validate_password_length(data.new_password)
        if password_error:
            raise HTTPException(status_code=400, detail=password_error)

        user: Optional[User] = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        ensure_same_organization(ctx, user.organization_id, detail="User not found")

        user.password_hash = hash_password(data.new_password)
        self.db.commit()
        logger.info(f"🔑 Password of user {user_id} reset by {ctx.user_id}")
        return {"success": True}
