"""Organization service - Business logic for tenant management"""

import logging
from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import (
    EVENT_BOTH,
    EVENT_PRESCRIPTION,
    EVENT_VISIT,
    ROLE_ADMIN,
    Facility,
    Organization,
    Patient,
    User,
)
from ...organization import OrganizationContext
from ...shared.clock import local_today
from ..users.schemas import UserCreate
from ..users.service import UserService
from .repository import OrganizationRepository
from .schemas import OrganizationCreate, OrganizationUpdate

logger = logging.getLogger(__name__)


class OrganizationService:
    """Service layer for organization business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrganizationRepository()

    def list_organizations(self) -> list[dict]:
        organizations = self.repo.list_organizations(self.db)
        users = self.repo.count_by_organization(self.db, User)
        patients = self.repo.count_by_organization(self.db, Patient)
        facilities = self.repo.count_by_organization(self.db, Facility)
        return [
            {
                "organization": org,
                "counts": {
                    "users": users.get(org.id, 0),
                    "patients": patients.get(org.id, 0),
                    "facilities": facilities.get(org.id, 0),
                },
            }
            for org in organizations
        ]

    def get_organization(self, organization_id: int) -> Organization:
        organization = self.repo.get_by_id(self.db, organization_id)
        if not organization:
            raise HTTPException(status_code=404, detail="Organization not found")
        return organization

    def get_counts(self, organization_id: int) -> dict[str, int]:
        return self.repo.get_counts(self.db, organization_id)

    def _validate_name_and_code(
        self, name: Optional[str], code: Optional[str], exclude_id: Optional[int] = None
    ) -> tuple[str, str]:
        name = (name or "").strip()
        code = (code or "").strip()
        if not name or not code:
            raise HTTPException(status_code=400, detail="Organization name and code are required")
        if self.repo.get_by_code(self.db, code, exclude_id=exclude_id):
            raise HTTPException(status_code=400, detail="This organization code is already in use")
        return name, code

    def create_organization(self, data: OrganizationCreate) -> Organization:
        """Create an organization, and its first admin when one is supplied"""
        name, code = self._validate_name_and_code(data.name, data.code)

        organization = Organization(
            name=name,
            code=code,
            phone=data.phone or None,
            address=data.address or None,
            is_active=True,
        )
        try:
            self.db.add(organization)
            self.db.flush()
            if data.admin is not None:
                admin = data.admin.model_copy(update={"role": ROLE_ADMIN})
                UserService(self.db).stage_member(organization.id, admin)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(organization)
        logger.info(f"✅ Created organization {organization.id} ({organization.code})")
        return organization

    def update_organization(self, organization_id: int, data: OrganizationUpdate) -> Organization:
        organization = self.get_organization(organization_id)
        name, code = self._validate_name_and_code(data.name, data.code, exclude_id=organization_id)

        organization.name = name
        organization.code = code
        organization.phone = data.phone or None
        organization.address = data.address or None
        organization.is_active = True if data.is_active is None else data.is_active
        self.db.commit()
        self.db.refresh(organization)
        return organization

    def delete_organization(self, organization_id: int) -> dict:
        """Soft delete"""
        organization = self.get_organization(organization_id)
        organization.is_active = False
        self.db.commit()
        logger.info(f"🗑️ Deactivated organization {organization_id}")
        return {"success": True}

    def get_stats(self, organization_id: int, today: Optional[date] = None) -> dict[str, int]:
        self.get_organization(organization_id)
        today = today or local_today()
        month_start = today.replace(day=1)
        month_end = month_start + relativedelta(months=1, days=-1)

        return {
            "total_events": self.repo.count_events(self.db, organization_id),
            "this_month_events": self.repo.count_events(
                self.db, organization_id, start=month_start, end=month_end
            ),
            "upcoming_visits": self.repo.count_events(
                self.db, organization_id, start=today, types=(EVENT_VISIT, EVENT_BOTH)
            ),
            "upcoming_prescriptions": self.repo.count_events(
                self.db, organization_id, start=today, types=(EVENT_PRESCRIPTION, EVENT_BOTH)
            ),
        }

    def check_member_management(self, organization_id: int, ctx: OrganizationContext) -> None:
        """super_admin, or an admin of that very organization"""
        if ctx.is_super_admin:
            self.get_organization(organization_id)
            return
        if ctx.organization_id != organization_id:
            raise HTTPException(status_code=403, detail="Permission denied")
        if not ctx.is_admin:
            raise HTTPException(status_code=403, detail="Admin permission required")

    def add_member(self, organization_id: int, data: UserCreate, ctx: OrganizationContext) -> User:
        self.check_member_management(organization_id, ctx)
        return UserService(self.db).create_member(organization_id, data)

    def remove_member(self, organization_id: int, user_id: int, ctx: OrganizationContext) -> dict:
        self.check_member_management(organization_id, ctx)
        return UserService(self.db).deactivate_member(organization_id, user_id, ctx)
