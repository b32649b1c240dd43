"""
Tenant scoping

Every organization-owned row is read and written through an OrganizationContext.
A super_admin is not bound to any organization and sees every tenant.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Query

from .auth import get_optional_user
from .models import ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_VIEWER, User

logger = logging.getLogger(__name__)


@dataclass
class OrganizationContext:
    user: User
    organization_id: Optional[int]
    role: str

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN)

    @property
    def can_edit(self) -> bool:
        return self.role != ROLE_VIEWER


async def get_current_organization(
    user: Optional[User] = Depends(get_optional_user),
) -> Optional[OrganizationContext]:
    if not user:
        return None
    return OrganizationContext(user=user, organization_id=user.organization_id, role=user.role)


async def require_organization(
    ctx: Optional[OrganizationContext] = Depends(get_current_organization),
) -> OrganizationContext:
    if ctx is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    if not ctx.is_super_admin and ctx.organization_id is None:
        logger.warning(f"⚠️ User {ctx.user_id} has no organization")
        raise HTTPException(status_code=403, detail="Not a member of any organization")
    return ctx


async def require_admin(ctx: OrganizationContext = Depends(require_organization)) -> OrganizationContext:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin permission required")
    return ctx


async def require_editor(ctx: OrganizationContext = Depends(require_organization)) -> OrganizationContext:
    if not ctx.can_edit:
        raise HTTPException(status_code=403, detail="Edit permission required")
    return ctx


async def require_super_admin(
    ctx: OrganizationContext = Depends(require_organization),
) -> OrganizationContext:
    if not ctx.is_super_admin:
        raise HTTPException(status_code=403, detail="Super admin permission required")
    return ctx


def organization_filter(query: Query, model, ctx: OrganizationContext) -> Query:
    """Restrict a query on an organization-owned model to the caller's tenant"""
    if ctx.is_super_admin:
        return query
    return query.filter(model.organization_id == ctx.organization_id)


def ensure_same_organization(
    ctx: OrganizationContext, organization_id: Optional[int], detail: str = "Not found"
) -> None:
    """Rows of other tenants are reported exactly like missing rows"""
    if ctx.is_super_admin:
        return
    if organization_id != ctx.organization_id:
        raise HTTPException(status_code=404, detail=detail)


def owning_organization_id(ctx: OrganizationContext) -> int:
    """Organization that new rows are written to"""
    if ctx.organization_id is None:
        raise HTTPException(
            status_code=400, detail="Organization is required to create records"
        )
    return ctx.organization_id
