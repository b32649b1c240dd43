"""Organization router - tenant management endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...organization import OrganizationContext, require_organization, require_super_admin
from ..users.schemas import UserCreate, UserListItem
from .schemas import (
    OrganizationCreate,
    OrganizationDetail,
    OrganizationListItem,
    OrganizationResponse,
    OrganizationStats,
    OrganizationUpdate,
)
from .service import OrganizationService

router = APIRouter(prefix="/api/organizations", tags=["Organizations"])


def get_organization_service(db: Session = Depends(get_db)) -> OrganizationService:
    """Dependency injection for OrganizationService"""
    return OrganizationService(db)


# ============================================================================
# SUPER ADMIN
# ============================================================================


@router.get("", response_model=list[OrganizationListItem])
async def list_organizations(
    _: OrganizationContext = Depends(require_super_admin),
    service: OrganizationService = Depends(get_organization_service),
):
    return [
        OrganizationListItem(
            **OrganizationResponse.model_validate(item["organization"]).model_dump(),
            counts=item["counts"],
        )
        for item in service.list_organizations()
    ]


@router.post("", response_model=OrganizationResponse)
async def create_organization(
    data: OrganizationCreate,
    _: OrganizationContext = Depends(require_super_admin),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.create_organization(data)


@router.get("/{organization_id}", response_model=OrganizationDetail)
async def get_organization(
    organization_id: int,
    _: OrganizationContext = Depends(require_super_admin),
    service: OrganizationService = Depends(get_organization_service),
):
    organization = service.get_organization(organization_id)
    return OrganizationDetail(
        **OrganizationResponse.model_validate(organization).model_dump(),
        users=[UserListItem.model_validate(u) for u in organization.users],
        counts=service.get_counts(organization_id),
    )


@router.put("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: int,
    data: OrganizationUpdate,
    _: OrganizationContext = Depends(require_super_admin),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.update_organization(organization_id, data)


@router.delete("/{organization_id}")
async def delete_organization(
    organization_id: int,
    _: OrganizationContext = Depends(require_super_admin),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.delete_organization(organization_id)


@router.get("/{organization_id}/stats", response_model=OrganizationStats)
async def get_organization_stats(
    organization_id: int,
    _: OrganizationContext = Depends(require_super_admin),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.get_stats(organization_id)


# ============================================================================
# MEMBERS (super_admin or the organization's admin)
# ============================================================================


@router.post("/{organization_id}/users", response_model=UserListItem)
async def add_organization_user(
    organization_id: int,
    data: UserCreate,
    ctx: OrganizationContext = Depends(require_organization),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.add_member(organization_id, data, ctx)


@router.delete("/{organization_id}/users/{user_id}")
async def remove_organization_user(
    organization_id: int,
    user_id: int,
    ctx: OrganizationContext = Depends(require_organization),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.remove_member(organization_id, user_id, ctx)
