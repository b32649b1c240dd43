"""User router - FastAPI endpoints for user accounts"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...organization import OrganizationContext, owning_organization_id, require_admin, require_organization
from ...schemas import UserResponse
from .schemas import PasswordChange, PasswordReset, ProfileUpdate, UserCreate, UserListItem, UserOption
from .service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


@router.get("", response_model=list[UserOption])
async def list_users(
    ctx: OrganizationContext = Depends(require_organization),
    service: UserService = Depends(get_user_service),
):
    """Active users of the organization, for assignee pickers"""
    return service.list_active_users(ctx)


@router.get("/all", response_model=list[UserListItem])
async def list_all_users(
    ctx: OrganizationContext = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.list_all_users(ctx)


@router.post("", response_model=UserListItem)
async def create_user(
    data: UserCreate,
    ctx: OrganizationContext = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.create_member(owning_organization_id(ctx), data)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.update_profile(current_user, data)


@router.put("/password")
async def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.change_password(current_user, data)


@router.put("/{user_id}/password")
async def reset_password(
    user_id: int,
    data: PasswordReset,
    ctx: OrganizationContext = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """Admin reset of a user's password"""
    return service.reset_password(user_id, data, ctx)
