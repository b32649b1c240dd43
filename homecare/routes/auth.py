import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from ..auth import get_current_user
from ..config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW_SECONDS
from ..database import get_db
from ..models import User
from ..rate_limiter import create_rate_limiter
from ..schemas import LoginRequest, TokenResponse, UserResponse
from ..security_utils import create_access_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

rate_limit_login = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="login"
)

INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_login),
):
    """Exchange email and password for an access token"""
    user = (
        db.query(User)
        .filter(User.email == data.email)
        .options(joinedload(User.organization))
        .first()
    )

    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"⚠️ Failed login attempt for {data.email}")
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    if not user.is_active:
        logger.warning(f"⚠️ Login attempt for inactive user {user.id}")
        raise HTTPException(status_code=401, detail="Account is disabled")

    if user.organization is not None and not user.organization.is_active:
        logger.warning(f"⚠️ Login attempt for user {user.id} of inactive organization")
        raise HTTPException(status_code=401, detail="Organization is disabled")

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    token = create_access_token(
        {"sub": str(user.id), "role": user.role, "org": user.organization_id}
    )
    logger.info(f"✅ User {user.id} logged in")
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user with their organization"""
    return current_user
