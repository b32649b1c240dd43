import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .database import get_db
from .models import User
from .security_utils import verify_access_token

logger = logging.getLogger(__name__)

# auto_error is off so a missing header answers 401 instead of FastAPI's default
security = HTTPBearer(auto_error=False)


def resolve_user_from_token(db: Session, token: str) -> Optional[User]:
    """Map a bearer token to an active user of an active organization"""
    payload = verify_access_token(token)
    if not payload:
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.warning(f"⚠️ Token missing user ID claim. Available claims: {list(payload.keys())}")
        return None

    user = (
        db.query(User)
        .filter(User.id == user_id)
        .options(joinedload(User.organization))
        .first()
    )
    if not user or not user.is_active:
        logger.info(f"ℹ️ Token for unknown or inactive user {user_id}")
        return None
    if user.organization is not None and not user.organization.is_active:
        logger.info(f"ℹ️ Token for user {user_id} of inactive organization {user.organization_id}")
        return None
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user, or None when the request carries no valid session"""
    if not credentials:
        return None

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received: token length {len(token)}")
        return None

    return resolve_user_from_token(db, token)


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Get current user from the bearer token"""
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user
