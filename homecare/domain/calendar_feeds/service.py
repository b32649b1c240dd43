"""Calendar feed service - subscription tokens and ICS documents"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import EVENT_BOTH, EVENT_PRESCRIPTION, EVENT_VISIT, IcsToken, User
from ...security_utils import generate_feed_token
from ...shared.clock import app_zone, local_today
from .ics import FEED_PRESCRIPTIONS, FEED_VISITS, render_calendar
from .repository import CalendarFeedRepository

logger = logging.getLogger(__name__)

FEED_TYPES = {
    FEED_VISITS: (EVENT_VISIT, EVENT_BOTH),
    FEED_PRESCRIPTIONS: (EVENT_PRESCRIPTION, EVENT_BOTH),
}
MONTHS_BACK = 3
MONTHS_AHEAD = 6


def feed_window(today: date) -> tuple[date, date]:
    """First and last day a feed covers; month ends are clamped"""
    return today - relativedelta(months=MONTHS_BACK), today + relativedelta(months=MONTHS_AHEAD)


class CalendarFeedService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CalendarFeedRepository()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def get_token(self, user: User) -> dict:
        ics_token = self.repo.get_token_for_user(self.db, user.id)
        if ics_token is None:
            return {"token": None, "is_active": None, "created_at": None}
        return {
            "token": ics_token.token,
            "is_active": ics_token.is_active,
            "created_at": ics_token.created_at,
        }

    def issue_token(self, user: User) -> dict:
        """Create or rotate the user's feed token"""
        ics_token = self.repo.get_token_for_user(self.db, user.id)
        if ics_token is None:
            ics_token = IcsToken(user_id=user.id)
            self.db.add(ics_token)
        ics_token.token = generate_feed_token()
        ics_token.is_active = True
        self.db.commit()
        self.db.refresh(ics_token)
        logger.info(f"🔑 Issued calendar feed token for user {user.id}")
        return self.get_token(user)

    def revoke_token(self, user: User) -> dict:
        ics_token = self.repo.get_token_for_user(self.db, user.id)
        if ics_token is not None:
            ics_token.is_active = False
            self.db.commit()
            logger.info(f"🔒 Revoked calendar feed token for user {user.id}")
        return {"success": True}

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    def authenticate(self, token: Optional[str]) -> User:
        if not token:
            raise HTTPException(status_code=401, detail="Unauthorized: Token required")
        ics_token = self.repo.get_by_token(self.db, token)
        if ics_token is None or not ics_token.is_active:
            logger.warning("⚠️ Calendar feed requested with unknown or inactive token")
            raise HTTPException(status_code=401, detail="Unauthorized: Invalid or inactive token")
        owner = ics_token.user
        if not owner.is_active or (owner.organization is not None and not owner.organization.is_active):
            raise HTTPException(status_code=401, detail="Unauthorized: Invalid or inactive token")
        return ics_token.user

    def render_feed(self, token: Optional[str], feed: str, today: Optional[date] = None) -> str:
        user = self.authenticate(token)
        today = today or local_today()
        organization_id = None if user.is_super_admin else user.organization_id
        if organization_id is None and not user.is_super_admin:
            raise HTTPException(status_code=401, detail="Unauthorized: Invalid or inactive token")

        start, end = feed_window(today)
        events = self.repo.feed_events(self.db, organization_id, FEED_TYPES[feed], start, end)
        logger.info(f"📅 Rendering {feed} feed with {len(events)} events for user {user.id}")
        return render_calendar(events, feed, app_zone(), datetime.now(timezone.utc))
