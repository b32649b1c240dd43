"""Calendar subscription endpoints (token management and ICS feeds)"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .ics import FEED_PRESCRIPTIONS, FEED_VISITS
from .schemas import IcsTokenResponse
from .service import CalendarFeedService

router = APIRouter(tags=["Calendar feeds"])


def get_calendar_feed_service(db: Session = Depends(get_db)) -> CalendarFeedService:
    return CalendarFeedService(db)


def ics_response(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/calendar; charset=utf-8",
        headers={
            "Content-Disposition": f'inline; filename="{filename}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
        },
    )


# ============================================================================
# TOKEN MANAGEMENT
# ============================================================================


@router.get("/api/ics-token", response_model=IcsTokenResponse)
async def get_ics_token(
    current_user: User = Depends(get_current_user),
    service: CalendarFeedService = Depends(get_calendar_feed_service),
):
    return service.get_token(current_user)


@router.post("/api/ics-token", response_model=IcsTokenResponse)
async def issue_ics_token(
    current_user: User = Depends(get_current_user),
    service: CalendarFeedService = Depends(get_calendar_feed_service),
):
    """Issue a new token, invalidating any previous one"""
    return service.issue_token(current_user)


@router.delete("/api/ics-token")
async def revoke_ics_token(
    current_user: User = Depends(get_current_user),
    service: CalendarFeedService = Depends(get_calendar_feed_service),
):
    return service.revoke_token(current_user)


# ============================================================================
# FEEDS (authenticated by token query parameter)
# ============================================================================


@router.get("/api/calendar/visits.ics")
async def visits_feed(
    token: Optional[str] = Query(None),
    service: CalendarFeedService = Depends(get_calendar_feed_service),
):
    return ics_response(service.render_feed(token, FEED_VISITS), "visits.ics")


@router.get("/api/calendar/prescriptions.ics")
async def prescriptions_feed(
    token: Optional[str] = Query(None),
    service: CalendarFeedService = Depends(get_calendar_feed_service),
):
    return ics_response(service.render_feed(token, FEED_PRESCRIPTIONS), "prescriptions.ics")
