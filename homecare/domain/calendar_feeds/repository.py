"""Calendar feed repository"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Event, IcsToken, Patient


class CalendarFeedRepository:
    @staticmethod
    def get_token_for_user(db: Session, user_id: int) -> Optional[IcsToken]:
        return db.query(IcsToken).filter(IcsToken.user_id == user_id).first()

    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[IcsToken]:
        return (
            db.query(IcsToken)
            .filter(IcsToken.token == token)
            .options(joinedload(IcsToken.user))
            .first()
        )

    @staticmethod
    def feed_events(
        db: Session,
        organization_id: Optional[int],
        types: tuple[str, ...],
        start: date,
        end: date,
    ) -> list[Event]:
        """Events of one organization, or of all when organization_id is None"""
        query = db.query(Event).filter(
            Event.type.in_(types), Event.date >= start, Event.date <= end
        )
        if organization_id is not None:
            query = query.filter(Event.organization_id == organization_id)
        return (
            query.options(
                joinedload(Event.patient).joinedload(Patient.facility),
                joinedload(Event.facility),
                joinedload(Event.assignee),
            )
            .order_by(Event.date, Event.time, Event.id)
            .all()
        )
