"""Reminder repository"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Event, Patient, Reminder, ReminderSetting, User


class ReminderRepository:
    @staticmethod
    def list_for_user(db: Session, user_id: int, start: datetime, end: datetime) -> list[Reminder]:
        return (
            db.query(Reminder)
            .filter(
                Reminder.user_id == user_id,
                Reminder.scheduled_at >= start,
                Reminder.scheduled_at <= end,
            )
            .options(
                joinedload(Reminder.event).joinedload(Event.patient).joinedload(Patient.facility),
                joinedload(Reminder.event).joinedload(Event.facility),
            )
            .order_by(Reminder.scheduled_at, Reminder.id)
            .all()
        )

    @staticmethod
    def get_for_user(db: Session, reminder_id: int, user_id: int) -> Optional[Reminder]:
        return (
            db.query(Reminder)
            .filter(Reminder.id == reminder_id, Reminder.user_id == user_id)
            .first()
        )

    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        return (
            db.query(Reminder)
            .filter(Reminder.user_id == user_id, Reminder.is_read.is_(False))
            .update({Reminder.is_read: True}, synchronize_session=False)
        )

    @staticmethod
    def events_for_user(db: Session, user_id: int, start: date, end: date) -> list[Event]:
        """Events the user created or is assigned to"""
        return (
            db.query(Event)
            .filter(
                or_(Event.created_by == user_id, Event.assignee_id == user_id),
                Event.date >= start,
                Event.date <= end,
            )
            .options(
                joinedload(Event.patient).joinedload(Patient.facility),
                joinedload(Event.facility),
            )
            .order_by(Event.date, Event.id)
            .all()
        )

    @staticmethod
    def upcoming_events(db: Session, start: date, end: date) -> list[Event]:
        return (
            db.query(Event)
            .filter(Event.date >= start, Event.date <= end)
            .options(joinedload(Event.patient), joinedload(Event.facility))
            .order_by(Event.date, Event.id)
            .all()
        )

    @staticmethod
    def get_setting(db: Session, user_id: int) -> Optional[ReminderSetting]:
        return db.query(ReminderSetting).filter(ReminderSetting.user_id == user_id).first()

    @staticmethod
    def active_users(db: Session, user_ids: set[int]) -> dict[int, User]:
        if not user_ids:
            return {}
        users = db.query(User).filter(User.id.in_(user_ids), User.is_active.is_(True)).all()
        return {u.id: u for u in users}

    @staticmethod
    def existing_slots(db: Session, event_ids: list[int]) -> set[tuple[int, int, datetime]]:
        if not event_ids:
            return set()
        rows = (
            db.query(Reminder.user_id, Reminder.event_id, Reminder.scheduled_at)
            .filter(Reminder.event_id.in_(event_ids))
            .all()
        )
        return {(user_id, event_id, at) for user_id, event_id, at in rows}
