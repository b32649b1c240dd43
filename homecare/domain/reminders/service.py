"""Reminder service - listing, read state, settings and generation"""

import logging
from datetime import datetime, time, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import EVENT_PRESCRIPTION, Event, Reminder, ReminderSetting, User
from ...shared.clock import local_now
from .repository import ReminderRepository
from .schemas import ReminderEvent, ReminderResponse, ReminderSettings
from .timings import DEFAULT_SETTINGS, parse_event_time, reminder_message, scheduled_at, timings_for_event

logger = logging.getLogger(__name__)

# Days ahead the generation job looks at
GENERATION_HORIZON_DAYS = 7


def target_name(event: Event) -> str:
    if event.patient is not None:
        return event.patient.name
    if event.facility is not None:
        return event.facility.name
    return "Unknown"


def reminder_event(event: Event) -> ReminderEvent:
    location = event.patient.facility if event.patient is not None else event.facility
    return ReminderEvent(
        id=event.id,
        type=event.type,
        date=event.date,
        time=event.time,
        patient_name=event.patient.name if event.patient else None,
        facility_name=location.name if location else None,
    )


def settings_dict(setting: Optional[ReminderSetting]) -> dict:
    if setting is None:
        return {
            **DEFAULT_SETTINGS,
            "visit_timings": list(DEFAULT_SETTINGS["visit_timings"]),
            "rx_timings": list(DEFAULT_SETTINGS["rx_timings"]),
        }
    return {
        "visit_enabled": setting.visit_enabled,
        "visit_timings": list(setting.visit_timings or []),
        "rx_enabled": setting.rx_enabled,
        "rx_timings": list(setting.rx_timings or []),
    }


class ReminderService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ReminderRepository()

    def list_reminders(self, user: User, now: Optional[datetime] = None) -> list[ReminderResponse]:
        """
        Stored reminders from the start of yesterday to the end of today+7.

        Without stored reminders, entries are derived from the user's events
        in the same window and are not persisted.
        """
        now = now or local_now()
        first_day = now.date() - timedelta(days=1)
        last_day = now.date() + timedelta(days=7)
        start = datetime.combine(first_day, time.min)
        end = datetime.combine(last_day, time.max)

        stored = self.repo.list_for_user(self.db, user.id, start, end)
        if stored:
            return [
                ReminderResponse(
                    id=r.id,
                    event_id=r.event_id,
                    scheduled_at=r.scheduled_at,
                    message=r.message,
                    is_read=r.is_read,
                    event=reminder_event(r.event),
                )
                for r in stored
            ]

        generated = []
        for event in self.repo.events_for_user(self.db, user.id, first_day, last_day):
            kind = "rx" if event.type == EVENT_PRESCRIPTION else "visit"
            due = datetime.combine(event.date, parse_event_time(event.time) or time.min)
            generated.append(
                ReminderResponse(
                    id=f"generated-{event.id}",
                    event_id=event.id,
                    scheduled_at=due,
                    message=reminder_message(kind, target_name(event), due, event.date, event.time),
                    is_read=False,
                    event=reminder_event(event),
                )
            )
        return generated

    def mark_read(self, reminder_id: int, user: User) -> dict:
        reminder = self.repo.get_for_user(self.db, reminder_id, user.id)
        if not reminder:
            raise HTTPException(status_code=404, detail="Reminder not found")
        reminder.is_read = True
        self.db.commit()
        return {"success": True}

    def mark_all_read(self, user: User) -> int:
        count = self.repo.mark_all_read(self.db, user.id)
        self.db.commit()
        return count

    def get_settings(self, user: User) -> dict:
        return settings_dict(self.repo.get_setting(self.db, user.id))

    def save_settings(self, user: User, data: ReminderSettings) -> dict:
        setting = self.repo.get_setting(self.db, user.id)
        if setting is None:
            setting = ReminderSetting(user_id=user.id)
            self.db.add(setting)
        setting.visit_enabled = data.visit_enabled
        setting.visit_timings = data.visit_timings
        setting.rx_enabled = data.rx_enabled
        setting.rx_timings = data.rx_timings
        self.db.commit()
        logger.info(f"🔔 Saved reminder settings for user {user.id}")
        return settings_dict(setting)


def generate_reminders(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Store Reminder rows for upcoming events according to each user's settings.

    Recipients are the event's creator and assignee. A (user, event, time)
    slot is written at most once, so the job can run repeatedly.
    """
    now = now or local_now()
    repo = ReminderRepository()
    events = repo.upcoming_events(db, now.date(), now.date() + timedelta(days=GENERATION_HORIZON_DAYS))

    recipients = {uid for e in events for uid in (e.created_by, e.assignee_id) if uid is not None}
    users = repo.active_users(db, recipients)
    settings_cache: dict[int, dict] = {}
    existing = repo.existing_slots(db, [e.id for e in events])

    created = 0
    for event in events:
        for user_id in dict.fromkeys((event.created_by, event.assignee_id)):
            if user_id not in users:
                continue
            if user_id not in settings_cache:
                settings_cache[user_id] = settings_dict(repo.get_setting(db, user_id))

            for kind, timing in timings_for_event(event.type, settings_cache[user_id]):
                due = scheduled_at(event.date, event.time, timing)
                if due is None or (user_id, event.id, due) in existing:
                    continue
                db.add(
                    Reminder(
                        user_id=user_id,
                        event_id=event.id,
                        scheduled_at=due,
                        message=reminder_message(kind, target_name(event), due, event.date, event.time),
                        is_read=False,
                    )
                )
                existing.add((user_id, event.id, due))
                created += 1

    db.commit()
    logger.info(f"🔔 Reminder generation complete: {created} created for {len(events)} events")
    return {"created": created, "events": len(events)}
