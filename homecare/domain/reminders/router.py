"""Reminder endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import ReadAllResponse, ReminderResponse, ReminderSettings
from .service import ReminderService

router = APIRouter(prefix="/api/reminders", tags=["Reminders"])


def get_reminder_service(db: Session = Depends(get_db)) -> ReminderService:
    return ReminderService(db)


@router.get("", response_model=list[ReminderResponse])
async def list_reminders(
    current_user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    return service.list_reminders(current_user)


@router.put("/read-all", response_model=ReadAllResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    return {"count": service.mark_all_read(current_user)}


@router.put("/{reminder_id}/read")
async def mark_read(
    reminder_id: int,
    current_user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    return service.mark_read(reminder_id, current_user)


@router.get("/settings", response_model=ReminderSettings)
async def get_settings(
    current_user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    return service.get_settings(current_user)


@router.put("/settings", response_model=ReminderSettings)
async def save_settings(
    data: ReminderSettings,
    current_user: User = Depends(get_current_user),
    service: ReminderService = Depends(get_reminder_service),
):
    return service.save_settings(current_user, data)
