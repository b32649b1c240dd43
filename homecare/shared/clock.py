"""Wall-clock helpers for the zone event dates and times are recorded in"""

from datetime import date, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from ..config import APP_TIMEZONE


@lru_cache
def app_zone() -> ZoneInfo:
    return ZoneInfo(APP_TIMEZONE)


def local_now() -> datetime:
    """Current local time as a naive datetime"""
    return datetime.now(app_zone()).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()
