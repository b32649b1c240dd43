"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Optional

PHONE_PATTERN = re.compile(r"^[0-9-]+$")
TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def is_valid_phone(phone: Optional[str]) -> bool:
    """Japanese style phone numbers: digits and hyphens only"""
    return bool(phone) and bool(PHONE_PATTERN.match(phone))


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate an optional phone number.

    Raises:
        ValueError: If the number contains anything but digits and hyphens
    """
    if not phone:
        return phone
    phone = phone.strip()
    if not is_valid_phone(phone):
        raise ValueError("Phone number may contain digits and hyphens only")
    return phone


def validate_time(value: Optional[str]) -> Optional[str]:
    """
    Validate an event time of day.

    Returns:
        HH:MM string, or None for all-day events

    Raises:
        ValueError: If the value is not a 24h HH:MM time
    """
    if value is None or value == "":
        return None
    # Accept HH:MM:SS from clients that send full times
    if len(value) == 8 and value.count(":") == 2:
        value = value[:5]
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be HH:MM")
    return value


def validate_required_text(value: Optional[str]) -> str:
    """Strip whitespace and reject empty strings"""
    if value is None or not value.strip():
        raise ValueError("This field is required")
    return value.strip()


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse YYYY-MM-DD (or an ISO datetime) into a date"""
    if not value:
        return None
    try:
        if len(value) > 10:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid date: {value}") from e
