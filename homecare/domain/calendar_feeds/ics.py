"""
iCalendar (RFC 5545) rendering of visit and prescription feeds

Events carry local wall-clock dates and times; timed visits are written in
UTC and everything else as all-day VALUE=DATE entries.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ...models import Event

FEED_VISITS = "visits"
FEED_PRESCRIPTIONS = "prescriptions"

PRODUCT_ID = "-//Homecare Manager//{name} Calendar//EN"
UID_DOMAIN = "homecare-manager"
MAX_LINE_OCTETS = 75
CRLF = "\r\n"


def escape_text(text: str) -> str:
    """Escape a TEXT value: backslash, semicolon, comma and newlines"""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """
    Fold a content line so no physical line exceeds 75 octets.

    Continuation lines start with a single space; UTF-8 sequences are never split.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line

    parts = []
    current = ""
    current_size = 0
    limit = MAX_LINE_OCTETS
    for char in line:
        size = len(char.encode("utf-8"))
        if current_size + size > limit:
            parts.append(current)
            current = ""
            current_size = 0
            limit = MAX_LINE_OCTETS - 1  # room for the leading space
        current += char
        current_size += size
    parts.append(current)
    return (CRLF + " ").join(parts)


def format_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def format_date(day: date) -> str:
    return day.strftime("%Y%m%d")


def parse_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    hours, minutes = value.split(":")[:2]
    return time(int(hours), int(minutes))


def format_offset(offset: timedelta) -> str:
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}{minutes:02d}"


def vtimezone_lines(zone: ZoneInfo, now: datetime) -> list[str]:
    """VTIMEZONE describing the zone's current offset"""
    local = now.astimezone(zone)
    offset = format_offset(local.utcoffset() or timedelta(0))
    return [
        "BEGIN:VTIMEZONE",
        f"TZID:{zone.key}",
        "BEGIN:STANDARD",
        "DTSTART:19700101T000000",
        f"TZOFFSETFROM:{offset}",
        f"TZOFFSETTO:{offset}",
        f"TZNAME:{local.tzname()}",
        "END:STANDARD",
        "END:VTIMEZONE",
    ]


def event_location_name(event: Event) -> str:
    if event.is_facility_event:
        return event.facility.name if event.facility else "Facility"
    if event.patient is None:
        return ""
    if event.patient.facility is not None:
        return f"{event.patient.name} ({event.patient.facility.name})"
    return f"{event.patient.name} (Home)"


def event_address(event: Event) -> str:
    if event.is_facility_event:
        return (event.facility.address if event.facility else None) or ""
    if event.patient is None:
        return ""
    facility_address = event.patient.facility.address if event.patient.facility else None
    return facility_address or event.patient.address or ""


def describe_event(event: Event, feed: str) -> str:
    parts = []
    if feed == FEED_PRESCRIPTIONS:
        parts.append("Prescription (consultation / issue date)")
    if event.patient is not None and event.patient.phone:
        parts.append(f"TEL: {event.patient.phone}")
    if event.assignee is not None:
        parts.append(f"Staff: {event.assignee.name}")
    if event.memo:
        parts.append(f"Memo: {event.memo}")
    if feed == FEED_PRESCRIPTIONS and event.is_recurring and event.recurring_interval:
        parts.append(f"Recurring prescription: every {event.recurring_interval} days")
    return "\n".join(parts)


def vevent_lines(event: Event, feed: str, zone: ZoneInfo, dtstamp: str) -> list[str]:
    if feed == FEED_VISITS:
        uid = f"visit-{event.id}@{UID_DOMAIN}"
        summary = f"[Visit] {event_location_name(event)}"
        status = "CONFIRMED" if event.report_done else "TENTATIVE"
        start_time = parse_time(event.time)
    else:
        uid = f"rx-{event.id}@{UID_DOMAIN}"
        summary = f"[Rx] {event_location_name(event)}"
        status = "CONFIRMED"
        start_time = None

    modified = event.updated_at or event.created_at
    lines = [
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{dtstamp}",
    ]
    if modified is not None:
        # Timestamps are stored as naive UTC
        lines.append(f"LAST-MODIFIED:{format_utc(modified.replace(tzinfo=timezone.utc))}")

    if start_time is not None:
        start = datetime.combine(event.date, start_time, tzinfo=zone)
        lines.append(f"DTSTART:{format_utc(start)}")
        lines.append(f"DTEND:{format_utc(start + timedelta(hours=1))}")
    else:
        lines.append(f"DTSTART;VALUE=DATE:{format_date(event.date)}")
        lines.append(f"DTEND;VALUE=DATE:{format_date(event.date + timedelta(days=1))}")

    lines.append(fold_line(f"SUMMARY:{escape_text(summary)}"))
    if feed == FEED_VISITS:
        location = event_address(event)
        if location:
            lines.append(fold_line(f"LOCATION:{escape_text(location)}"))
    description = describe_event(event, feed)
    if description:
        lines.append(fold_line(f"DESCRIPTION:{escape_text(description)}"))
    lines.append(f"STATUS:{status}")
    lines.append("END:VEVENT")
    return lines


def render_calendar(events: list[Event], feed: str, zone: ZoneInfo, now: Optional[datetime] = None) -> str:
    """Serialize events into a VCALENDAR document with CRLF line endings"""
    now = now or datetime.now(timezone.utc)
    name = "Visit" if feed == FEED_VISITS else "Prescription"
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODUCT_ID.format(name=name)}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        fold_line(f"X-WR-CALNAME:{escape_text(name + 's')}"),
        f"X-WR-TIMEZONE:{zone.key}",
    ]
    lines += vtimezone_lines(zone, now)

    dtstamp = format_utc(now)
    for event in events:
        lines += vevent_lines(event, feed, zone, dtstamp)

    lines.append("END:VCALENDAR")
    return CRLF.join(lines) + CRLF
