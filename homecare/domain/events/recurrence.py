"""
Recurrence and bulk copy

Expands a RecurrenceRule into the dates an event is copied onto. The base date
itself is never part of the result.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

MAX_RECURRENCE_DATES = 100

MODE_DAYS = "days"
MODE_WEEKS = "weeks"
MODE_OFFSETS = "offsets"
RECURRENCE_MODES = (MODE_DAYS, MODE_WEEKS, MODE_OFFSETS)


class RecurrenceError(ValueError):
    pass


@dataclass
class RecurrenceRule:
    mode: str
    interval: int = 1
    count: int = 1
    offsets: list[int] = field(default_factory=list)
    until: Optional[date] = None

    @property
    def step_days(self) -> Optional[int]:
        """Distance between occurrences, None for explicit offsets"""
        if self.mode == MODE_DAYS:
            return self.interval
        if self.mode == MODE_WEEKS:
            return self.interval * 7
        return None

    def validate(self) -> None:
        if self.mode not in RECURRENCE_MODES:
            raise RecurrenceError(f"Repeat mode must be one of: {', '.join(RECURRENCE_MODES)}")

        if self.mode == MODE_OFFSETS:
            if not self.offsets:
                raise RecurrenceError("At least one day offset is required")
            if any(offset < 1 for offset in self.offsets):
                raise RecurrenceError("Day offsets must be positive")
            if len(set(self.offsets)) > MAX_RECURRENCE_DATES:
                raise RecurrenceError(f"At most {MAX_RECURRENCE_DATES} dates can be created at once")
            return

        if self.interval < 1:
            raise RecurrenceError("Repeat interval must be at least 1")
        if self.count < 1:
            raise RecurrenceError("Repeat count must be at least 1")
        if self.count > MAX_RECURRENCE_DATES:
            raise RecurrenceError(f"At most {MAX_RECURRENCE_DATES} dates can be created at once")


def expand_dates(base: date, rule: RecurrenceRule) -> list[date]:
    """
    Dates after base that the rule produces, ascending.

    days:    base + k * interval,     k = 1..count
    weeks:   base + k * interval * 7, k = 1..count
    offsets: base + d for each distinct offset d
    Dates later than rule.until are dropped.

    Raises:
        RecurrenceError: If the rule is invalid or yields more than MAX_RECURRENCE_DATES dates
    """
    rule.validate()

    if rule.mode == MODE_OFFSETS:
        deltas = sorted(set(rule.offsets))
    else:
        deltas = [k * rule.step_days for k in range(1, rule.count + 1)]

    try:
        dates = [base + timedelta(days=delta) for delta in deltas]
    except OverflowError as e:
        raise RecurrenceError("Repeat dates fall outside the supported calendar range") from e
    if rule.until is not None:
        dates = [d for d in dates if d <= rule.until]
    return dates
