"""
Values -- Immutable domain value objects and numeric conventions.

Responsibility:
    MonthKey (the "YYYY-MM" payroll month), whole-currency rounding, and the
    hour conversions shared by the parser, the reconciliation engine and the
    payroll engine.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Hours are Decimal and are never rounded before display formatting.
    - Currency is Decimal rounded half-up to whole units.
    - A MonthKey always denotes a real calendar month.

Failure modes:
    - ValueError on a malformed month string or clock time.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
ONE_UNIT = Decimal("1")
MINUTES_PER_HOUR = Decimal("60")

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


@dataclass(frozen=True, slots=True, order=True)
class MonthKey:
    """
    A payroll month.

    Guarantees:
        - 1 <= month <= 12
        - ``str(key)`` is the canonical "YYYY-MM" form used in storage keys.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month out of range: {self.month}")

    @classmethod
    def parse(cls, value: str | MonthKey) -> MonthKey:
        if isinstance(value, MonthKey):
            return value
        match = _MONTH_RE.match(value.strip())
        if not match:
            raise ValueError(f"Invalid month key: {value!r} (expected YYYY-MM)")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def of(cls, day: date) -> MonthKey:
        return cls(day.year, day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def contains(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day

    def overlaps(self, start: date | None, end: date | None) -> bool:
        """True when [start, end] intersects the month.  Both bounds required."""
        if start is None or end is None:
            return False
        return start <= self.last_day and end >= self.first_day

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def round_currency(amount: Decimal) -> Decimal:
    """Round to whole currency units, half away from zero."""
    return amount.quantize(ONE_UNIT, rounding=ROUND_HALF_UP)


def to_decimal(value: Decimal | int | str | float | None) -> Decimal:
    """Coerce an input amount to Decimal; None becomes zero.

    Floats go through ``str`` so 8.15 stays 8.15.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_clock(value: str) -> time:
    """Parse "H:MM" or "HH:MM:SS" into a time."""
    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid clock time: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    return time(hour, minute, second)


def hours_between(start: time, end: time) -> Decimal:
    """Elapsed hours from *start* to *end* on the same day; never negative."""
    start_s = start.hour * 3600 + start.minute * 60 + start.second
    end_s = end.hour * 3600 + end.minute * 60 + end.second
    return max(ZERO, Decimal(end_s - start_s) / Decimal(3600))


def hm_to_hours(hours: int, minutes: int) -> Decimal:
    """3, 11 -> 3 + 11/60."""
    return Decimal(hours) + Decimal(minutes) / MINUTES_PER_HOUR


def format_hours(hours: Decimal) -> str:
    """Display hours as H:MM, minutes rounded half-up.  Sign is dropped."""
    total_minutes = int((abs(hours) * MINUTES_PER_HOUR).quantize(ONE_UNIT, rounding=ROUND_HALF_UP))
    return f"{total_minutes // 60}:{total_minutes % 60:02d}"


def format_signed_hours(hours: Decimal) -> str:
    """Display a difference as +H:MM / -H:MM (zero is +0:00)."""
    sign = "-" if hours < 0 and format_hours(hours) != "0:00" else "+"
    return f"{sign}{format_hours(hours)}"
