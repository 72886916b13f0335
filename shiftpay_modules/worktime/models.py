"""
Work-time Domain Models (``shiftpay_modules.worktime.models``).

Responsibility
--------------
Frozen dataclass value objects for the reconciliation side of the core:
planned shifts, parsed attendance, reconciliation days, and the coarse review
status of an (employee, branch, month) key.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by the
engines in ``shiftpay_engines`` and by ``WorkTimeReviewService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* Hours are ``Decimal`` and never rounded here.
* ``ReconciliationDay.difference`` is always
  ``actual_worked_hours - scheduled_hours``; it is computed, never stored
  independently on the value object.
* ``ScheduleEntry.scheduled_hours`` is clamped at zero.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from uuid import UUID

from shiftpay_kernel.domain.values import ZERO, MonthKey, hours_between

_CLOCK_IN_TEXT = re.compile(r"(\d{1,2}:\d{2})")

NO_DATA = "no data"
NO_SCHEDULE = "-"


class DayStatus(Enum):
    """Per-day reconciliation status."""
    TIME_MATCH = "time_match"
    REVIEW_REQUIRED = "review_required"
    REVIEW_COMPLETED = "review_completed"


class ReviewStatus(Enum):
    """Coarse review status of an (employee, branch, month) key.

    ``PAYROLL_CONFIRMED`` is the display state of a key whose payroll is in
    the confirmation ledger.
    """
    NOT_STARTED = "not_started"
    IN_REVIEW = "in_review"
    REVIEW_COMPLETE = "review_complete"
    PAYROLL_CONFIRMED = "payroll_confirmed"


class WritePath(Enum):
    """How the persisted review status was last written."""
    DERIVED = "derived"
    OVERRIDE = "override"
    LEDGER = "ledger"


@dataclass(frozen=True)
class ReviewKey:
    """Identity of one review: employee x branch x month."""
    employee_id: str
    branch_id: str
    month: MonthKey

    def __post_init__(self) -> None:
        if not isinstance(self.month, MonthKey):
            object.__setattr__(self, "month", MonthKey.parse(self.month))

    @property
    def month_str(self) -> str:
        return str(self.month)

    def __str__(self) -> str:
        return f"{self.employee_id}/{self.branch_id}/{self.month}"


@dataclass(frozen=True)
class ScheduleEntry:
    """A planned shift.  Start and end are wall-clock times on the same day."""
    employee_id: str
    branch_id: str
    work_date: date
    start_time: time
    end_time: time
    break_hours: Decimal = ZERO
    employee_name: str | None = None
    branch_name: str | None = None
    id: UUID | None = None

    @property
    def scheduled_hours(self) -> Decimal:
        return max(ZERO, hours_between(self.start_time, self.end_time) - self.break_hours)

    @property
    def time_range(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"


@dataclass(frozen=True)
class AttendanceRecord:
    """One externally reported shift, as parsed from pasted text.

    ``start_time``/``end_time`` keep the source text ("2025-09-11 19:00:10"
    for POS exports, "11:00" for spreadsheets).  ``is_pre_netted`` is True
    when ``total_hours`` already excludes the break.
    """
    work_date: date
    start_time: str
    end_time: str
    total_hours: Decimal
    is_pre_netted: bool

    @property
    def time_range(self) -> str:
        return f"{_clock_part(self.start_time)}-{_clock_part(self.end_time)}"


def _clock_part(text: str) -> str:
    tail = text.split(" ")[-1]
    match = _CLOCK_IN_TEXT.search(tail)
    return match.group(1) if match else tail[:5]


@dataclass(frozen=True)
class ReconciliationDay:
    """One employee/branch/date comparison of scheduled vs. actual hours."""
    employee_id: str
    branch_id: str
    month: str
    work_date: date
    scheduled_hours: Decimal
    scheduled_time_range: str
    raw_actual_hours: Decimal
    actual_time_range: str
    break_hours: Decimal
    actual_worked_hours: Decimal
    status: DayStatus
    is_modified: bool = False
    employee_name: str | None = None
    branch_name: str | None = None

    @property
    def difference(self) -> Decimal:
        return self.actual_worked_hours - self.scheduled_hours

    @property
    def key(self) -> ReviewKey:
        return ReviewKey(self.employee_id, self.branch_id, MonthKey.parse(self.month))

    @property
    def has_attendance(self) -> bool:
        return self.actual_worked_hours > ZERO


@dataclass(frozen=True)
class ReviewStatusRecord:
    """The persisted coarse status of a key (or its default)."""
    key: ReviewKey
    status: ReviewStatus
    write_path: WritePath = WritePath.DERIVED
    revision: int = 0
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ReviewChange:
    """Notification sent to listeners after a committed review transition."""
    key: ReviewKey
    action: str
    previous: ReviewStatus
    current: ReviewStatus
    write_path: WritePath
    revision: int
    occurred_at: datetime
    work_date: date | None = None


@dataclass(frozen=True)
class ReconciliationSummary:
    """Counts and hour totals over one key's day-set."""
    day_count: int
    time_match_count: int
    review_required_count: int
    review_completed_count: int
    modified_count: int
    total_scheduled_hours: Decimal
    total_actual_worked_hours: Decimal
    total_difference: Decimal
