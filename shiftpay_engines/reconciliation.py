"""
Reconciliation Engine (``shiftpay_engines.reconciliation``).

Responsibility
--------------
Joins planned shifts against parsed attendance by calendar date and produces
one ``ReconciliationDay`` per date, with break-adjusted actual hours, the
signed difference from the plan and an initial day status.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Thresholds arrive through ``ReconciliationPolicy``.

Invariants enforced
-------------------
* ``difference == actual_worked_hours - scheduled_hours`` for every day.
* Break time is subtracted only from gross (not pre-netted) attendance, and
  never below zero.
* A worked day with no schedule is always ``review_required``.
* A scheduled day with no attendance is ``review_required`` with
  ``actual_time_range == "no data"``.
* Output is sorted ascending by date.

Failure modes
-------------
* Empty attendance with schedules -> one ``review_required`` day per
  scheduled date (no error).
* Attendance dated outside the key's month is ignored.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from shiftpay_config.schema import ReconciliationPolicy
from shiftpay_engines.tracer import traced_engine
from shiftpay_kernel.domain.values import ZERO
from shiftpay_kernel.logging_config import get_logger
from shiftpay_modules.worktime.models import (
    NO_DATA,
    NO_SCHEDULE,
    AttendanceRecord,
    DayStatus,
    ReconciliationDay,
    ReconciliationSummary,
    ReviewKey,
    ScheduleEntry,
)

logger = get_logger("engines.reconciliation")


def classify_difference(difference: Decimal, policy: ReconciliationPolicy) -> DayStatus:
    """Within the threshold is a match; at or beyond it needs review."""
    if abs(difference) >= policy.review_threshold_hours:
        return DayStatus.REVIEW_REQUIRED
    return DayStatus.TIME_MATCH


def net_worked_hours(record: AttendanceRecord, break_hours: Decimal) -> Decimal:
    if record.is_pre_netted:
        return record.total_hours
    return max(ZERO, record.total_hours - break_hours)


def _group_schedules(schedules: Iterable[ScheduleEntry]) -> dict[date, list[ScheduleEntry]]:
    by_date: dict[date, list[ScheduleEntry]] = {}
    for entry in sorted(schedules, key=lambda s: (s.work_date, s.start_time)):
        by_date.setdefault(entry.work_date, []).append(entry)
    return by_date


def _index_attendance(
    key: ReviewKey, records: Iterable[AttendanceRecord]
) -> dict[date, AttendanceRecord]:
    by_date: dict[date, AttendanceRecord] = {}
    for record in records:
        if not key.month.contains(record.work_date):
            logger.debug(
                "attendance_outside_month_ignored",
                extra={"work_date": record.work_date.isoformat()},
            )
            continue
        if record.work_date in by_date:
            # First record for a date wins
            logger.warning(
                "duplicate_attendance_date_ignored",
                extra={"work_date": record.work_date.isoformat()},
            )
            continue
        by_date[record.work_date] = record
    return by_date


def _scheduled_day(
    key: ReviewKey,
    work_date: date,
    entries: Sequence[ScheduleEntry],
    record: AttendanceRecord | None,
    policy: ReconciliationPolicy,
) -> ReconciliationDay:
    scheduled = sum((e.scheduled_hours for e in entries), ZERO)
    break_hours = sum((e.break_hours for e in entries), ZERO)
    first = entries[0]
    common = dict(
        employee_id=key.employee_id,
        branch_id=key.branch_id,
        month=key.month_str,
        work_date=work_date,
        scheduled_hours=scheduled,
        scheduled_time_range=", ".join(e.time_range for e in entries),
        break_hours=break_hours,
        employee_name=first.employee_name,
        branch_name=first.branch_name,
    )

    if record is None:
        return ReconciliationDay(
            raw_actual_hours=ZERO,
            actual_time_range=NO_DATA,
            actual_worked_hours=ZERO,
            status=DayStatus.REVIEW_REQUIRED,
            **common,
        )

    worked = net_worked_hours(record, break_hours)
    return ReconciliationDay(
        raw_actual_hours=record.total_hours,
        actual_time_range=record.time_range,
        actual_worked_hours=worked,
        status=classify_difference(worked - scheduled, policy),
        **common,
    )


def _unscheduled_day(key: ReviewKey, record: AttendanceRecord) -> ReconciliationDay:
    return ReconciliationDay(
        employee_id=key.employee_id,
        branch_id=key.branch_id,
        month=key.month_str,
        work_date=record.work_date,
        scheduled_hours=ZERO,
        scheduled_time_range=NO_SCHEDULE,
        raw_actual_hours=record.total_hours,
        actual_time_range=record.time_range,
        break_hours=ZERO,
        actual_worked_hours=record.total_hours,
        status=DayStatus.REVIEW_REQUIRED,
    )


@traced_engine("reconciliation", "1.0", fingerprint_fields=("key", "schedules", "attendance"))
def reconcile(
    key: ReviewKey,
    schedules: Sequence[ScheduleEntry],
    attendance: Sequence[AttendanceRecord],
    policy: ReconciliationPolicy | None = None,
) -> list[ReconciliationDay]:
    """
    Compare one key's planned shifts with its parsed attendance.

    Several shifts planned on one date are reconciled as one day: their
    hours and breaks are summed and their time ranges joined.

    Preconditions:
        - ``schedules`` belong to ``key`` (employee, branch, month).
    Postconditions:
        - One day per scheduled date plus one per unscheduled attendance
          date, sorted by date.
    """
    policy = policy or ReconciliationPolicy()
    schedules_by_date = _group_schedules(
        s for s in schedules if key.month.contains(s.work_date)
    )
    attendance_by_date = _index_attendance(key, attendance)

    days = [
        _scheduled_day(key, work_date, entries, attendance_by_date.get(work_date), policy)
        for work_date, entries in schedules_by_date.items()
    ]
    days.extend(
        _unscheduled_day(key, record)
        for work_date, record in attendance_by_date.items()
        if work_date not in schedules_by_date
    )
    days.sort(key=lambda d: d.work_date)

    logger.debug(
        "reconciliation_computed",
        extra={
            "review_key": str(key),
            "schedule_dates": len(schedules_by_date),
            "attendance_dates": len(attendance_by_date),
            "day_count": len(days),
        },
    )
    return days


def summarize_days(days: Sequence[ReconciliationDay]) -> ReconciliationSummary:
    """Status counts and hour totals for a day-set."""
    counts = {status: 0 for status in DayStatus}
    for day in days:
        counts[day.status] += 1
    scheduled = sum((d.scheduled_hours for d in days), ZERO)
    worked = sum((d.actual_worked_hours for d in days), ZERO)
    return ReconciliationSummary(
        day_count=len(days),
        time_match_count=counts[DayStatus.TIME_MATCH],
        review_required_count=counts[DayStatus.REVIEW_REQUIRED],
        review_completed_count=counts[DayStatus.REVIEW_COMPLETED],
        modified_count=sum(1 for d in days if d.is_modified),
        total_scheduled_hours=scheduled,
        total_actual_worked_hours=worked,
        total_difference=worked - scheduled,
    )
