"""
Weekly Holiday Allowance Engine (``shiftpay_engines.weekly_holiday``).

Responsibility
--------------
Buckets a month's worked days into Monday-start weeks and decides, per
week, whether the weekly holiday allowance is paid this month.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
The payroll month, the attendance coverage end and any carry-over hours
are explicit arguments.

Invariants enforced
-------------------
* A week whose Sunday falls after the month's last day is deferred to the
  next month, never paid now.
* A week whose Sunday falls after the last date covered by attendance data
  is incomplete and never paid, whatever its hours.
* Eligible iff (worked hours [+ carry-over in the first week]) >= minimum
  weekly hours AND at least one day was worked.
* Every week gets a breakdown entry, eligible or not.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal

from shiftpay_config.schema import PayrollRates
from shiftpay_engines.tracer import traced_engine
from shiftpay_kernel.domain.values import ZERO, MonthKey, round_currency
from shiftpay_modules.payroll.models import WeeklyHolidayResult, WeeklyHolidayWeek
from shiftpay_modules.worktime.models import ReconciliationDay

REASON_INCOMPLETE = "incomplete week"
REASON_DEFERRED = "deferred to next month"
REASON_INSUFFICIENT = "under 15 hours or attendance not met"


def week_monday(day: date) -> date:
    return day - timedelta(days=day.weekday())


def group_by_week(days: Sequence[ReconciliationDay]) -> dict[date, list[ReconciliationDay]]:
    """Days keyed by the Monday of their week, in date order."""
    weeks: dict[date, list[ReconciliationDay]] = {}
    for day in sorted(days, key=lambda d: d.work_date):
        weeks.setdefault(week_monday(day.work_date), []).append(day)
    return weeks


def _week_entry(
    monday: date,
    week_days: Sequence[ReconciliationDay],
    *,
    month: MonthKey,
    coverage_end: date,
    hourly_wage: Decimal,
    workdays: int,
    carryover_hours: Decimal,
    probation_start: date | None,
    probation_end: date | None,
    rates: PayrollRates,
) -> WeeklyHolidayWeek:
    sunday = monday + timedelta(days=6)
    worked = sum((d.actual_worked_hours for d in week_days), ZERO)
    is_first_week = monday.day <= 7

    def ineligible(reason: str) -> WeeklyHolidayWeek:
        return WeeklyHolidayWeek(
            week_start=monday,
            week_end=sunday,
            worked_hours=worked,
            hours=ZERO,
            pay=ZERO,
            eligible=False,
            reason=reason,
            is_first_week=is_first_week,
        )

    if sunday > month.last_day:
        return ineligible(REASON_DEFERRED)
    if sunday > coverage_end:
        return ineligible(REASON_INCOMPLETE)

    attended = any(d.has_attendance for d in week_days)
    counted = worked + (carryover_hours if is_first_week else ZERO)
    if not attended or counted < rates.weekly_holiday.min_weekly_hours:
        return ineligible(REASON_INSUFFICIENT)

    hours = worked / Decimal(workdays)
    pay = round_currency(hours * hourly_wage)
    if (
        probation_start is not None
        and probation_end is not None
        and probation_start <= sunday <= probation_end
    ):
        pay = round_currency(pay * rates.probation_rate)

    return WeeklyHolidayWeek(
        week_start=monday,
        week_end=sunday,
        worked_hours=worked,
        hours=hours,
        pay=pay,
        eligible=True,
        is_first_week=is_first_week,
    )


@traced_engine(
    "weekly_holiday",
    "1.0",
    fingerprint_fields=("days", "hourly_wage", "month", "carryover_hours", "coverage_end"),
)
def compute_weekly_holiday(
    days: Sequence[ReconciliationDay],
    hourly_wage: Decimal,
    month: MonthKey,
    *,
    weekly_workdays: int | None = None,
    probation_start: date | None = None,
    probation_end: date | None = None,
    carryover_hours: Decimal = ZERO,
    coverage_end: date | None = None,
    rates: PayrollRates | None = None,
) -> WeeklyHolidayResult:
    """
    Weekly holiday hours and pay for one employee's month.

    Args:
        days: The employee's reconciled days for *month* (any branches).
        hourly_wage: Contract hourly wage; zero yields zero pay.
        month: The payroll month.
        weekly_workdays: Contracted workdays per week (default from rates).
        carryover_hours: Hours from the previous month's deferred week,
            counted toward the first week's threshold only.
        coverage_end: Last date the attendance data covers; defaults to the
            month's last day.
    """
    rates = rates or PayrollRates()
    workdays = weekly_workdays or rates.weekly_holiday.default_weekly_workdays
    coverage_end = coverage_end or month.last_day

    weeks = tuple(
        _week_entry(
            monday,
            week_days,
            month=month,
            coverage_end=coverage_end,
            hourly_wage=hourly_wage,
            workdays=workdays,
            carryover_hours=carryover_hours,
            probation_start=probation_start,
            probation_end=probation_end,
            rates=rates,
        )
        for monday, week_days in group_by_week(days).items()
    )
    eligible = [w for w in weeks if w.eligible]
    return WeeklyHolidayResult(
        hours=sum((w.hours for w in eligible), ZERO),
        pay=sum((w.pay for w in eligible), ZERO),
        weeks=weeks,
    )
