"""
Payroll Calculation Engine (``shiftpay_engines.payroll_calculator``).

Responsibility
--------------
Turns one employee's finalized reconciliation days for a month (possibly
spread over several branches) and their compensation config into a
``PayrollCalculationResult``: base pay, weekly holiday allowance, gross,
itemised deductions and net.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Rates are passed in as a ``PayrollRates`` value; the defaults equal the
bundled 2025 rate set.

Invariants enforced
-------------------
* ``base_pay == probation_pay + regular_pay``.
* ``gross_pay == base_pay + weekly_holiday_pay`` (hourly) or
  ``base_pay - unpaid_leave_deduction`` (monthly).
* ``net_pay == gross_pay - deductions.total``.
* Money is rounded half-up to whole units; hours are never rounded.

Failure modes
-------------
* A missing hourly wage or monthly salary is treated as zero.
* Days outside *month* are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal

from shiftpay_config.schema import PayrollRates
from shiftpay_engines.tracer import traced_engine
from shiftpay_engines.weekly_holiday import compute_weekly_holiday
from shiftpay_kernel.domain.values import ZERO, MonthKey, round_currency, to_decimal
from shiftpay_kernel.logging_config import get_logger
from shiftpay_modules.payroll.helpers import calculate_deductions
from shiftpay_modules.payroll.models import (
    BranchHours,
    EmployeeCompensationConfig,
    EmploymentCategory,
    PayrollCalculationResult,
    SalaryType,
    WeeklyHolidayResult,
)
from shiftpay_modules.worktime.models import ReconciliationDay

logger = get_logger("engines.payroll_calculator")

UNKNOWN_BRANCH = "unknown branch"


def partition_probation_hours(
    days: Sequence[ReconciliationDay],
    config: EmployeeCompensationConfig,
) -> tuple[Decimal, Decimal]:
    """(probation_hours, regular_hours); the probation window is inclusive."""
    probation = ZERO
    regular = ZERO
    for day in days:
        if config.in_probation(day.work_date):
            probation += day.actual_worked_hours
        else:
            regular += day.actual_worked_hours
    return probation, regular


def branch_hours_breakdown(
    days: Sequence[ReconciliationDay],
    branch_names: Mapping[str, str] | None = None,
) -> tuple[BranchHours, ...]:
    names = dict(branch_names or {})
    totals: dict[str, Decimal] = {}
    for day in days:
        totals[day.branch_id] = totals.get(day.branch_id, ZERO) + day.actual_worked_hours
        if day.branch_name and day.branch_id not in names:
            names[day.branch_id] = day.branch_name
    return tuple(
        BranchHours(
            branch_id=branch_id,
            branch_name=names.get(branch_id) or UNKNOWN_BRANCH,
            work_hours=hours,
        )
        for branch_id, hours in sorted(totals.items())
    )


def _weekly_holiday_applies(config: EmployeeCompensationConfig, rates: PayrollRates) -> bool:
    return (
        config.salary_type is SalaryType.HOURLY
        and not config.weekly_holiday_included
        and config.employment_category.value in rates.weekly_holiday.eligible_categories
    )


@traced_engine(
    "payroll_calculator",
    "1.0",
    fingerprint_fields=("days", "config", "month", "unpaid_leave_days", "carryover_hours"),
)
def calculate_payroll(
    days: Sequence[ReconciliationDay],
    config: EmployeeCompensationConfig,
    month: MonthKey | str,
    *,
    rates: PayrollRates | None = None,
    unpaid_leave_days: int | Decimal = 0,
    carryover_hours: Decimal = ZERO,
    coverage_end: date | None = None,
    branch_names: Mapping[str, str] | None = None,
) -> PayrollCalculationResult:
    """
    Calculate one employee's payroll for *month*.

    Args:
        days: Finalized reconciliation days, any branch.
        config: The compensation terms in force for the month.
        unpaid_leave_days: Monthly wage earners only.
        carryover_hours: Counted toward the first week's weekly-holiday
            threshold only.
        coverage_end: Last date covered by attendance data; weeks ending
            after it are incomplete.
        branch_names: Display names for the per-branch breakdown.
    """
    rates = rates or PayrollRates()
    month = MonthKey.parse(month)
    days = sorted((d for d in days if month.contains(d.work_date)), key=lambda d: d.work_date)

    total_scheduled = sum((d.scheduled_hours for d in days), ZERO)
    actual_work = sum((d.actual_worked_hours for d in days), ZERO)
    total_break = sum((d.break_hours for d in days if d.has_attendance), ZERO)
    probation_hours, regular_hours = partition_probation_hours(days, config)

    unpaid_leave_deduction = ZERO
    weekly = WeeklyHolidayResult(hours=ZERO, pay=ZERO)

    if config.salary_type is SalaryType.HOURLY:
        wage = to_decimal(config.hourly_wage)
        probation_pay = round_currency(probation_hours * wage * rates.probation_rate)
        regular_pay = round_currency(regular_hours * wage)
        base_pay = probation_pay + regular_pay
        if _weekly_holiday_applies(config, rates):
            weekly = compute_weekly_holiday(
                days,
                wage,
                month,
                weekly_workdays=config.weekly_contracted_workdays,
                probation_start=config.probation_start,
                probation_end=config.probation_end,
                carryover_hours=to_decimal(carryover_hours),
                coverage_end=coverage_end,
                rates=rates,
            )
        gross_pay = base_pay + weekly.pay
    else:
        salary = to_decimal(config.monthly_salary)
        in_probation = config.has_probation and month.overlaps(
            config.probation_start, config.probation_end
        )
        if in_probation:
            base_pay = round_currency(salary * rates.probation_rate)
            probation_pay, regular_pay = base_pay, ZERO
        else:
            base_pay = round_currency(salary)
            probation_pay, regular_pay = ZERO, base_pay
        if config.employment_category is EmploymentCategory.WAGE_EARNER:
            daily = base_pay / Decimal(rates.monthly_day_divisor)
            unpaid_leave_deduction = round_currency(daily * to_decimal(unpaid_leave_days))
        gross_pay = base_pay - unpaid_leave_deduction

    deductions = calculate_deductions(gross_pay, config.employment_category, rates)
    result = PayrollCalculationResult(
        employee_id=config.employee_id,
        month=str(month),
        employment_category=config.employment_category,
        salary_type=config.salary_type,
        total_scheduled_hours=total_scheduled,
        total_actual_hours=actual_work + total_break,
        total_break_time=total_break,
        actual_work_hours=actual_work,
        probation_hours=probation_hours,
        regular_hours=regular_hours,
        probation_pay=probation_pay,
        regular_pay=regular_pay,
        base_pay=base_pay,
        unpaid_leave_deduction=unpaid_leave_deduction,
        weekly_holiday_hours=weekly.hours,
        weekly_holiday_pay=weekly.pay,
        weekly_holiday_weeks=weekly.weeks,
        gross_pay=gross_pay,
        deductions=deductions,
        net_pay=gross_pay - deductions.total,
        branch_hours=branch_hours_breakdown(days, branch_names),
        rate_set_id=rates.rate_set_id,
    )

    logger.info(
        "payroll_calculated",
        extra={
            "employee_id": config.employee_id,
            "month": str(month),
            "salary_type": config.salary_type.value,
            "day_count": len(days),
            "gross_pay": str(gross_pay),
            "net_pay": str(result.net_pay),
        },
    )
    return result
