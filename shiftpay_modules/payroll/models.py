"""
Payroll Domain Models (``shiftpay_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects for the payroll side of the core:
compensation configuration, the calculation result with its weekly-holiday
and deduction breakdowns, and the confirmed snapshot held by the ledger.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* Money fields are whole-unit ``Decimal``; hour fields are unrounded
  ``Decimal``.
* ``PayrollCalculationResult.to_snapshot()`` / ``from_snapshot()`` are exact
  inverses; Decimals travel as strings.

Failure modes
-------------
* Construction with invalid enum values raises ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from shiftpay_kernel.domain.values import ZERO


class EmploymentCategory(Enum):
    """Tax category of the employment contract."""
    WAGE_EARNER = "wage_earner"
    BUSINESS_INCOME = "business_income"
    DAILY_WORKER = "daily_worker"
    FOREIGN_WORKER = "foreign_worker"


class SalaryType(Enum):
    HOURLY = "hourly"
    MONTHLY = "monthly"


class PayrollProgressStatus(Enum):
    """Branch overview of where an employee's month stands."""
    UNPROCESSED = "unprocessed"
    WORKTIME_CONFIRMED = "worktime_confirmed"
    PAYROLL_CONFIRMED = "payroll_confirmed"


@dataclass(frozen=True)
class EmployeeCompensationConfig:
    """The contract terms the payroll engine needs."""
    employee_id: str
    employment_category: EmploymentCategory
    salary_type: SalaryType
    hourly_wage: Decimal | None = None
    monthly_salary: Decimal | None = None
    probation_start: date | None = None
    probation_end: date | None = None
    weekly_holiday_included: bool = False
    weekly_contracted_workdays: int = 5
    effective_from: date | None = None

    @property
    def has_probation(self) -> bool:
        return self.probation_start is not None and self.probation_end is not None

    def in_probation(self, day: date) -> bool:
        return self.has_probation and self.probation_start <= day <= self.probation_end


@dataclass(frozen=True)
class WeeklyHolidayWeek:
    """One Monday-start week of the weekly-holiday breakdown."""
    week_start: date
    week_end: date
    worked_hours: Decimal
    hours: Decimal
    pay: Decimal
    eligible: bool
    reason: str | None = None
    is_first_week: bool = False


@dataclass(frozen=True)
class WeeklyHolidayResult:
    hours: Decimal
    pay: Decimal
    weeks: tuple[WeeklyHolidayWeek, ...] = ()


@dataclass(frozen=True)
class InsuranceBreakdown:
    national_pension: Decimal = ZERO
    health: Decimal = ZERO
    long_term_care: Decimal = ZERO
    employment: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.national_pension + self.health + self.long_term_care + self.employment


@dataclass(frozen=True)
class DeductionBreakdown:
    """insurance + tax = total; tax = income_tax + local_income_tax."""
    insurance: Decimal = ZERO
    tax: Decimal = ZERO
    income_tax: Decimal = ZERO
    local_income_tax: Decimal = ZERO
    insurance_detail: InsuranceBreakdown = field(default_factory=InsuranceBreakdown)

    @property
    def total(self) -> Decimal:
        return self.insurance + self.tax


@dataclass(frozen=True)
class BranchHours:
    branch_id: str
    branch_name: str
    work_hours: Decimal


@dataclass(frozen=True)
class PayrollCalculationResult:
    """Everything the payroll engine derives for one employee and month."""
    employee_id: str
    month: str
    employment_category: EmploymentCategory
    salary_type: SalaryType
    total_scheduled_hours: Decimal
    total_actual_hours: Decimal
    total_break_time: Decimal
    actual_work_hours: Decimal
    probation_hours: Decimal
    regular_hours: Decimal
    probation_pay: Decimal
    regular_pay: Decimal
    base_pay: Decimal
    unpaid_leave_deduction: Decimal
    weekly_holiday_hours: Decimal
    weekly_holiday_pay: Decimal
    weekly_holiday_weeks: tuple[WeeklyHolidayWeek, ...]
    gross_pay: Decimal
    deductions: DeductionBreakdown
    net_pay: Decimal
    branch_hours: tuple[BranchHours, ...] = ()
    rate_set_id: str = ""

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-ready dict; Decimals and dates as strings."""
        d = self.deductions
        return {
            "employee_id": self.employee_id,
            "month": self.month,
            "employment_category": self.employment_category.value,
            "salary_type": self.salary_type.value,
            "total_scheduled_hours": str(self.total_scheduled_hours),
            "total_actual_hours": str(self.total_actual_hours),
            "total_break_time": str(self.total_break_time),
            "actual_work_hours": str(self.actual_work_hours),
            "probation_hours": str(self.probation_hours),
            "regular_hours": str(self.regular_hours),
            "probation_pay": str(self.probation_pay),
            "regular_pay": str(self.regular_pay),
            "base_pay": str(self.base_pay),
            "unpaid_leave_deduction": str(self.unpaid_leave_deduction),
            "weekly_holiday_hours": str(self.weekly_holiday_hours),
            "weekly_holiday_pay": str(self.weekly_holiday_pay),
            "weekly_holiday_weeks": [
                {
                    "week_start": w.week_start.isoformat(),
                    "week_end": w.week_end.isoformat(),
                    "worked_hours": str(w.worked_hours),
                    "hours": str(w.hours),
                    "pay": str(w.pay),
                    "eligible": w.eligible,
                    "reason": w.reason,
                    "is_first_week": w.is_first_week,
                }
                for w in self.weekly_holiday_weeks
            ],
            "gross_pay": str(self.gross_pay),
            "deductions": {
                "insurance": str(d.insurance),
                "tax": str(d.tax),
                "income_tax": str(d.income_tax),
                "local_income_tax": str(d.local_income_tax),
                "national_pension": str(d.insurance_detail.national_pension),
                "health": str(d.insurance_detail.health),
                "long_term_care": str(d.insurance_detail.long_term_care),
                "employment": str(d.insurance_detail.employment),
                "total": str(d.total),
            },
            "net_pay": str(self.net_pay),
            "branch_hours": [
                {
                    "branch_id": b.branch_id,
                    "branch_name": b.branch_name,
                    "work_hours": str(b.work_hours),
                }
                for b in self.branch_hours
            ],
            "rate_set_id": self.rate_set_id,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> PayrollCalculationResult:
        d = data["deductions"]
        return cls(
            employee_id=data["employee_id"],
            month=data["month"],
            employment_category=EmploymentCategory(data["employment_category"]),
            salary_type=SalaryType(data["salary_type"]),
            total_scheduled_hours=Decimal(data["total_scheduled_hours"]),
            total_actual_hours=Decimal(data["total_actual_hours"]),
            total_break_time=Decimal(data["total_break_time"]),
            actual_work_hours=Decimal(data["actual_work_hours"]),
            probation_hours=Decimal(data["probation_hours"]),
            regular_hours=Decimal(data["regular_hours"]),
            probation_pay=Decimal(data["probation_pay"]),
            regular_pay=Decimal(data["regular_pay"]),
            base_pay=Decimal(data["base_pay"]),
            unpaid_leave_deduction=Decimal(data["unpaid_leave_deduction"]),
            weekly_holiday_hours=Decimal(data["weekly_holiday_hours"]),
            weekly_holiday_pay=Decimal(data["weekly_holiday_pay"]),
            weekly_holiday_weeks=tuple(
                WeeklyHolidayWeek(
                    week_start=date.fromisoformat(w["week_start"]),
                    week_end=date.fromisoformat(w["week_end"]),
                    worked_hours=Decimal(w["worked_hours"]),
                    hours=Decimal(w["hours"]),
                    pay=Decimal(w["pay"]),
                    eligible=w["eligible"],
                    reason=w["reason"],
                    is_first_week=w["is_first_week"],
                )
                for w in data["weekly_holiday_weeks"]
            ),
            gross_pay=Decimal(data["gross_pay"]),
            deductions=DeductionBreakdown(
                insurance=Decimal(d["insurance"]),
                tax=Decimal(d["tax"]),
                income_tax=Decimal(d["income_tax"]),
                local_income_tax=Decimal(d["local_income_tax"]),
                insurance_detail=InsuranceBreakdown(
                    national_pension=Decimal(d["national_pension"]),
                    health=Decimal(d["health"]),
                    long_term_care=Decimal(d["long_term_care"]),
                    employment=Decimal(d["employment"]),
                ),
            ),
            net_pay=Decimal(data["net_pay"]),
            branch_hours=tuple(
                BranchHours(
                    branch_id=b["branch_id"],
                    branch_name=b["branch_name"],
                    work_hours=Decimal(b["work_hours"]),
                )
                for b in data.get("branch_hours", [])
            ),
            rate_set_id=data.get("rate_set_id", ""),
        )


@dataclass(frozen=True)
class ConfirmedPayroll:
    """Immutable ledger entry for one (employee, branch, month)."""
    employee_id: str
    branch_id: str
    month: str
    result: PayrollCalculationResult
    confirmed_at: datetime
    confirmed_by: UUID
    snapshot_hash: str
    source_days_hash: str | None = None
    id: UUID | None = None


@dataclass(frozen=True)
class PayrollProgress:
    employee_id: str
    branch_id: str
    month: str
    status: PayrollProgressStatus
    review_status: str
