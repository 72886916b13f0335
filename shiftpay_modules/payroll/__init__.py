"""
Payroll Module (``shiftpay_modules.payroll``).

Responsibility
--------------
Monthly payroll from reviewed work time: hourly and monthly pay paths,
weekly holiday allowance, estimated statutory deductions and the
confirmation ledger that locks a month once paid.

Failure modes
-------------
* Deduction helpers return ``Decimal("0")`` for zero or negative gross pay.
"""

from shiftpay_modules.payroll.models import (
    BranchHours,
    ConfirmedPayroll,
    DeductionBreakdown,
    EmployeeCompensationConfig,
    EmploymentCategory,
    InsuranceBreakdown,
    PayrollCalculationResult,
    PayrollProgress,
    PayrollProgressStatus,
    SalaryType,
    WeeklyHolidayResult,
    WeeklyHolidayWeek,
)

__all__ = [
    "BranchHours",
    "ConfirmedPayroll",
    "DeductionBreakdown",
    "EmployeeCompensationConfig",
    "EmploymentCategory",
    "InsuranceBreakdown",
    "PayrollCalculationResult",
    "PayrollProgress",
    "PayrollProgressStatus",
    "SalaryType",
    "WeeklyHolidayResult",
    "WeeklyHolidayWeek",
]
