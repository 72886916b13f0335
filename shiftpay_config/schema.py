"""
Payroll rate set schema.

Defines the reviewable source artifact for the statutory rates the payroll
engine applies.  YAML files under ``shiftpay_config/sets`` are parsed into
these types by the loader.  Every field has a default equal to the 2025 set so
pure engines and tests can run without touching the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

# ---------------------------------------------------------------------------
# Statutory deductions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsuranceRates:
    """Employee share of the four social insurances.

    ``long_term_care`` is applied to the rounded health premium, not to gross.
    """

    national_pension: Decimal = Decimal("0.045")
    health: Decimal = Decimal("0.03545")
    long_term_care: Decimal = Decimal("0.1295")
    employment: Decimal = Decimal("0.009")


@dataclass(frozen=True)
class TaxBracket:
    """Income tax = base_tax + rate x (gross - lower) for lower < gross <= upper."""

    lower: Decimal
    upper: Decimal | None
    base_tax: Decimal
    rate: Decimal


DEFAULT_INCOME_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("0"), Decimal("1060000"), Decimal("0"), Decimal("0")),
    TaxBracket(Decimal("1060000"), Decimal("2100000"), Decimal("0"), Decimal("0.02")),
    TaxBracket(Decimal("2100000"), Decimal("3160000"), Decimal("20800"), Decimal("0.04")),
    TaxBracket(Decimal("3160000"), Decimal("5000000"), Decimal("63200"), Decimal("0.06")),
    TaxBracket(Decimal("5000000"), None, Decimal("173600"), Decimal("0.08")),
)


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReconciliationPolicy:
    """A day whose |difference| reaches the threshold needs review."""

    review_threshold_hours: Decimal = Decimal("0.17")


@dataclass(frozen=True)
class WeeklyHolidayPolicy:
    min_weekly_hours: Decimal = Decimal("15")
    default_weekly_workdays: int = 5
    eligible_categories: tuple[str, ...] = (
        "wage_earner",
        "business_income",
        "foreign_worker",
    )


# ---------------------------------------------------------------------------
# Rate set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PayrollRates:
    """One effective-dated set of payroll rates."""

    rate_set_id: str = "kr-2025"
    version: int = 1
    effective_from: date = date(2025, 1, 1)
    probation_rate: Decimal = Decimal("0.9")
    monthly_day_divisor: int = 30
    insurance: InsuranceRates = field(default_factory=InsuranceRates)
    income_tax_brackets: tuple[TaxBracket, ...] = DEFAULT_INCOME_TAX_BRACKETS
    local_income_tax_rate: Decimal = Decimal("0.1")
    business_income_tax_rate: Decimal = Decimal("0.033")
    reconciliation: ReconciliationPolicy = field(default_factory=ReconciliationPolicy)
    weekly_holiday: WeeklyHolidayPolicy = field(default_factory=WeeklyHolidayPolicy)
    checksum: str = ""
