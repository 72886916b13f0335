"""
Payroll Helpers (``shiftpay_modules.payroll.helpers``).

Responsibility
--------------
Pure deduction functions: the four social insurance premiums, bracketed
income tax with its local surtax, and the flat withholding on business
income.  These are simplified estimates, not a certified tax table.

Architecture position
---------------------
**Modules layer** -- pure helper functions.  No I/O, no session, no
clock.  Called by the payroll calculator or from tests.

Invariants enforced
-------------------
* All numeric inputs and outputs use ``Decimal``.
* Every component is rounded half-up to whole currency units on its own.
* Long-term care is charged on the *rounded* health premium.

Failure modes
-------------
* Zero or negative gross pay -> every component is ``Decimal("0")``.
"""

from __future__ import annotations

from decimal import Decimal

from shiftpay_config.schema import InsuranceRates, PayrollRates, TaxBracket
from shiftpay_kernel.domain.values import ZERO, round_currency
from shiftpay_modules.payroll.models import (
    DeductionBreakdown,
    EmploymentCategory,
    InsuranceBreakdown,
)


def calculate_social_insurance(
    gross_pay: Decimal,
    rates: InsuranceRates | None = None,
) -> InsuranceBreakdown:
    """
    Employee share of national pension, health, long-term care and
    employment insurance.

    Postconditions:
        - ``long_term_care == round(round(gross * health) * long_term_care_rate)``.
    """
    if gross_pay <= ZERO:
        return InsuranceBreakdown()
    rates = rates or InsuranceRates()
    health = round_currency(gross_pay * rates.health)
    return InsuranceBreakdown(
        national_pension=round_currency(gross_pay * rates.national_pension),
        health=health,
        long_term_care=round_currency(health * rates.long_term_care),
        employment=round_currency(gross_pay * rates.employment),
    )


def calculate_income_tax(
    gross_pay: Decimal,
    brackets: tuple[TaxBracket, ...] | None = None,
) -> Decimal:
    """
    Bracketed income tax on monthly gross.

    The bracket with ``lower < gross <= upper`` applies; an open upper bound
    catches everything above the last threshold.
    """
    if gross_pay <= ZERO:
        return ZERO
    brackets = brackets or PayrollRates().income_tax_brackets
    for bracket in brackets:
        if gross_pay > bracket.lower and (bracket.upper is None or gross_pay <= bracket.upper):
            return round_currency(
                bracket.base_tax + (gross_pay - bracket.lower) * bracket.rate
            )
    return ZERO


def calculate_local_income_tax(income_tax: Decimal, rate: Decimal = Decimal("0.1")) -> Decimal:
    return round_currency(income_tax * rate)


def calculate_business_income_tax(gross_pay: Decimal, rate: Decimal = Decimal("0.033")) -> Decimal:
    if gross_pay <= ZERO:
        return ZERO
    return round_currency(gross_pay * rate)


def calculate_deductions(
    gross_pay: Decimal,
    category: EmploymentCategory,
    rates: PayrollRates | None = None,
) -> DeductionBreakdown:
    """
    Category-specific deductions on *gross_pay*.

    * wage earner: four insurances + income tax + local surtax.
    * business income / foreign worker: flat withholding, no insurance.
    * daily worker: nothing.
    """
    rates = rates or PayrollRates()

    if category is EmploymentCategory.WAGE_EARNER:
        insurance = calculate_social_insurance(gross_pay, rates.insurance)
        income_tax = calculate_income_tax(gross_pay, rates.income_tax_brackets)
        local_tax = calculate_local_income_tax(income_tax, rates.local_income_tax_rate)
        return DeductionBreakdown(
            insurance=insurance.total,
            tax=income_tax + local_tax,
            income_tax=income_tax,
            local_income_tax=local_tax,
            insurance_detail=insurance,
        )

    if category in (EmploymentCategory.BUSINESS_INCOME, EmploymentCategory.FOREIGN_WORKER):
        tax = calculate_business_income_tax(gross_pay, rates.business_income_tax_rate)
        return DeductionBreakdown(tax=tax, income_tax=tax)

    return DeductionBreakdown()
