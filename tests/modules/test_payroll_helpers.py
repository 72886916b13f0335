"""
Tests for the pure payroll deduction helpers.
"""

from decimal import Decimal

import pytest

from shiftpay_config.schema import InsuranceRates, PayrollRates
from shiftpay_kernel.domain.values import round_currency
from shiftpay_modules.payroll.helpers import (
    calculate_business_income_tax,
    calculate_deductions,
    calculate_income_tax,
    calculate_local_income_tax,
    calculate_social_insurance,
)
from shiftpay_modules.payroll.models import EmploymentCategory


class TestSocialInsurance:

    def test_components(self):
        premiums = calculate_social_insurance(Decimal("84000"))

        assert premiums.national_pension == Decimal("3780")
        assert premiums.health == Decimal("2978")
        assert premiums.long_term_care == Decimal("386")
        assert premiums.employment == Decimal("756")
        assert premiums.total == Decimal("7900")

    def test_long_term_care_on_rounded_health(self):
        rates = InsuranceRates(health=Decimal("0.5"), long_term_care=Decimal("0.5"))

        # health = round(1.5) = 2, care = round(2 * 0.5) = 1 (not round(0.75))
        premiums = calculate_social_insurance(Decimal("3"), rates)

        assert premiums.health == Decimal("2")
        assert premiums.long_term_care == Decimal("1")

    @pytest.mark.parametrize("gross", [Decimal("0"), Decimal("-100")])
    def test_nothing_on_non_positive_gross(self, gross):
        assert calculate_social_insurance(gross).total == Decimal("0")


class TestIncomeTax:

    @pytest.mark.parametrize(
        "gross, expected",
        [
            (Decimal("1060000"), Decimal("0")),
            (Decimal("1060001"), Decimal("0")),
            (Decimal("2100000"), Decimal("20800")),
            (Decimal("2100001"), Decimal("20800")),
            (Decimal("3000000"), Decimal("56800")),
            (Decimal("6000000"), Decimal("253600")),
        ],
    )
    def test_brackets(self, gross, expected):
        assert calculate_income_tax(gross) == expected

    def test_upper_bound_belongs_to_lower_bracket(self):
        brackets = PayrollRates().income_tax_brackets

        assert calculate_income_tax(Decimal("3160000"), brackets) == Decimal("63200")

    def test_local_surtax(self):
        assert calculate_local_income_tax(Decimal("56800")) == Decimal("5680")
        assert calculate_local_income_tax(Decimal("16133")) == Decimal("1613")

    def test_business_income_withholding(self):
        assert calculate_business_income_tax(Decimal("1000000")) == Decimal("33000")
        assert calculate_business_income_tax(Decimal("0")) == Decimal("0")


class TestDeductions:

    def test_wage_earner(self):
        deductions = calculate_deductions(Decimal("3000000"), EmploymentCategory.WAGE_EARNER)

        assert deductions.income_tax == Decimal("56800")
        assert deductions.local_income_tax == Decimal("5680")
        assert deductions.tax == Decimal("62480")
        assert deductions.insurance == deductions.insurance_detail.total
        assert deductions.total == deductions.insurance + deductions.tax

    @pytest.mark.parametrize(
        "category", [EmploymentCategory.BUSINESS_INCOME, EmploymentCategory.FOREIGN_WORKER]
    )
    def test_flat_withholding_categories(self, category):
        deductions = calculate_deductions(Decimal("84000"), category)

        assert deductions.insurance == Decimal("0")
        assert deductions.tax == round_currency(Decimal("84000") * Decimal("0.033"))
        assert deductions.income_tax == deductions.tax
        assert deductions.local_income_tax == Decimal("0")

    def test_daily_worker(self):
        assert calculate_deductions(Decimal("84000"), EmploymentCategory.DAILY_WORKER).total == 0
