"""
Tests for rate set loading and selection.
"""

from datetime import date
from decimal import Decimal

import pytest

from shiftpay_config import get_active_rates, list_rate_sets
from shiftpay_config.loader import compute_checksum, load_rate_set, parse_rates
from shiftpay_config.schema import PayrollRates
from shiftpay_kernel.exceptions import RateSetNotFoundError

MINIMAL_SET = """\
rate_set_id: {rate_set_id}
version: 1
effective_from: "{effective_from}"
insurance:
  national_pension: "0.05"
"""


def _write_set(directory, rate_set_id: str, effective_from: str):
    path = directory / f"{rate_set_id}.yaml"
    path.write_text(
        MINIMAL_SET.format(rate_set_id=rate_set_id, effective_from=effective_from),
        encoding="utf-8",
    )
    return path


class TestBundledRateSet:

    def test_matches_built_in_defaults(self):
        rates = get_active_rates(date(2025, 9, 30))
        defaults = PayrollRates()

        assert rates.rate_set_id == "kr-2025"
        assert rates.insurance == defaults.insurance
        assert rates.income_tax_brackets == defaults.income_tax_brackets
        assert rates.reconciliation == defaults.reconciliation
        assert rates.weekly_holiday == defaults.weekly_holiday
        assert rates.business_income_tax_rate == Decimal("0.033")

    def test_checksum_stamped(self):
        rates = get_active_rates(date(2025, 9, 30))

        assert len(rates.checksum) == 64

    def test_nothing_effective_before_first_set(self):
        with pytest.raises(RateSetNotFoundError):
            get_active_rates(date(2024, 12, 31))

    def test_trace_logged(self, captured_logs):
        get_active_rates(date(2025, 9, 30))

        traces = [r for r in captured_logs() if r["message"] == "SHIFTPAY_RATES_TRACE"]
        assert traces[-1]["rate_set_id"] == "kr-2025"
        assert traces[-1]["as_of_date"] == "2025-09-30"


class TestRateSetSelection:

    def test_latest_effective_set_wins(self, tmp_path):
        _write_set(tmp_path, "kr-2025", "2025-01-01")
        _write_set(tmp_path, "kr-2026", "2026-01-01")

        assert get_active_rates(date(2025, 12, 31), tmp_path).rate_set_id == "kr-2025"
        assert get_active_rates(date(2026, 1, 1), tmp_path).rate_set_id == "kr-2026"

    def test_listed_in_effective_order(self, tmp_path):
        _write_set(tmp_path, "b-later", "2026-01-01")
        _write_set(tmp_path, "a-earlier", "2025-01-01")

        assert [r.rate_set_id for r in list_rate_sets(tmp_path)] == ["a-earlier", "b-later"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list_rate_sets(tmp_path / "absent")

    def test_partial_file_falls_back_to_defaults(self, tmp_path):
        rates = load_rate_set(_write_set(tmp_path, "partial", "2025-01-01"))

        assert rates.insurance.national_pension == Decimal("0.05")
        assert rates.insurance.health == PayrollRates().insurance.health
        assert rates.probation_rate == Decimal("0.9")


class TestParsing:

    def test_rates_parsed_as_exact_decimals(self):
        rates = parse_rates(
            {"rate_set_id": "x", "effective_from": "2025-01-01", "probation_rate": 0.9}
        )

        assert rates.probation_rate == Decimal("0.9")

    def test_open_top_bracket_required(self):
        with pytest.raises(ValueError):
            parse_rates(
                {
                    "rate_set_id": "x",
                    "effective_from": "2025-01-01",
                    "income_tax_brackets": [
                        {"lower": "0", "upper": "1000", "rate": "0"},
                    ],
                }
            )

    def test_missing_id_rejected(self):
        with pytest.raises(KeyError):
            parse_rates({"effective_from": "2025-01-01"})

    def test_checksum_deterministic(self):
        data = {"b": 1, "a": [1, 2]}

        assert compute_checksum(data) == compute_checksum({"a": [1, 2], "b": 1})
