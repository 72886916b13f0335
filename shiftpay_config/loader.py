"""
Rate Set Loader (``shiftpay_config.loader``).

Responsibility
--------------
Loads a rate-set YAML file and parses it into the frozen
``shiftpay_config.schema.PayrollRates``.  Runtime callers go through
``shiftpay_config.get_active_rates()``; this module is the parsing half.

Invariants enforced
-------------------
* Every numeric rate is parsed to ``Decimal`` via ``str`` so YAML floats
  never leak binary rounding into money.
* Missing required keys raise ``KeyError``; there are no silent defaults
  for ``rate_set_id`` or ``effective_from``.
* ``compute_checksum`` is a deterministic SHA-256 of the parsed document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid date  -> ``ValueError`` from ``date.fromisoformat``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from shiftpay_config.schema import (
    DEFAULT_INCOME_TAX_BRACKETS,
    InsuranceRates,
    PayrollRates,
    ReconciliationPolicy,
    TaxBracket,
    WeeklyHolidayPolicy,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields ``{}``."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def _dec(value: Any) -> Decimal:
    return Decimal(str(value))


def parse_insurance(data: dict[str, Any]) -> InsuranceRates:
    defaults = InsuranceRates()
    return InsuranceRates(
        national_pension=_dec(data.get("national_pension", defaults.national_pension)),
        health=_dec(data.get("health", defaults.health)),
        long_term_care=_dec(data.get("long_term_care", defaults.long_term_care)),
        employment=_dec(data.get("employment", defaults.employment)),
    )


def parse_bracket(data: dict[str, Any]) -> TaxBracket:
    upper = data.get("upper")
    return TaxBracket(
        lower=_dec(data["lower"]),
        upper=_dec(upper) if upper is not None else None,
        base_tax=_dec(data.get("base_tax", 0)),
        rate=_dec(data["rate"]),
    )


def parse_rates(data: dict[str, Any], checksum: str = "") -> PayrollRates:
    """
    Parse a ``PayrollRates`` from a YAML document.

    Brackets are sorted by ``lower``; the last bracket must be open-ended.
    """
    brackets = DEFAULT_INCOME_TAX_BRACKETS
    if "income_tax_brackets" in data:
        brackets = tuple(
            sorted(
                (parse_bracket(b) for b in data["income_tax_brackets"]),
                key=lambda b: b.lower,
            )
        )
        if not brackets or brackets[-1].upper is not None:
            raise ValueError("The highest income tax bracket must have upper: null")

    recon = data.get("reconciliation", {})
    weekly = data.get("weekly_holiday", {})
    weekly_defaults = WeeklyHolidayPolicy()

    return PayrollRates(
        rate_set_id=data["rate_set_id"],
        version=int(data.get("version", 1)),
        effective_from=parse_date(data["effective_from"]),
        probation_rate=_dec(data.get("probation_rate", "0.9")),
        monthly_day_divisor=int(data.get("monthly_day_divisor", 30)),
        insurance=parse_insurance(data.get("insurance", {})),
        income_tax_brackets=brackets,
        local_income_tax_rate=_dec(data.get("local_income_tax_rate", "0.1")),
        business_income_tax_rate=_dec(data.get("business_income_tax_rate", "0.033")),
        reconciliation=ReconciliationPolicy(
            review_threshold_hours=_dec(recon.get("review_threshold_hours", "0.17")),
        ),
        weekly_holiday=WeeklyHolidayPolicy(
            min_weekly_hours=_dec(weekly.get("min_weekly_hours", weekly_defaults.min_weekly_hours)),
            default_weekly_workdays=int(
                weekly.get("default_weekly_workdays", weekly_defaults.default_weekly_workdays)
            ),
            eligible_categories=tuple(
                weekly.get("eligible_categories", weekly_defaults.eligible_categories)
            ),
        ),
        checksum=checksum,
    )


def load_rate_set(path: Path) -> PayrollRates:
    """Load and parse one rate-set file, stamping its checksum."""
    data = load_yaml_file(path)
    return parse_rates(data, checksum=compute_checksum(data))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON of *data*; identical input, identical hash."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
