"""
shiftpay_config -- single public entrypoint for payroll rate configuration.

Responsibility:
    ``get_active_rates()`` returns the ``PayrollRates`` set in force on a
    date.  Rate sets are YAML files under ``shiftpay_config/sets``, one per
    effective date; the latest set whose ``effective_from`` is on or before
    the requested date wins.

Architecture position:
    Configuration.  Sits beside ``shiftpay_kernel`` and below
    ``shiftpay_modules``.  Engines receive a ``PayrollRates`` argument and
    never import this package's loader.

Failure modes:
    - ``RateSetNotFoundError`` -- no set is effective on the date.
    - ``ValueError`` / ``KeyError`` -- a set file is malformed.

Audit relevance:
    Every call emits a ``SHIFTPAY_RATES_TRACE`` log entry carrying the rate
    set id, version and checksum, tying each payroll calculation to the
    exact rates that produced it.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from shiftpay_config.loader import load_rate_set
from shiftpay_config.schema import (
    InsuranceRates,
    PayrollRates,
    ReconciliationPolicy,
    TaxBracket,
    WeeklyHolidayPolicy,
)
from shiftpay_kernel.exceptions import RateSetNotFoundError
from shiftpay_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "get_active_rates",
    "list_rate_sets",
    "PayrollRates",
    "InsuranceRates",
    "TaxBracket",
    "ReconciliationPolicy",
    "WeeklyHolidayPolicy",
]


def list_rate_sets(config_dir: Path | None = None) -> list[PayrollRates]:
    """All rate sets in *config_dir*, ordered by effective date then version."""
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Rate set directory not found: {sets_dir}")
    rate_sets = [load_rate_set(p) for p in sorted(sets_dir.glob("*.yaml"))]
    return sorted(rate_sets, key=lambda r: (r.effective_from, r.version))


def get_active_rates(as_of_date: date, config_dir: Path | None = None) -> PayrollRates:
    """The ONLY public configuration entrypoint.

    Args:
        as_of_date: The first day of the payroll month.
        config_dir: Override path to the rate set directory.

    Raises:
        RateSetNotFoundError: If no rate set is effective on *as_of_date*.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    candidates = [r for r in list_rate_sets(sets_dir) if r.effective_from <= as_of_date]
    if not candidates:
        raise RateSetNotFoundError(as_of=as_of_date.isoformat(), config_dir=str(sets_dir))

    rates = candidates[-1]
    _logger.info(
        "SHIFTPAY_RATES_TRACE",
        extra={
            "trace_type": "SHIFTPAY_RATES_TRACE",
            "rate_set_id": rates.rate_set_id,
            "rate_set_version": rates.version,
            "effective_from": rates.effective_from.isoformat(),
            "checksum": rates.checksum,
            "as_of_date": as_of_date.isoformat(),
        },
    )
    return rates
