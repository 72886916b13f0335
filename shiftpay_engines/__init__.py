"""
Module: shiftpay_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines: the
    attendance text parser, reconciliation, review-state edits, weekly
    holiday allowance and payroll calculation.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  May import kernel domain
    values, config schema types and module models; MUST NOT import stores
    or services.

Invariants enforced:
    - Engines NEVER call ``datetime.now()`` or ``date.today()``; the month,
      coverage dates and rates are explicit parameters.
    - Hours and money are ``Decimal``; floats are coerced through ``str``.
    - Identical inputs always produce identical outputs.
"""

from shiftpay_engines.attendance_parser import (
    parse_attendance_line,
    parse_attendance_text,
    split_columns,
)
from shiftpay_engines.payroll_calculator import (
    UNKNOWN_BRANCH,
    branch_hours_breakdown,
    calculate_payroll,
    partition_probation_hours,
)
from shiftpay_engines.reconciliation import classify_difference, reconcile, summarize_days
from shiftpay_engines.review_state import (
    confirm_day,
    copy_scheduled_hours,
    derive_review_status,
    edit_actual_hours,
    status_after_reconcile,
    unconfirm_day,
)
from shiftpay_engines.weekly_holiday import compute_weekly_holiday

__all__ = [
    "parse_attendance_line",
    "parse_attendance_text",
    "split_columns",
    "UNKNOWN_BRANCH",
    "branch_hours_breakdown",
    "calculate_payroll",
    "partition_probation_hours",
    "classify_difference",
    "reconcile",
    "summarize_days",
    "confirm_day",
    "copy_scheduled_hours",
    "derive_review_status",
    "edit_actual_hours",
    "status_after_reconcile",
    "unconfirm_day",
    "compute_weekly_holiday",
]
