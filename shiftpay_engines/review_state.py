"""
Review State Engine (``shiftpay_engines.review_state``).

Responsibility
--------------
Pure day-level review edits and the derivation of a key's coarse status
from its day tallies.  The service decides *whether* an action is allowed
(workflow + ledger lock); this module computes *what* the new values are.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.

Invariants enforced
-------------------
* Editing hours never changes a day's status; it marks the day modified.
* Confirm and copy-scheduled mark the day ``review_completed`` and modified.
* Un-confirm returns a day to ``review_required``.
* Derived coarse status is ``review_complete`` iff no day is
  ``review_required``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal

from shiftpay_kernel.domain.values import ZERO
from shiftpay_modules.worktime.models import DayStatus, ReconciliationDay, ReviewStatus


def derive_review_status(
    days: Sequence[ReconciliationDay],
    current: ReviewStatus = ReviewStatus.NOT_STARTED,
) -> ReviewStatus:
    """Coarse status implied by the day tallies.

    With no days there is nothing to derive from and *current* is kept.
    """
    if not days:
        return current
    if any(d.status is DayStatus.REVIEW_REQUIRED for d in days):
        return ReviewStatus.IN_REVIEW
    return ReviewStatus.REVIEW_COMPLETE


def status_after_reconcile(current: ReviewStatus, day_count: int) -> ReviewStatus:
    """A re-run never reopens a completed review."""
    if day_count == 0 or current is ReviewStatus.REVIEW_COMPLETE:
        return current
    return ReviewStatus.IN_REVIEW


def edit_actual_hours(day: ReconciliationDay, hours: Decimal) -> ReconciliationDay:
    if hours < ZERO:
        raise ValueError(f"Worked hours cannot be negative: {hours}")
    return replace(day, actual_worked_hours=hours, is_modified=True)


def confirm_day(day: ReconciliationDay) -> ReconciliationDay:
    return replace(day, status=DayStatus.REVIEW_COMPLETED, is_modified=True)


def copy_scheduled_hours(day: ReconciliationDay) -> ReconciliationDay:
    """Accept the plan as the actual: difference becomes zero."""
    return replace(
        day,
        actual_worked_hours=day.scheduled_hours,
        status=DayStatus.REVIEW_COMPLETED,
        is_modified=True,
    )


def unconfirm_day(day: ReconciliationDay) -> ReconciliationDay:
    return replace(day, status=DayStatus.REVIEW_REQUIRED)

