"""Shared helpers for the review and payroll services.

Lock checks, optimistic revision checks, workflow lookups and listener
notification used by both ``WorkTimeReviewService`` and ``PayrollService``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from shiftpay_kernel.domain.workflow import Transition, Workflow
from shiftpay_kernel.exceptions import (
    InvalidReviewTransitionError,
    OptimisticLockError,
    PayrollLockedError,
)
from shiftpay_kernel.logging_config import get_logger
from shiftpay_modules.worktime.models import (
    ReviewChange,
    ReviewKey,
    ReviewStatus,
    ReviewStatusRecord,
)

logger = get_logger("modules.service_helpers")

ReviewListener = Callable[[ReviewChange], None]


def ensure_unlocked(ledger, key: ReviewKey) -> None:
    """Raise PayrollLockedError when the key has a confirmed payroll."""
    if ledger.exists(key):
        logger.warning("review_write_blocked_by_payroll_lock", extra={"review_key": str(key)})
        raise PayrollLockedError(key.employee_id, key.branch_id, key.month_str)


def check_revision(
    key: ReviewKey, record: ReviewStatusRecord | None, expected_revision: int | None
) -> None:
    """Optimistic check; ``None`` skips it (last write wins)."""
    if expected_revision is None:
        return
    actual = record.revision if record is not None else 0
    if actual != expected_revision:
        raise OptimisticLockError(
            entity_type="ReviewStatus",
            entity_id=str(key),
            expected=expected_revision,
            actual=actual,
        )


def current_status(record: ReviewStatusRecord | None) -> ReviewStatus:
    return record.status if record is not None else ReviewStatus.NOT_STARTED


def require_transition(workflow: Workflow, from_state: str, action: str) -> Transition:
    transition = workflow.find_transition(from_state, action)
    if transition is None:
        raise InvalidReviewTransitionError(from_state, action)
    return transition


def notify_listeners(listeners: Iterable[ReviewListener], change: ReviewChange) -> None:
    """Called after commit; a failing listener propagates to the caller."""
    for listener in listeners:
        listener(change)
