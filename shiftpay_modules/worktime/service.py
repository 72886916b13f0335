"""
Work-time Review Service (``shiftpay_modules.worktime.service``).

Responsibility
--------------
Orchestrates the review of one (employee, branch, month) key: running
reconciliation from pasted attendance text, day-level corrections, and the
coarse review status, by delegating computation to ``shiftpay_engines`` and
persistence to the work-time stores.

Architecture position
---------------------
**Modules layer** -- thin application glue.  ``WorkTimeReviewService`` is
the sole public entry point for review mutations.

Invariants enforced
-------------------
* Each public mutating method owns the transaction boundary (``commit`` on
  success, ``rollback`` on any exception).
* A key with a confirmed payroll is locked: every mutation raises
  ``PayrollLockedError`` before touching storage.
* Re-running reconciliation over manually edited days requires
  ``overwrite_modified=True``.
* Status changes go through ``REVIEW_WORKFLOW``; day changes through
  ``DAY_REVIEW_WORKFLOW``.  Derived and override writes are distinct
  actions and are recorded with their write path.
* When ``expected_revision`` is passed, a write against a moved revision
  raises ``OptimisticLockError``.

Failure modes
-------------
* Any store or engine error -> session rolled back, exception re-raised,
  listeners not notified.

Audit relevance
---------------
Structured log events at operation start and commit/rollback carry the
review key, action and resulting status.  Listeners receive a
``ReviewChange`` after every committed status write.

Usage::

    service = WorkTimeReviewService(session, clock=clock)
    days = service.reconcile_month(key, pasted_text, actor_id=actor_id)
    service.confirm_day(key, date(2025, 9, 1), actor_id=actor_id)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from shiftpay_config.schema import PayrollRates
from shiftpay_engines.attendance_parser import parse_attendance_text
from shiftpay_engines.reconciliation import reconcile, summarize_days
from shiftpay_engines.review_state import (
    confirm_day,
    copy_scheduled_hours,
    derive_review_status,
    edit_actual_hours,
    status_after_reconcile,
    unconfirm_day,
)
from shiftpay_kernel.domain.clock import Clock, SystemClock
from shiftpay_kernel.domain.values import to_decimal
from shiftpay_kernel.exceptions import ModifiedDaysOverwriteError
from shiftpay_kernel.logging_config import LogContext, get_logger
from shiftpay_modules._service_helpers import (
    ReviewListener,
    check_revision,
    current_status,
    ensure_unlocked,
    notify_listeners,
    require_transition,
)
from shiftpay_modules.payroll.store import SqlPayrollLedgerStore
from shiftpay_modules.worktime.models import (
    ReconciliationDay,
    ReconciliationSummary,
    ReviewChange,
    ReviewKey,
    ReviewStatus,
    ReviewStatusRecord,
    ScheduleEntry,
    WritePath,
)
from shiftpay_modules.worktime.store import (
    SqlReconciliationStore,
    SqlReviewStatusStore,
    SqlScheduleStore,
)
from shiftpay_modules.worktime.workflows import DAY_REVIEW_WORKFLOW, REVIEW_WORKFLOW

logger = get_logger("modules.worktime.service")


class WorkTimeReviewService:
    """
    Reconciliation and review of one employee's month at one branch.

    Contract
    --------
    * Mutations return the updated domain objects.
    * Read methods never write.

    Non-goals
    ---------
    * Does NOT confirm payroll (see ``PayrollService``).
    * Does NOT resolve employee or branch names; schedules carry them.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        listeners: Iterable[ReviewListener] = (),
        rates: PayrollRates | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._listeners = tuple(listeners)
        self._policy = (rates or PayrollRates()).reconciliation

        self._schedules = SqlScheduleStore(session)
        self._days = SqlReconciliationStore(session)
        self._statuses = SqlReviewStatusStore(session)
        self._ledger = SqlPayrollLedgerStore(session)

    # =========================================================================
    # Schedules
    # =========================================================================

    def record_schedule(self, entry: ScheduleEntry, actor_id: UUID) -> ScheduleEntry:
        """Store one planned shift."""
        try:
            saved = self._schedules.add_schedule(entry, actor_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info(
            "schedule_recorded",
            extra={
                "employee_id": entry.employee_id,
                "branch_id": entry.branch_id,
                "work_date": entry.work_date.isoformat(),
            },
        )
        return saved

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def reconcile_month(
        self,
        key: ReviewKey,
        attendance_text: str,
        actor_id: UUID,
        overwrite_modified: bool = False,
        expected_revision: int | None = None,
    ) -> list[ReconciliationDay]:
        """
        Parse pasted attendance, reconcile it against the key's schedules
        and replace the stored day-set.

        Raises:
            PayrollLockedError: The key has a confirmed payroll.
            ModifiedDaysOverwriteError: Edited days exist and
                ``overwrite_modified`` is False.
        """
        with LogContext.bind(
            actor_id=actor_id,
            employee_id=key.employee_id,
            branch_id=key.branch_id,
            month=key.month_str,
        ):
            logger.info("reconcile_month_started", extra={"text_length": len(attendance_text)})
            try:
                ensure_unlocked(self._ledger, key)
                record = self._statuses.get_status(key, for_update=True)
                check_revision(key, record, expected_revision)

                modified = [d for d in self._days.list_days(key) if d.is_modified]
                if modified and not overwrite_modified:
                    raise ModifiedDaysOverwriteError(
                        key.employee_id, key.branch_id, key.month_str, len(modified)
                    )

                schedules = self._schedules.list_schedules(key.employee_id, key.branch_id, key.month)
                attendance = parse_attendance_text(attendance_text)
                days = reconcile(key, schedules, attendance, self._policy)
                self._days.replace_days(key, days, actor_id)

                change = None
                if days:
                    previous = current_status(record)
                    transition = require_transition(REVIEW_WORKFLOW, previous.value, "reconcile")
                    change = self._write_status(
                        key,
                        previous,
                        status_after_reconcile(previous, len(days)),
                        transition.action,
                        WritePath(transition.write_path),
                        actor_id,
                    )
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning("reconcile_month_rolled_back", exc_info=True)
                raise

            logger.info(
                "reconcile_month_committed",
                extra={
                    "day_count": len(days),
                    "discarded_modified": len(modified),
                    "status": change.current.value if change else None,
                },
            )
        if change is not None:
            notify_listeners(self._listeners, change)
        return days

    # =========================================================================
    # Day-level review
    # =========================================================================

    def edit_actual_hours(
        self,
        key: ReviewKey,
        work_date: date,
        hours: Decimal | int | str | float,
        actor_id: UUID,
        expected_revision: int | None = None,
    ) -> ReconciliationDay:
        """Manual correction of one day's worked hours."""
        value = to_decimal(hours)
        return self._apply_day_action(
            key, work_date, "edit_hours", lambda d: edit_actual_hours(d, value),
            actor_id, expected_revision,
        )

    def confirm_day(
        self,
        key: ReviewKey,
        work_date: date,
        actor_id: UUID,
        expected_revision: int | None = None,
    ) -> ReconciliationDay:
        return self._apply_day_action(
            key, work_date, "confirm", confirm_day, actor_id, expected_revision
        )

    def copy_scheduled(
        self,
        key: ReviewKey,
        work_date: date,
        actor_id: UUID,
        expected_revision: int | None = None,
    ) -> ReconciliationDay:
        """Take the scheduled hours as the actual hours and confirm the day."""
        return self._apply_day_action(
            key, work_date, "copy_scheduled", copy_scheduled_hours, actor_id, expected_revision
        )

    def unconfirm_day(
        self,
        key: ReviewKey,
        work_date: date,
        actor_id: UUID,
        expected_revision: int | None = None,
    ) -> ReconciliationDay:
        return self._apply_day_action(
            key, work_date, "unconfirm", unconfirm_day, actor_id, expected_revision
        )

    def _apply_day_action(
        self,
        key: ReviewKey,
        work_date: date,
        action: str,
        edit: Callable[[ReconciliationDay], ReconciliationDay],
        actor_id: UUID,
        expected_revision: int | None,
    ) -> ReconciliationDay:
        with LogContext.bind(
            actor_id=actor_id,
            employee_id=key.employee_id,
            branch_id=key.branch_id,
            month=key.month_str,
        ):
            logger.info(
                "day_review_started",
                extra={"action": action, "work_date": work_date.isoformat()},
            )
            try:
                ensure_unlocked(self._ledger, key)
                record = self._statuses.get_status(key, for_update=True)
                check_revision(key, record, expected_revision)

                day = self._days.get_day(key, work_date)
                require_transition(DAY_REVIEW_WORKFLOW, day.status.value, action)
                updated = edit(day)
                self._days.update_day(updated, actor_id)

                # Coarse status follows the day tallies
                previous = current_status(record)
                derived = derive_review_status(self._days.list_days(key), previous)
                coarse_action = (
                    "days_settled" if derived is ReviewStatus.REVIEW_COMPLETE else "days_pending"
                )
                transition = require_transition(REVIEW_WORKFLOW, previous.value, coarse_action)
                change = self._write_status(
                    key,
                    previous,
                    ReviewStatus(transition.to_state),
                    action,
                    WritePath(transition.write_path),
                    actor_id,
                    work_date=work_date,
                )
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning(
                    "day_review_rolled_back",
                    extra={"action": action, "work_date": work_date.isoformat()},
                    exc_info=True,
                )
                raise

            logger.info(
                "day_review_committed",
                extra={
                    "action": action,
                    "work_date": work_date.isoformat(),
                    "day_status": updated.status.value,
                    "status": change.current.value,
                },
            )
        notify_listeners(self._listeners, change)
        return updated

    # =========================================================================
    # Whole-key overrides
    # =========================================================================

    def mark_complete(
        self, key: ReviewKey, actor_id: UUID, expected_revision: int | None = None
    ) -> ReviewStatusRecord:
        """Force the key to review_complete regardless of day tallies."""
        return self._apply_override(key, "mark_complete", actor_id, expected_revision)

    def reopen(
        self, key: ReviewKey, actor_id: UUID, expected_revision: int | None = None
    ) -> ReviewStatusRecord:
        """Undo a completed review: review_complete -> in_review."""
        return self._apply_override(key, "reopen", actor_id, expected_revision)

    def _apply_override(
        self, key: ReviewKey, action: str, actor_id: UUID, expected_revision: int | None
    ) -> ReviewStatusRecord:
        with LogContext.bind(
            actor_id=actor_id,
            employee_id=key.employee_id,
            branch_id=key.branch_id,
            month=key.month_str,
        ):
            logger.info("review_override_started", extra={"action": action})
            try:
                ensure_unlocked(self._ledger, key)
                record = self._statuses.get_status(key, for_update=True)
                check_revision(key, record, expected_revision)

                previous = current_status(record)
                transition = require_transition(REVIEW_WORKFLOW, previous.value, action)
                change = self._write_status(
                    key,
                    previous,
                    ReviewStatus(transition.to_state),
                    action,
                    WritePath(transition.write_path),
                    actor_id,
                )
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning(
                    "review_override_rolled_back", extra={"action": action}, exc_info=True
                )
                raise

            logger.info(
                "review_override_committed",
                extra={"action": action, "status": change.current.value},
            )
        notify_listeners(self._listeners, change)
        return self._statuses.get_status(key)

    def _write_status(
        self,
        key: ReviewKey,
        previous: ReviewStatus,
        status: ReviewStatus,
        action: str,
        write_path: WritePath,
        actor_id: UUID,
        work_date: date | None = None,
    ) -> ReviewChange:
        now = self._clock.now()
        saved = self._statuses.set_status(key, status, write_path, actor_id, now)
        return ReviewChange(
            key=key,
            action=action,
            previous=previous,
            current=saved.status,
            write_path=write_path,
            revision=saved.revision,
            occurred_at=now,
            work_date=work_date,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_review_status(self, key: ReviewKey) -> ReviewStatus:
        """
        Effective status of the key.

        A confirmed payroll wins over any stored row; a missing row is
        ``not_started``.
        """
        if self._ledger.exists(key):
            return ReviewStatus.PAYROLL_CONFIRMED
        return current_status(self._statuses.get_status(key))

    def get_status_record(self, key: ReviewKey) -> ReviewStatusRecord | None:
        """Stored status row including its revision, for optimistic writes."""
        return self._statuses.get_status(key)

    def is_locked(self, key: ReviewKey) -> bool:
        return self._ledger.exists(key)

    def list_days(self, key: ReviewKey) -> list[ReconciliationDay]:
        return self._days.list_days(key)

    def summary(self, key: ReviewKey) -> ReconciliationSummary:
        return summarize_days(self._days.list_days(key))
