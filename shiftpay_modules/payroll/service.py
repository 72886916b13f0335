"""
Payroll Module Service (``shiftpay_modules.payroll.service``).

Responsibility
--------------
Calculates an employee's monthly payroll from the reviewed reconciliation
days and the contract in force, and keeps the confirmation ledger: confirm
stores an immutable snapshot and locks the key; un-confirm removes it and
hands the key back to review.

Architecture position
---------------------
**Modules layer** -- thin application glue over
``shiftpay_engines.payroll_calculator`` and the payroll / work-time stores.

Invariants enforced
-------------------
* Each public mutating method owns the transaction boundary.
* Payroll counts only days of branches whose review is ``review_complete``
  or ``payroll_confirmed``.
* Confirm requires the key's status to be ``review_complete`` and no
  existing snapshot; it sets ``payroll_confirmed`` through the ledger path.
* Un-confirm deletes the snapshot and resets the status to
  ``review_complete``, never further back.
* The status row is written before the snapshot is inserted and after it
  is deleted, so the ORM lock listeners never see a locked key mid-write.

Failure modes
-------------
* No contract for the month -> ``CompensationConfigNotFoundError``.
* No active rate set for the month -> ``RateSetNotFoundError``.
* Confirm twice -> ``PayrollAlreadyConfirmedError``.
* Confirm before review completes -> ``ReviewIncompleteError``.
* Un-confirm with nothing confirmed -> ``PayrollNotConfirmedError``.

Audit relevance
---------------
Every snapshot carries the SHA-256 of its canonical JSON and of the
day-set it was computed from, plus the confirming actor and time.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from shiftpay_config import get_active_rates
from shiftpay_config.schema import PayrollRates
from shiftpay_engines.payroll_calculator import calculate_payroll
from shiftpay_kernel.domain.clock import Clock, SystemClock
from shiftpay_kernel.domain.values import ZERO, MonthKey
from shiftpay_kernel.exceptions import (
    CompensationConfigNotFoundError,
    PayrollAlreadyConfirmedError,
    PayrollNotConfirmedError,
    ReviewIncompleteError,
)
from shiftpay_kernel.logging_config import LogContext, get_logger
from shiftpay_kernel.utils.hashing import hash_day_set, hash_payload
from shiftpay_modules._service_helpers import (
    ReviewListener,
    current_status,
    notify_listeners,
    require_transition,
)
from shiftpay_modules.payroll.models import (
    ConfirmedPayroll,
    PayrollCalculationResult,
    PayrollProgress,
    PayrollProgressStatus,
)
from shiftpay_modules.payroll.store import SqlContractStore, SqlPayrollLedgerStore
from shiftpay_modules.worktime.models import (
    ReconciliationDay,
    ReviewChange,
    ReviewKey,
    ReviewStatus,
    WritePath,
)
from shiftpay_modules.worktime.store import SqlReconciliationStore, SqlReviewStatusStore
from shiftpay_modules.worktime.workflows import REVIEW_WORKFLOW

logger = get_logger("modules.payroll.service")

_FINALIZED = frozenset({ReviewStatus.REVIEW_COMPLETE, ReviewStatus.PAYROLL_CONFIRMED})


def _day_rows(days: Sequence[ReconciliationDay]) -> list[dict]:
    return [
        {
            "branch_id": d.branch_id,
            "work_date": d.work_date,
            "scheduled_hours": d.scheduled_hours,
            "actual_worked_hours": d.actual_worked_hours,
            "status": d.status,
        }
        for d in days
    ]


class PayrollService:
    """
    Payroll calculation and the confirmation ledger.

    Contract
    --------
    * ``calculate`` is read-only and may be called any number of times.
    * ``confirm`` / ``unconfirm`` commit on success and roll back on error.

    Non-goals
    ---------
    * Does NOT pay anyone or post accounting entries.
    * Does NOT derive weekly-holiday carry-over across months; callers pass
      it explicitly.
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
        self._rates = rates

        self._contracts = SqlContractStore(session)
        self._ledger = SqlPayrollLedgerStore(session)
        self._days = SqlReconciliationStore(session)
        self._statuses = SqlReviewStatusStore(session)

    def _rates_for(self, month: MonthKey) -> PayrollRates:
        if self._rates is not None:
            return self._rates
        return get_active_rates(month.first_day)

    def _open_branches(
        self, employee_id: str, month: MonthKey, branch_ids: Iterable[str]
    ) -> dict[str, ReviewStatus]:
        """Branches among *branch_ids* whose review is not finalized, with their status."""
        open_branches = {}
        for branch_id in sorted(set(branch_ids)):
            record = self._statuses.get_status(ReviewKey(employee_id, branch_id, month))
            status = current_status(record)
            if status not in _FINALIZED:
                open_branches[branch_id] = status
        return open_branches

    # =========================================================================
    # Calculation
    # =========================================================================

    def calculate(
        self,
        employee_id: str,
        month: MonthKey | str,
        *,
        branch_id: str | None = None,
        unpaid_leave_days: int | Decimal = 0,
        carryover_hours: Decimal = ZERO,
        coverage_end: date | None = None,
        branch_names: Mapping[str, str] | None = None,
    ) -> PayrollCalculationResult:
        """
        Calculate one employee's payroll for *month*.

        With ``branch_id`` only that branch's days count; otherwise every
        branch the employee worked at in the month is included.  Days of a
        branch whose review is still open are left out.
        """
        month = MonthKey.parse(month)
        config = self._contracts.get_config(employee_id, month)
        if config is None:
            raise CompensationConfigNotFoundError(employee_id, str(month))

        days = self._days.list_employee_days(employee_id, month)
        if branch_id is not None:
            days = [d for d in days if d.branch_id == branch_id]

        open_branches = self._open_branches(employee_id, month, {d.branch_id for d in days})
        if open_branches:
            logger.info(
                "payroll_open_branches_skipped",
                extra={
                    "employee_id": employee_id,
                    "month": str(month),
                    "open_branches": sorted(open_branches),
                },
            )
            days = [d for d in days if d.branch_id not in open_branches]

        return calculate_payroll(
            days,
            config,
            month,
            rates=self._rates_for(month),
            unpaid_leave_days=unpaid_leave_days,
            carryover_hours=carryover_hours,
            coverage_end=coverage_end,
            branch_names=branch_names,
        )

    # =========================================================================
    # Confirmation ledger
    # =========================================================================

    def confirm(
        self,
        key: ReviewKey,
        result: PayrollCalculationResult,
        actor_id: UUID,
    ) -> ConfirmedPayroll:
        """
        Lock the key with an immutable snapshot of *result*.

        Raises:
            PayrollAlreadyConfirmedError: A snapshot already exists.
            ReviewIncompleteError: The key is not ``review_complete``, or
                *result* includes hours from a branch still under review.
        """
        if result.employee_id != key.employee_id or result.month != key.month_str:
            raise ValueError(
                f"Result for {result.employee_id}/{result.month} does not belong to {key}"
            )

        with LogContext.bind(
            actor_id=actor_id,
            employee_id=key.employee_id,
            branch_id=key.branch_id,
            month=key.month_str,
        ):
            logger.info("payroll_confirm_started", extra={"net_pay": str(result.net_pay)})
            try:
                if self._ledger.exists(key):
                    raise PayrollAlreadyConfirmedError(
                        key.employee_id, key.branch_id, key.month_str
                    )
                record = self._statuses.get_status(key, for_update=True)
                previous = current_status(record)
                if previous is not ReviewStatus.REVIEW_COMPLETE:
                    raise ReviewIncompleteError(
                        key.employee_id, key.branch_id, key.month_str, previous.value
                    )
                other_branches = {b.branch_id for b in result.branch_hours} - {key.branch_id}
                open_branches = self._open_branches(key.employee_id, key.month, other_branches)
                if open_branches:
                    branch, status = min(open_branches.items())
                    raise ReviewIncompleteError(
                        key.employee_id, branch, key.month_str, status.value
                    )
                transition = require_transition(REVIEW_WORKFLOW, previous.value, "confirm_payroll")

                now = self._clock.now()
                saved_status = self._statuses.set_status(
                    key,
                    ReviewStatus(transition.to_state),
                    WritePath(transition.write_path),
                    actor_id,
                    now,
                )

                snapshot = result.to_snapshot()
                confirmed = self._ledger.add(
                    ConfirmedPayroll(
                        id=uuid4(),
                        employee_id=key.employee_id,
                        branch_id=key.branch_id,
                        month=key.month_str,
                        result=result,
                        confirmed_at=now,
                        confirmed_by=actor_id,
                        snapshot_hash=hash_payload(snapshot),
                        source_days_hash=hash_day_set(_day_rows(self._days.list_days(key))),
                    )
                )
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning("payroll_confirm_rolled_back", exc_info=True)
                raise

            logger.info(
                "payroll_confirm_committed",
                extra={
                    "snapshot_hash": confirmed.snapshot_hash,
                    "gross_pay": str(result.gross_pay),
                    "net_pay": str(result.net_pay),
                },
            )

        notify_listeners(
            self._listeners,
            ReviewChange(
                key=key,
                action=transition.action,
                previous=previous,
                current=saved_status.status,
                write_path=saved_status.write_path,
                revision=saved_status.revision,
                occurred_at=now,
            ),
        )
        return confirmed

    def unconfirm(self, key: ReviewKey, actor_id: UUID) -> None:
        """
        Remove the key's snapshot and return it to ``review_complete``.

        Raises:
            PayrollNotConfirmedError: Nothing is confirmed for the key.
        """
        with LogContext.bind(
            actor_id=actor_id,
            employee_id=key.employee_id,
            branch_id=key.branch_id,
            month=key.month_str,
        ):
            logger.info("payroll_unconfirm_started")
            try:
                if not self._ledger.delete(key):
                    raise PayrollNotConfirmedError(key.employee_id, key.branch_id, key.month_str)

                record = self._statuses.get_status(key, for_update=True)
                previous = current_status(record)
                transition = require_transition(
                    REVIEW_WORKFLOW, ReviewStatus.PAYROLL_CONFIRMED.value, "unconfirm_payroll"
                )
                now = self._clock.now()
                saved_status = self._statuses.set_status(
                    key,
                    ReviewStatus(transition.to_state),
                    WritePath(transition.write_path),
                    actor_id,
                    now,
                )
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning("payroll_unconfirm_rolled_back", exc_info=True)
                raise

            logger.info("payroll_unconfirm_committed")

        notify_listeners(
            self._listeners,
            ReviewChange(
                key=key,
                action=transition.action,
                previous=previous,
                current=saved_status.status,
                write_path=saved_status.write_path,
                revision=saved_status.revision,
                occurred_at=now,
            ),
        )

    def get_confirmed(self, key: ReviewKey) -> ConfirmedPayroll | None:
        return self._ledger.get(key)

    # =========================================================================
    # Progress overview
    # =========================================================================

    def progress(
        self,
        branch_id: str,
        month: MonthKey | str,
        employee_ids: Sequence[str],
    ) -> list[PayrollProgress]:
        """Where each employee's month stands at *branch_id*."""
        month = MonthKey.parse(month)
        confirmed = {c.employee_id for c in self._ledger.list_for_branch(branch_id, month)}
        statuses = {
            r.key.employee_id: r.status for r in self._statuses.list_statuses(branch_id, month)
        }

        overview = []
        for employee_id in employee_ids:
            if employee_id in confirmed:
                status = PayrollProgressStatus.PAYROLL_CONFIRMED
                review_status = ReviewStatus.PAYROLL_CONFIRMED
            else:
                review_status = statuses.get(employee_id, ReviewStatus.NOT_STARTED)
                if review_status is ReviewStatus.REVIEW_COMPLETE:
                    status = PayrollProgressStatus.WORKTIME_CONFIRMED
                else:
                    status = PayrollProgressStatus.UNPROCESSED
            overview.append(
                PayrollProgress(
                    employee_id=employee_id,
                    branch_id=branch_id,
                    month=str(month),
                    status=status,
                    review_status=review_status.value,
                )
            )
        return overview
