"""
Work-time Stores (``shiftpay_modules.worktime.store``).

Responsibility
--------------
Boundary interfaces the review service reads and writes through, declared
as ``Protocol`` types, plus the SQLAlchemy implementations bundled with the
package.  The surrounding application may supply its own implementations.

Architecture position
---------------------
**Modules layer** -- persistence adapters.  Stores flush but never commit;
the calling service owns the transaction boundary.

Invariants enforced
-------------------
* ``replace_days`` is delete-then-insert of the whole day-set, never a
  merge.  Rows are deleted through the ORM so lock listeners fire.
* Every ``set_status`` increments ``revision`` by one.
* ``get_status(..., for_update=True)`` locks the status row
  (``SELECT ... FOR UPDATE``) so writes to one key serialize.

Failure modes
-------------
* ``update_day`` for a date with no row -> ``ReconciliationDayNotFoundError``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftpay_kernel.domain.values import MonthKey
from shiftpay_kernel.exceptions import ReconciliationDayNotFoundError
from shiftpay_kernel.logging_config import get_logger
from shiftpay_modules.worktime.models import (
    ReconciliationDay,
    ReviewKey,
    ReviewStatus,
    ReviewStatusRecord,
    ScheduleEntry,
    WritePath,
)
from shiftpay_modules.worktime.orm import (
    ReconciliationDayModel,
    ReviewStatusModel,
    ScheduleEntryModel,
)

logger = get_logger("modules.worktime.store")


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class ScheduleReader(Protocol):
    """Planned shifts for one employee, optionally one branch, in a month."""

    def list_schedules(
        self, employee_id: str, branch_id: str | None, month: MonthKey
    ) -> list[ScheduleEntry]:
        ...


@runtime_checkable
class ReconciliationStore(Protocol):

    def replace_days(
        self, key: ReviewKey, days: Sequence[ReconciliationDay], actor_id: UUID
    ) -> None:
        """Replace the key's full day-set."""
        ...

    def list_days(self, key: ReviewKey) -> list[ReconciliationDay]:
        ...

    def list_employee_days(self, employee_id: str, month: MonthKey) -> list[ReconciliationDay]:
        """All of an employee's days for the month, across branches."""
        ...

    def update_day(self, day: ReconciliationDay, actor_id: UUID) -> None:
        """Write back the editable fields of one day.

        Raises:
            ReconciliationDayNotFoundError: No row for the day's key and date.
        """
        ...


@runtime_checkable
class ReviewStatusStore(Protocol):

    def get_status(self, key: ReviewKey, for_update: bool = False) -> ReviewStatusRecord | None:
        ...

    def set_status(
        self,
        key: ReviewKey,
        status: ReviewStatus,
        write_path: WritePath,
        actor_id: UUID,
        changed_at: datetime,
    ) -> ReviewStatusRecord:
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementations
# ---------------------------------------------------------------------------


class SqlScheduleStore:
    """Schedule store backed by ``schedule_entries``."""

    def __init__(self, session: Session):
        self._session = session

    def list_schedules(
        self, employee_id: str, branch_id: str | None, month: MonthKey
    ) -> list[ScheduleEntry]:
        stmt = select(ScheduleEntryModel).where(
            ScheduleEntryModel.employee_id == employee_id,
            ScheduleEntryModel.work_date >= month.first_day,
            ScheduleEntryModel.work_date <= month.last_day,
        )
        if branch_id is not None:
            stmt = stmt.where(ScheduleEntryModel.branch_id == branch_id)
        stmt = stmt.order_by(ScheduleEntryModel.work_date, ScheduleEntryModel.start_time)
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def add_schedule(self, entry: ScheduleEntry, actor_id: UUID) -> ScheduleEntry:
        model = ScheduleEntryModel.from_dto(entry, created_by_id=actor_id)
        self._session.add(model)
        self._session.flush()
        return model.to_dto()


class SqlReconciliationStore:
    """Reconciliation day store backed by ``reconciliation_days``."""

    def __init__(self, session: Session):
        self._session = session

    def _select_key(self, key: ReviewKey):
        return select(ReconciliationDayModel).where(
            ReconciliationDayModel.employee_id == key.employee_id,
            ReconciliationDayModel.branch_id == key.branch_id,
            ReconciliationDayModel.month == key.month_str,
        )

    def replace_days(
        self, key: ReviewKey, days: Sequence[ReconciliationDay], actor_id: UUID
    ) -> None:
        existing = list(self._session.scalars(self._select_key(key)))
        for model in existing:
            self._session.delete(model)
        # Old rows must be gone before the unique (key, date) rows come back
        self._session.flush()

        for day in days:
            self._session.add(ReconciliationDayModel.from_dto(day, created_by_id=actor_id))
        self._session.flush()

        logger.debug(
            "reconciliation_days_replaced",
            extra={
                "review_key": str(key),
                "deleted": len(existing),
                "inserted": len(days),
            },
        )

    def list_days(self, key: ReviewKey) -> list[ReconciliationDay]:
        stmt = self._select_key(key).order_by(ReconciliationDayModel.work_date)
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def list_employee_days(self, employee_id: str, month: MonthKey) -> list[ReconciliationDay]:
        stmt = (
            select(ReconciliationDayModel)
            .where(
                ReconciliationDayModel.employee_id == employee_id,
                ReconciliationDayModel.month == str(month),
            )
            .order_by(ReconciliationDayModel.work_date, ReconciliationDayModel.branch_id)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def get_day(self, key: ReviewKey, work_date: date) -> ReconciliationDay:
        return self._get_model(key, work_date).to_dto()

    def _get_model(self, key: ReviewKey, work_date: date) -> ReconciliationDayModel:
        model = self._session.scalars(
            self._select_key(key).where(ReconciliationDayModel.work_date == work_date)
        ).one_or_none()
        if model is None:
            raise ReconciliationDayNotFoundError(
                key.employee_id, key.branch_id, key.month_str, work_date.isoformat()
            )
        return model

    def update_day(self, day: ReconciliationDay, actor_id: UUID) -> None:
        model = self._get_model(day.key, day.work_date)
        model.apply(day, updated_by_id=actor_id)
        self._session.flush()


class SqlReviewStatusStore:
    """Review status store backed by ``review_statuses``."""

    def __init__(self, session: Session):
        self._session = session

    def _get_model(self, key: ReviewKey, for_update: bool) -> ReviewStatusModel | None:
        stmt = select(ReviewStatusModel).where(
            ReviewStatusModel.employee_id == key.employee_id,
            ReviewStatusModel.branch_id == key.branch_id,
            ReviewStatusModel.month == key.month_str,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.scalars(stmt).one_or_none()

    def get_status(self, key: ReviewKey, for_update: bool = False) -> ReviewStatusRecord | None:
        model = self._get_model(key, for_update)
        return model.to_dto() if model is not None else None

    def list_statuses(self, branch_id: str, month: MonthKey) -> list[ReviewStatusRecord]:
        stmt = select(ReviewStatusModel).where(
            ReviewStatusModel.branch_id == branch_id,
            ReviewStatusModel.month == str(month),
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def set_status(
        self,
        key: ReviewKey,
        status: ReviewStatus,
        write_path: WritePath,
        actor_id: UUID,
        changed_at: datetime,
    ) -> ReviewStatusRecord:
        model = self._get_model(key, for_update=True)
        if model is None:
            model = ReviewStatusModel.from_dto(
                ReviewStatusRecord(
                    key=key,
                    status=status,
                    write_path=write_path,
                    revision=1,
                    updated_at=changed_at,
                ),
                created_by_id=actor_id,
            )
            self._session.add(model)
        else:
            model.status = status.value
            model.write_path = write_path.value
            model.revision = model.revision + 1
            model.status_changed_at = changed_at
            model.updated_by_id = actor_id
        self._session.flush()
        return model.to_dto()
