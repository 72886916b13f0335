"""
Payroll Stores (``shiftpay_modules.payroll.store``).

Responsibility
--------------
Read access to compensation contracts and read/write access to the
confirmed payroll ledger, as ``Protocol`` boundaries with SQLAlchemy
implementations.

Architecture position
---------------------
**Modules layer** -- persistence adapters.  Stores flush but never commit.

Invariants enforced
-------------------
* The contract in force for a month is the latest ``effective_from`` on or
  before the month's last day.
* Ledger rows are added and deleted, never updated.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftpay_kernel.domain.values import MonthKey
from shiftpay_modules.payroll.models import ConfirmedPayroll, EmployeeCompensationConfig
from shiftpay_modules.payroll.orm import ConfirmedPayrollModel, EmploymentContractModel
from shiftpay_modules.worktime.models import ReviewKey


@runtime_checkable
class CompensationConfigReader(Protocol):

    def get_config(
        self, employee_id: str, month: MonthKey
    ) -> EmployeeCompensationConfig | None:
        """Most recent contract in force as of *month*, or None."""
        ...


@runtime_checkable
class PayrollLedgerStore(Protocol):

    def get(self, key: ReviewKey) -> ConfirmedPayroll | None:
        ...

    def exists(self, key: ReviewKey) -> bool:
        ...

    def add(self, confirmed: ConfirmedPayroll) -> ConfirmedPayroll:
        ...

    def delete(self, key: ReviewKey) -> bool:
        """Remove the key's snapshot; False when there was none."""
        ...


class SqlContractStore:
    """Contract store backed by ``employment_contracts``."""

    def __init__(self, session: Session):
        self._session = session

    def get_config(
        self, employee_id: str, month: MonthKey
    ) -> EmployeeCompensationConfig | None:
        stmt = (
            select(EmploymentContractModel)
            .where(
                EmploymentContractModel.employee_id == employee_id,
                EmploymentContractModel.effective_from <= month.last_day,
            )
            .order_by(EmploymentContractModel.effective_from.desc())
            .limit(1)
        )
        model = self._session.scalars(stmt).first()
        return model.to_dto() if model is not None else None

    def add_contract(
        self, config: EmployeeCompensationConfig, actor_id: UUID
    ) -> EmployeeCompensationConfig:
        model = EmploymentContractModel.from_dto(config, created_by_id=actor_id)
        self._session.add(model)
        self._session.flush()
        return model.to_dto()


class SqlPayrollLedgerStore:
    """Ledger store backed by ``confirmed_payrolls``."""

    def __init__(self, session: Session):
        self._session = session

    def _get_model(self, key: ReviewKey) -> ConfirmedPayrollModel | None:
        stmt = select(ConfirmedPayrollModel).where(
            ConfirmedPayrollModel.employee_id == key.employee_id,
            ConfirmedPayrollModel.branch_id == key.branch_id,
            ConfirmedPayrollModel.month == key.month_str,
        )
        return self._session.scalars(stmt).one_or_none()

    def get(self, key: ReviewKey) -> ConfirmedPayroll | None:
        model = self._get_model(key)
        return model.to_dto() if model is not None else None

    def exists(self, key: ReviewKey) -> bool:
        return self._get_model(key) is not None

    def list_for_branch(self, branch_id: str, month: MonthKey) -> list[ConfirmedPayroll]:
        stmt = select(ConfirmedPayrollModel).where(
            ConfirmedPayrollModel.branch_id == branch_id,
            ConfirmedPayrollModel.month == str(month),
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def add(self, confirmed: ConfirmedPayroll) -> ConfirmedPayroll:
        model = ConfirmedPayrollModel.from_dto(confirmed)
        self._session.add(model)
        self._session.flush()
        return model.to_dto()

    def delete(self, key: ReviewKey) -> bool:
        model = self._get_model(key)
        if model is None:
            return False
        self._session.delete(model)
        self._session.flush()
        return True
