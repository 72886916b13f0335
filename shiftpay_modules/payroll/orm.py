"""
Payroll ORM Persistence Models (``shiftpay_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models for the employment contracts the payroll engine
    reads and for the confirmed payroll ledger it writes.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models in
    ``shiftpay_modules.payroll.models``.  Inherits from ``TrackedBase``.

Invariants enforced:
    - Money fields use Decimal (Numeric) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - At most one confirmed payroll per (employee_id, branch_id, month).
    - Confirmed payroll rows are never updated (see db/immutability.py).

Audit relevance:
    ``confirmed_payrolls`` is the ledger of what was paid.  The full
    calculation result is stored as a JSON snapshot alongside its SHA-256
    hash and the hash of the day-set it was computed from.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import TrackedBase

# ---------------------------------------------------------------------------
# EmploymentContractModel
# ---------------------------------------------------------------------------


class EmploymentContractModel(TrackedBase):
    """
    ORM model for ``EmployeeCompensationConfig`` -- one contract version.

    Contract:
        An employee may have several contracts; the one in force for a month
        is the most recent whose ``effective_from`` is on or before the
        month's last day.
    """

    __tablename__ = "employment_contracts"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    employment_category: Mapped[str] = mapped_column(String(50), nullable=False)
    salary_type: Mapped[str] = mapped_column(String(50), nullable=False)
    hourly_wage: Mapped[Decimal | None] = mapped_column(nullable=True)
    monthly_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    probation_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    probation_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    weekly_holiday_included: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    weekly_contracted_workdays: Mapped[int] = mapped_column(nullable=False, default=5)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index("idx_contract_employee_effective", "employee_id", "effective_from"),
    )

    def to_dto(self):
        from shiftpay_modules.payroll.models import (
            EmployeeCompensationConfig,
            EmploymentCategory,
            SalaryType,
        )
        return EmployeeCompensationConfig(
            employee_id=self.employee_id,
            employment_category=EmploymentCategory(self.employment_category),
            salary_type=SalaryType(self.salary_type),
            hourly_wage=self.hourly_wage,
            monthly_salary=self.monthly_salary,
            probation_start=self.probation_start,
            probation_end=self.probation_end,
            weekly_holiday_included=self.weekly_holiday_included,
            weekly_contracted_workdays=self.weekly_contracted_workdays,
            effective_from=self.effective_from,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "EmploymentContractModel":
        if dto.effective_from is None:
            raise ValueError(f"Contract for {dto.employee_id} needs effective_from")
        return cls(
            employee_id=dto.employee_id,
            employment_category=dto.employment_category.value,
            salary_type=dto.salary_type.value,
            hourly_wage=dto.hourly_wage,
            monthly_salary=dto.monthly_salary,
            probation_start=dto.probation_start,
            probation_end=dto.probation_end,
            weekly_holiday_included=dto.weekly_holiday_included,
            weekly_contracted_workdays=dto.weekly_contracted_workdays,
            effective_from=dto.effective_from,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<EmploymentContractModel {self.employee_id} "
            f"{self.salary_type} from {self.effective_from}>"
        )


# ---------------------------------------------------------------------------
# ConfirmedPayrollModel
# ---------------------------------------------------------------------------


class ConfirmedPayrollModel(TrackedBase):
    """
    ORM model for ``ConfirmedPayroll`` -- the payroll ledger entry.

    Guarantees:
        - (employee_id, branch_id, month) is unique.
        - ``snapshot`` round-trips to ``PayrollCalculationResult``.
        - ``gross_pay`` / ``net_pay`` are copied out of the snapshot for
          reporting queries.
    """

    __tablename__ = "confirmed_payrolls"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    branch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    snapshot_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    source_days_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)
    confirmed_at: Mapped[datetime] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "branch_id", "month", name="uq_confirmed_payroll_key"),
        Index("idx_confirmed_payroll_branch_month", "branch_id", "month"),
    )

    def to_dto(self):
        from shiftpay_modules.payroll.models import ConfirmedPayroll, PayrollCalculationResult
        return ConfirmedPayroll(
            id=self.id,
            employee_id=self.employee_id,
            branch_id=self.branch_id,
            month=self.month,
            result=PayrollCalculationResult.from_snapshot(self.snapshot),
            confirmed_at=self.confirmed_at,
            confirmed_by=self.created_by_id,
            snapshot_hash=self.snapshot_hash,
            source_days_hash=self.source_days_hash,
        )

    @classmethod
    def from_dto(cls, dto) -> "ConfirmedPayrollModel":
        return cls(
            id=dto.id,
            employee_id=dto.employee_id,
            branch_id=dto.branch_id,
            month=dto.month,
            snapshot=dto.result.to_snapshot(),
            snapshot_hash=dto.snapshot_hash,
            source_days_hash=dto.source_days_hash,
            gross_pay=dto.result.gross_pay,
            net_pay=dto.result.net_pay,
            confirmed_at=dto.confirmed_at,
            created_by_id=dto.confirmed_by,
        )

    def __repr__(self) -> str:
        return (
            f"<ConfirmedPayrollModel {self.employee_id}/{self.branch_id}/{self.month} "
            f"net={self.net_pay}>"
        )
