"""
Work-time ORM Persistence Models (``shiftpay_modules.worktime.orm``).

Responsibility:
    SQLAlchemy ORM models that persist the frozen dataclass DTOs defined in
    ``shiftpay_modules.worktime.models``.  Each ORM class mirrors a DTO and
    provides ``to_dto()`` / ``from_dto()`` round-trip conversion.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK, auto-generated), created_at, updated_at,
    created_by_id (NOT NULL UUID), updated_by_id (nullable UUID).

Invariants enforced:
    - Hour fields use HoursDecimal (exact decimal text) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - The review key is (employee_id, branch_id, month) with month as
      "YYYY-MM"; one reconciliation day per key and date, one review status
      row per key.
"""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, Index, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import HoursDecimal, TrackedBase

# ---------------------------------------------------------------------------
# ScheduleEntryModel
# ---------------------------------------------------------------------------


class ScheduleEntryModel(TrackedBase):
    """
    ORM model for ``ScheduleEntry`` -- one planned shift.

    Employee and branch names are denormalized at creation time so a later
    rename or deletion does not break reconciliation or display.
    """

    __tablename__ = "schedule_entries"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    branch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    break_hours: Mapped[Decimal] = mapped_column(
        HoursDecimal(), nullable=False, default=Decimal("0")
    )
    employee_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    branch_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        Index("idx_schedule_employee_date", "employee_id", "work_date"),
        Index("idx_schedule_branch_date", "branch_id", "work_date"),
    )

    def to_dto(self):
        from shiftpay_modules.worktime.models import ScheduleEntry
        return ScheduleEntry(
            id=self.id,
            employee_id=self.employee_id,
            branch_id=self.branch_id,
            work_date=self.work_date,
            start_time=self.start_time,
            end_time=self.end_time,
            break_hours=self.break_hours,
            employee_name=self.employee_name,
            branch_name=self.branch_name,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ScheduleEntryModel":
        return cls(
            id=dto.id,
            employee_id=dto.employee_id,
            branch_id=dto.branch_id,
            work_date=dto.work_date,
            start_time=dto.start_time,
            end_time=dto.end_time,
            break_hours=dto.break_hours,
            employee_name=dto.employee_name,
            branch_name=dto.branch_name,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ScheduleEntryModel {self.employee_id}@{self.branch_id} {self.work_date}>"


# ---------------------------------------------------------------------------
# ReconciliationDayModel
# ---------------------------------------------------------------------------


class ReconciliationDayModel(TrackedBase):
    """
    ORM model for ``ReconciliationDay``.

    Guarantees:
        - (employee_id, branch_id, month, work_date) is unique.
        - ``difference`` is stored for reporting queries and always equals
          ``actual_worked_hours - scheduled_hours``.
    """

    __tablename__ = "reconciliation_days"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    branch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_hours: Mapped[Decimal] = mapped_column(HoursDecimal(), nullable=False)
    scheduled_time_range: Mapped[str] = mapped_column(String(200), nullable=False)
    raw_actual_hours: Mapped[Decimal] = mapped_column(HoursDecimal(), nullable=False)
    actual_time_range: Mapped[str] = mapped_column(String(200), nullable=False)
    break_hours: Mapped[Decimal] = mapped_column(HoursDecimal(), nullable=False)
    actual_worked_hours: Mapped[Decimal] = mapped_column(HoursDecimal(), nullable=False)
    difference: Mapped[Decimal] = mapped_column(HoursDecimal(), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    is_modified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    employee_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    branch_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "branch_id", "month", "work_date",
            name="uq_reconciliation_day_key_date",
        ),
        Index("idx_reconciliation_day_employee_month", "employee_id", "month"),
    )

    def to_dto(self):
        from shiftpay_modules.worktime.models import DayStatus, ReconciliationDay
        return ReconciliationDay(
            employee_id=self.employee_id,
            branch_id=self.branch_id,
            month=self.month,
            work_date=self.work_date,
            scheduled_hours=self.scheduled_hours,
            scheduled_time_range=self.scheduled_time_range,
            raw_actual_hours=self.raw_actual_hours,
            actual_time_range=self.actual_time_range,
            break_hours=self.break_hours,
            actual_worked_hours=self.actual_worked_hours,
            status=DayStatus(self.status),
            is_modified=self.is_modified,
            employee_name=self.employee_name,
            branch_name=self.branch_name,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ReconciliationDayModel":
        return cls(
            employee_id=dto.employee_id,
            branch_id=dto.branch_id,
            month=dto.month,
            work_date=dto.work_date,
            scheduled_hours=dto.scheduled_hours,
            scheduled_time_range=dto.scheduled_time_range,
            raw_actual_hours=dto.raw_actual_hours,
            actual_time_range=dto.actual_time_range,
            break_hours=dto.break_hours,
            actual_worked_hours=dto.actual_worked_hours,
            difference=dto.difference,
            status=dto.status.value,
            is_modified=dto.is_modified,
            employee_name=dto.employee_name,
            branch_name=dto.branch_name,
            created_by_id=created_by_id,
        )

    def apply(self, dto, updated_by_id: UUID) -> None:
        """Copy the editable fields of *dto* onto this row."""
        self.actual_worked_hours = dto.actual_worked_hours
        self.difference = dto.difference
        self.status = dto.status.value
        self.is_modified = dto.is_modified
        self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return (
            f"<ReconciliationDayModel {self.employee_id}/{self.branch_id}/"
            f"{self.work_date} ({self.status})>"
        )


# ---------------------------------------------------------------------------
# ReviewStatusModel
# ---------------------------------------------------------------------------


class ReviewStatusModel(TrackedBase):
    """
    ORM model for ``ReviewStatusRecord`` -- the coarse status of one key.

    Contract:
        ``revision`` increases by one on every write and backs the optional
        optimistic check on review mutations.  ``write_path`` records whether
        the status was derived from days, forced by a reviewer, or set by the
        payroll ledger.
    """

    __tablename__ = "review_statuses"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    branch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    write_path: Mapped[str] = mapped_column(String(50), nullable=False)
    revision: Mapped[int] = mapped_column(nullable=False, default=0)
    status_changed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "branch_id", "month", name="uq_review_status_key"),
        Index("idx_review_status_branch_month", "branch_id", "month"),
    )

    def to_dto(self):
        from shiftpay_modules.worktime.models import (
            ReviewKey,
            ReviewStatus,
            ReviewStatusRecord,
            WritePath,
        )
        return ReviewStatusRecord(
            key=ReviewKey(self.employee_id, self.branch_id, self.month),
            status=ReviewStatus(self.status),
            write_path=WritePath(self.write_path),
            revision=self.revision,
            updated_at=self.status_changed_at,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ReviewStatusModel":
        return cls(
            employee_id=dto.key.employee_id,
            branch_id=dto.key.branch_id,
            month=dto.key.month_str,
            status=dto.status.value,
            write_path=dto.write_path.value,
            revision=dto.revision,
            status_changed_at=dto.updated_at,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<ReviewStatusModel {self.employee_id}/{self.branch_id}/{self.month}: "
            f"{self.status} r{self.revision}>"
        )
