"""
Work-time Module (``shiftpay_modules.worktime``).

Responsibility
--------------
Reconciles planned shifts with pasted attendance per (employee, branch,
month) and carries the review of the result through to ``review_complete``.

Architecture position
---------------------
**Modules layer** -- models, workflows, ORM, stores and
``WorkTimeReviewService``.  Import the service from
``shiftpay_modules.worktime.service``.
"""

from shiftpay_modules.worktime.models import (
    NO_DATA,
    NO_SCHEDULE,
    AttendanceRecord,
    DayStatus,
    ReconciliationDay,
    ReconciliationSummary,
    ReviewChange,
    ReviewKey,
    ReviewStatus,
    ReviewStatusRecord,
    ScheduleEntry,
    WritePath,
)
from shiftpay_modules.worktime.workflows import DAY_REVIEW_WORKFLOW, REVIEW_WORKFLOW

__all__ = [
    "NO_DATA",
    "NO_SCHEDULE",
    "AttendanceRecord",
    "DayStatus",
    "ReconciliationDay",
    "ReconciliationSummary",
    "ReviewChange",
    "ReviewKey",
    "ReviewStatus",
    "ReviewStatusRecord",
    "ScheduleEntry",
    "WritePath",
    "DAY_REVIEW_WORKFLOW",
    "REVIEW_WORKFLOW",
]
