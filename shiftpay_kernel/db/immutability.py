"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

A confirmed payroll is the figure the branch pays out.  Once confirmed, the
snapshot and everything it was computed from (the reconciliation days and the
review status of its key) must not drift.  The review and payroll services
check the lock before every write and raise PayrollLockedError; this module is
the second line: it catches writes that bypass the services (scripts, ad-hoc
sessions) before the SQL reaches the database.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable                        | Operation blocked
--------------------|---------------------------------------|------------------
ConfirmedPayroll    | ALWAYS (from creation)                | UPDATE
ReconciliationDay   | While its key has a confirmed payroll | UPDATE, DELETE
ReviewStatus        | While its key has a confirmed payroll | UPDATE

ConfirmedPayroll rows may be DELETED: that is the un-confirm operation.
updated_at / updated_by_id are audit metadata and never count as a change.

===============================================================================
USAGE
===============================================================================

    from shiftpay_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

    # TESTS ONLY
    unregister_immutability_listeners()
"""

from sqlalchemy import event, exists, inspect, select

from shiftpay_kernel.exceptions import ImmutabilityViolationError
from shiftpay_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = ("updated_at", "updated_by_id")


def _changed_fields(target) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.attrs
        if attr.key not in _AUDIT_FIELDS and attr.history.has_changes()
    ]


def _key_is_confirmed(connection, employee_id: str, branch_id: str, month: str) -> bool:
    """True when a confirmed payroll row exists for the key."""
    from shiftpay_modules.payroll.orm import ConfirmedPayrollModel

    table = ConfirmedPayrollModel.__table__
    stmt = select(
        exists().where(
            table.c.employee_id == employee_id,
            table.c.branch_id == branch_id,
            table.c.month == month,
        )
    )
    return bool(connection.execute(stmt).scalar())


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_confirmed_payroll_immutability(mapper, connection, target):
    """Confirmed payroll snapshots are never updated, only deleted by un-confirm."""
    changed = _changed_fields(target)
    if changed:
        _block(
            "ConfirmedPayroll",
            target,
            "UPDATE",
            f"Cannot modify field '{changed[0]}' on a confirmed payroll",
            field=changed[0],
        )


def _check_reconciliation_day_lock(mapper, connection, target):
    if _key_is_confirmed(connection, target.employee_id, target.branch_id, target.month):
        _block(
            "ReconciliationDay",
            target,
            "UPDATE",
            "Reconciliation days of a confirmed payroll are locked",
        )


def _check_reconciliation_day_delete(mapper, connection, target):
    if _key_is_confirmed(connection, target.employee_id, target.branch_id, target.month):
        _block(
            "ReconciliationDay",
            target,
            "DELETE",
            "Reconciliation days of a confirmed payroll cannot be replaced",
        )


def _check_review_status_lock(mapper, connection, target):
    if _key_is_confirmed(connection, target.employee_id, target.branch_id, target.month):
        _block(
            "ReviewStatus",
            target,
            "UPDATE",
            "Review status of a confirmed payroll is locked",
        )


def _listeners():
    from shiftpay_modules.payroll.orm import ConfirmedPayrollModel
    from shiftpay_modules.worktime.orm import ReconciliationDayModel, ReviewStatusModel

    return (
        (ConfirmedPayrollModel, "before_update", _check_confirmed_payroll_immutability),
        (ReconciliationDayModel, "before_update", _check_reconciliation_day_lock),
        (ReconciliationDayModel, "before_delete", _check_reconciliation_day_delete),
        (ReviewStatusModel, "before_update", _check_review_status_lock),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call after the ORM models are importable and before database writes begin.
    Registering twice is a no-op.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that intentionally violate the lock.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
