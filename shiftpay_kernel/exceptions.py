"""
Typed Exception Hierarchy for the Shiftpay core.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (a UI layer, a batch job, tests) must be able to react to a blocked
action without parsing message text.  Every exception here has:
  1. a TYPED class (catch by type, not message)
  2. a CODE attribute (machine-readable, safe to return to a client)
  3. structured DATA (employee_id, branch_id, month, ...)

Example - RIGHT way:
    try:
        review_service.edit_actual_hours(key, work_date, hours, actor_id)
    except PayrollLockedError as e:
        show_message(code=e.code, month=e.month)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ShiftpayError (base)
    |
    +-- ReviewError
    |   +-- ReconciliationDayNotFoundError
    |   +-- ModifiedDaysOverwriteError
    |   +-- InvalidReviewTransitionError
    |
    +-- PayrollError
    |   +-- PayrollLockedError
    |   +-- ReviewIncompleteError
    |   +-- PayrollAlreadyConfirmedError
    |   +-- PayrollNotConfirmedError
    |   +-- CompensationConfigNotFoundError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigurationError
        +-- RateSetNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                          | When Raised
--------------|-------------------------------|---------------------------------------
Review        | RECONCILIATION_DAY_NOT_FOUND  | No stored day for key + date
              | MODIFIED_DAYS_OVERWRITE       | Re-run would discard manual edits
              | INVALID_REVIEW_TRANSITION     | Action not allowed from current state
--------------|-------------------------------|---------------------------------------
Payroll       | PAYROLL_LOCKED                | Key has a confirmed payroll snapshot
              | REVIEW_INCOMPLETE             | Confirm before review_complete
              | PAYROLL_ALREADY_CONFIRMED     | Second confirm without un-confirm
              | PAYROLL_NOT_CONFIRMED         | Un-confirm with nothing confirmed
              | COMPENSATION_CONFIG_NOT_FOUND | No contract effective for the month
--------------|-------------------------------|---------------------------------------
Concurrency   | OPTIMISTIC_LOCK_CONFLICT      | Review revision moved underneath us
--------------|-------------------------------|---------------------------------------
Immutability  | IMMUTABILITY_VIOLATION        | Update of a confirmed snapshot
--------------|-------------------------------|---------------------------------------
Configuration | RATE_SET_NOT_FOUND            | No rate set effective for the date

Parse-skips are never raised: malformed attendance lines are dropped by the
parser.  Missing wage data degrades to zero pay, not an error.
"""


class ShiftpayError(Exception):
    """
    Base exception for all shiftpay errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SHIFTPAY_ERROR"


# Review-related exceptions


class ReviewError(ShiftpayError):
    """Base exception for reconciliation review errors."""

    code: str = "REVIEW_ERROR"


class ReconciliationDayNotFoundError(ReviewError):
    """No stored reconciliation day exists for the key and date."""

    code: str = "RECONCILIATION_DAY_NOT_FOUND"

    def __init__(self, employee_id: str, branch_id: str, month: str, work_date: str):
        self.employee_id = employee_id
        self.branch_id = branch_id
        self.month = month
        self.work_date = work_date
        super().__init__(
            f"No reconciliation day for employee {employee_id} at branch "
            f"{branch_id} on {work_date} ({month})"
        )


class ModifiedDaysOverwriteError(ReviewError):
    """Re-running reconciliation would discard manually edited days."""

    code: str = "MODIFIED_DAYS_OVERWRITE"

    def __init__(self, employee_id: str, branch_id: str, month: str, modified_count: int):
        self.employee_id = employee_id
        self.branch_id = branch_id
        self.month = month
        self.modified_count = modified_count
        super().__init__(
            f"{modified_count} manually edited day(s) for employee {employee_id} "
            f"at branch {branch_id} ({month}) would be overwritten; "
            "pass overwrite_modified=True to confirm"
        )


class InvalidReviewTransitionError(ReviewError):
    """The requested action is not a valid transition from the current state."""

    code: str = "INVALID_REVIEW_TRANSITION"

    def __init__(self, from_state: str, action: str):
        self.from_state = from_state
        self.action = action
        super().__init__(f"Action '{action}' is not allowed from state '{from_state}'")


# Payroll-related exceptions


class PayrollError(ShiftpayError):
    """Base exception for payroll errors."""

    code: str = "PAYROLL_ERROR"


class PayrollLockedError(PayrollError):
    """The key has a confirmed payroll; no edits or transitions are allowed."""

    code: str = "PAYROLL_LOCKED"

    def __init__(self, employee_id: str, branch_id: str, month: str):
        self.employee_id = employee_id
        self.branch_id = branch_id
        self.month = month
        super().__init__(
            f"Payroll for employee {employee_id} at branch {branch_id} ({month}) "
            "is confirmed; un-confirm it before editing"
        )


class ReviewIncompleteError(PayrollError):
    """Payroll confirmation attempted before the review reached review_complete."""

    code: str = "REVIEW_INCOMPLETE"

    def __init__(self, employee_id: str, branch_id: str, month: str, current_status: str):
        self.employee_id = employee_id
        self.branch_id = branch_id
        self.month = month
        self.current_status = current_status
        super().__init__(
            f"Review for employee {employee_id} at branch {branch_id} ({month}) "
            f"is '{current_status}', not 'review_complete'"
        )


class PayrollAlreadyConfirmedError(PayrollError):
    """A confirmed payroll already exists for the key."""

    code: str = "PAYROLL_ALREADY_CONFIRMED"

    def __init__(self, employee_id: str, branch_id: str, month: str):
        self.employee_id = employee_id
        self.branch_id = branch_id
        self.month = month
        super().__init__(
            f"Payroll for employee {employee_id} at branch {branch_id} ({month}) "
            "is already confirmed"
        )


class PayrollNotConfirmedError(PayrollError):
    """Un-confirm requested for a key without a confirmed payroll."""

    code: str = "PAYROLL_NOT_CONFIRMED"

    def __init__(self, employee_id: str, branch_id: str, month: str):
        self.employee_id = employee_id
        self.branch_id = branch_id
        self.month = month
        super().__init__(
            f"No confirmed payroll for employee {employee_id} at branch "
            f"{branch_id} ({month})"
        )


class CompensationConfigNotFoundError(PayrollError):
    """No employment contract is effective for the employee in the month."""

    code: str = "COMPENSATION_CONFIG_NOT_FOUND"

    def __init__(self, employee_id: str, month: str):
        self.employee_id = employee_id
        self.month = month
        super().__init__(
            f"No employment contract for employee {employee_id} effective in {month}"
        )


# Concurrency-related exceptions


class ConcurrencyError(ShiftpayError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, expected: int, actual: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            f"expected revision {expected}, found {actual}"
        )


# Immutability-related exceptions


class ImmutabilityError(ShiftpayError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify an immutable record (confirmed payroll snapshot)."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration-related exceptions


class ConfigurationError(ShiftpayError):
    """Base exception for rate configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class RateSetNotFoundError(ConfigurationError):
    """No payroll rate set is effective for the requested date."""

    code: str = "RATE_SET_NOT_FOUND"

    def __init__(self, as_of: str, config_dir: str):
        self.as_of = as_of
        self.config_dir = config_dir
        super().__init__(f"No rate set effective on {as_of} in {config_dir}")
