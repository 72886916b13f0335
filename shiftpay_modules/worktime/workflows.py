"""Work-time Review Workflows.

State machines for the coarse review status of an (employee, branch, month)
key and for the review status of a single reconciliation day.
"""

from shiftpay_kernel.domain.workflow import Guard, Transition, Workflow
from shiftpay_kernel.logging_config import get_logger

logger = get_logger("modules.worktime.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

NOT_PAYROLL_LOCKED = Guard(
    name="not_payroll_locked",
    description="No confirmed payroll snapshot exists for the key",
)

REVIEW_COMPLETE = Guard(
    name="review_complete",
    description="Coarse review status is review_complete",
)

PAYROLL_CONFIRMED = Guard(
    name="payroll_confirmed",
    description="A confirmed payroll snapshot exists for the key",
)


# -----------------------------------------------------------------------------
# Key Review Workflow
# -----------------------------------------------------------------------------

_OPEN_STATES = ("not_started", "in_review", "review_complete")


def _derived(action: str, to_state: str) -> tuple[Transition, ...]:
    """Recomputation from day tallies is allowed from every unlocked state."""
    return tuple(
        Transition(s, to_state, action=action, guard=NOT_PAYROLL_LOCKED, write_path="derived")
        for s in _OPEN_STATES
    )


REVIEW_WORKFLOW = Workflow(
    name="worktime_review",
    description="Review lifecycle of one employee/branch/month",
    initial_state="not_started",
    states=("not_started", "in_review", "review_complete", "payroll_confirmed"),
    transitions=(
        # Re-running comparison never reopens a completed review
        Transition("not_started", "in_review", action="reconcile", guard=NOT_PAYROLL_LOCKED),
        Transition("in_review", "in_review", action="reconcile", guard=NOT_PAYROLL_LOCKED),
        Transition("review_complete", "review_complete", action="reconcile", guard=NOT_PAYROLL_LOCKED),
        *_derived("days_settled", "review_complete"),
        *_derived("days_pending", "in_review"),
        Transition(
            "not_started", "review_complete",
            action="mark_complete", guard=NOT_PAYROLL_LOCKED, write_path="override",
        ),
        Transition(
            "in_review", "review_complete",
            action="mark_complete", guard=NOT_PAYROLL_LOCKED, write_path="override",
        ),
        Transition(
            "review_complete", "in_review",
            action="reopen", guard=NOT_PAYROLL_LOCKED, write_path="override",
        ),
        Transition(
            "review_complete", "payroll_confirmed",
            action="confirm_payroll", guard=REVIEW_COMPLETE, write_path="ledger",
        ),
        Transition(
            "payroll_confirmed", "review_complete",
            action="unconfirm_payroll", guard=PAYROLL_CONFIRMED, write_path="ledger",
        ),
    ),
)

logger.info(
    "worktime_review_workflow_registered",
    extra={
        "workflow_name": REVIEW_WORKFLOW.name,
        "state_count": len(REVIEW_WORKFLOW.states),
        "transition_count": len(REVIEW_WORKFLOW.transitions),
        "initial_state": REVIEW_WORKFLOW.initial_state,
    },
)


# -----------------------------------------------------------------------------
# Day Review Workflow
# -----------------------------------------------------------------------------

DAY_REVIEW_WORKFLOW = Workflow(
    name="reconciliation_day_review",
    description="Review lifecycle of one reconciliation day",
    initial_state="review_required",
    states=("time_match", "review_required", "review_completed"),
    transitions=(
        Transition("time_match", "review_completed", action="confirm"),
        Transition("review_required", "review_completed", action="confirm"),
        Transition("time_match", "review_completed", action="copy_scheduled"),
        Transition("review_required", "review_completed", action="copy_scheduled"),
        Transition("review_completed", "review_completed", action="copy_scheduled"),
        Transition("review_completed", "review_required", action="unconfirm"),
        # Editing hours leaves the day status where it is
        Transition("time_match", "time_match", action="edit_hours"),
        Transition("review_required", "review_required", action="edit_hours"),
        Transition("review_completed", "review_completed", action="edit_hours"),
    ),
)

logger.info(
    "day_review_workflow_registered",
    extra={
        "workflow_name": DAY_REVIEW_WORKFLOW.name,
        "state_count": len(DAY_REVIEW_WORKFLOW.states),
        "transition_count": len(DAY_REVIEW_WORKFLOW.transitions),
    },
)
