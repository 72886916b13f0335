"""
Canonical workflow types (``shiftpay_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for state machines.  The review lifecycle of an
(employee, branch, month) key and the per-day review lifecycle are both
declared with these types, so the allowed transitions live in data and the
service only asks "is this action valid from here?".

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Descriptive only; the service evaluates the condition.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``write_path`` records how the resulting state was reached: ``derived``
    when it follows from the day tallies, ``override`` when a reviewer forced
    it, ``ledger`` when payroll confirmation drove it.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    write_path: str = "derived"


@dataclass(frozen=True)
class Workflow:
    """A state machine definition.

    Guarantees: ``initial_state`` is a member of ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state '{self.initial_state}' not in states"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition '{t.action}' "
                    f"references unknown state"
                )

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        """Return the transition for *action* out of *from_state*, if declared."""
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def allowed_actions(self, from_state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == from_state)
