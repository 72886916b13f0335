"""
Pure domain layer.

Value objects and state-machine definitions with NO dependencies on the ORM,
the database, the clock (except SystemClock) or any other I/O.
"""

from shiftpay_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from shiftpay_kernel.domain.values import (
    MonthKey,
    format_hours,
    format_signed_hours,
    round_currency,
)
from shiftpay_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "MonthKey",
    "round_currency",
    "format_hours",
    "format_signed_hours",
    "Guard",
    "Transition",
    "Workflow",
]
