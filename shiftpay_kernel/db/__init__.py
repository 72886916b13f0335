"""Database layer - engine, base classes and immutability listeners."""

from shiftpay_kernel.db.base import UUID, Base, HoursDecimal, TrackedBase, UUIDString
from shiftpay_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "HoursDecimal",
    "UUIDString",
    "UUID",
]
