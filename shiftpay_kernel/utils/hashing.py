"""
Deterministic hashing utilities.

Confirmed payroll snapshots carry a SHA-256 of their canonical JSON so that a
stored snapshot can be checked against the figures it claims to hold, and a
fingerprint of the reconciliation days it was computed from.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for types not natively supported.

    Raises:
        TypeError: If object type is not supported.
    """
    if isinstance(obj, Decimal):
        # 7.0 and 7 must hash the same
        return str(obj.normalize())
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: dict | list | Any) -> str:
    """
    Convert data to canonical JSON string.

    Keys sorted, no whitespace, Decimal/date/UUID/Enum handled consistently.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
        ensure_ascii=False,
    )


def hash_payload(payload: dict) -> str:
    """Hex-encoded SHA-256 of the canonical JSON of *payload*."""
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def hash_day_set(rows: list[dict]) -> str:
    """
    Fingerprint a reconciliation day-set.

    Rows are ordered by (branch_id, work_date) first so that fetch order
    does not affect the result.
    """
    ordered = sorted(rows, key=lambda r: (str(r.get("branch_id", "")), str(r.get("work_date", ""))))
    return hash_payload({"days": ordered})
