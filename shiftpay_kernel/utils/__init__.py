"""Utility modules for the shiftpay kernel."""

from shiftpay_kernel.utils.hashing import canonicalize_json, hash_day_set, hash_payload

__all__ = [
    "canonicalize_json",
    "hash_payload",
    "hash_day_set",
]
