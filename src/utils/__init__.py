"""
Utility modules for shared functionality.
"""
from .phone import to_e164
from .timestamps import ensure_utc, parse_vapi_timestamp, utc_now

__all__ = [
    "to_e164",
    "ensure_utc",
    "parse_vapi_timestamp",
    "utc_now",
]
