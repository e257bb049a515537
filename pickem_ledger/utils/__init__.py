"""Utilities module for the pick'em ledger."""

from .dates import (
    get_local_tz,
    get_local_now,
    utc_now_iso,
    parse_timestamp,
    is_late_submission,
    next_deadline,
    format_timestamp,
)

__all__ = [
    "get_local_tz",
    "get_local_now",
    "utc_now_iso",
    "parse_timestamp",
    "is_late_submission",
    "next_deadline",
    "format_timestamp",
]
