"""
Date utilities for the pick'em ledger.

Provides local-time helpers and the late-submission rule. Picks submitted
between Saturday 12:00 and Sunday 12:00 local time are flagged late; the
flag is always recomputed from submitted_at, never trusted from storage.
"""

import os
from datetime import datetime, timedelta
from typing import Optional, Union

import pytz

from ..model.config import DEFAULT_TIMEZONE, LATE_WINDOW_HOUR, SATURDAY, SUNDAY


def get_local_tz():
    """Timezone used for the weekly deadline (PICKEM_TIMEZONE, default Europe/London)."""
    return pytz.timezone(os.getenv("PICKEM_TIMEZONE", DEFAULT_TIMEZONE))


def get_local_now() -> datetime:
    """Get current datetime in the pool's local timezone."""
    return datetime.now(get_local_tz())


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string, e.g. 2025-08-16T11:59:00.000Z."""
    now = datetime.now(pytz.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    A trailing 'Z' is read as UTC. Naive timestamps are taken to be in
    the pool's local timezone.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return get_local_tz().localize(parsed)
    return parsed


def to_local(dt: datetime) -> datetime:
    """Convert an aware datetime to the pool's local timezone."""
    return dt.astimezone(get_local_tz())


def is_late_submission(submitted_at: Optional[Union[str, datetime]]) -> bool:
    """
    Check whether a submission falls in the late window [Sat 12:00, Sun 12:00).

    Missing or unparseable timestamps are never late.
    """
    if not submitted_at:
        return False
    try:
        dt = submitted_at if isinstance(submitted_at, datetime) else parse_timestamp(submitted_at)
    except ValueError:
        return False

    if dt.tzinfo is None:
        dt = get_local_tz().localize(dt)
    local = to_local(dt)

    if local.weekday() == SATURDAY and local.hour >= LATE_WINDOW_HOUR:
        return True
    if local.weekday() == SUNDAY and local.hour < LATE_WINDOW_HOUR:
        return True
    return False


def next_deadline(now: Optional[datetime] = None) -> datetime:
    """
    Next Saturday 12:00 local time.

    On Saturday before noon that is today; from Saturday noon onwards it is
    the following Saturday.
    """
    tz = get_local_tz()
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is None:
        now = tz.localize(now)
    now = now.astimezone(tz)

    days_ahead = (SATURDAY - now.weekday()) % 7
    if days_ahead == 0 and now.hour >= LATE_WINDOW_HOUR:
        days_ahead = 7

    target = (now + timedelta(days=days_ahead)).replace(tzinfo=None)
    target = target.replace(hour=LATE_WINDOW_HOUR, minute=0, second=0, microsecond=0)
    return tz.localize(target)


def format_timestamp(dt: datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format a datetime for display in local time."""
    if dt.tzinfo is not None:
        dt = to_local(dt)
    return dt.strftime(fmt)
