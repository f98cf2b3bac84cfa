from __future__ import annotations

import calendar
import time
from datetime import datetime, timezone


def now_epoch() -> int:
    """Return current time as integer epoch seconds."""
    return int(time.time())


def datetime_to_epoch(dt: datetime) -> int:
    """
    Convert a datetime to epoch seconds.

    Naive datetimes are read as UTC, which is how google-auth reports
    credential expiry.
    """
    if not isinstance(dt, datetime):
        raise TypeError("dt must be a datetime")
    if dt.tzinfo is None:
        return calendar.timegm(dt.timetuple())
    return int(dt.timestamp())


def epoch_to_naive_utc(value: int) -> datetime:
    """Convert epoch seconds to a naive UTC datetime (google-auth convention)."""
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
