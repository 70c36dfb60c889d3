"""Convert platform time values into the whole-second timestamps the limiter uses."""
import time
from datetime import datetime, timezone


def current_timestamp() -> int:
    return int(time.time())


def timestamp_from_millis(millis: int) -> int:
    """Truncate a millisecond epoch value (e.g. a JS ``Date``) to seconds."""
    return millis // 1000


def timestamp_from_datetime(dt: datetime) -> int:
    # Naive datetimes are taken to be UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())
