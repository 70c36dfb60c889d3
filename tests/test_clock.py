"""Tests for platform time conversion."""
import time
from datetime import datetime, timedelta, timezone

from kvlimit.clock import current_timestamp, timestamp_from_datetime, timestamp_from_millis


def test_millis_are_truncated():
    assert timestamp_from_millis(1710528366999) == 1710528366


def test_aware_datetime():
    dt = datetime(2024, 3, 15, 18, 46, 6, tzinfo=timezone(timedelta(hours=1)))
    assert timestamp_from_datetime(dt) == 1710524766


def test_naive_datetime_is_utc():
    assert timestamp_from_datetime(datetime(2024, 3, 15, 18, 46, 6)) == 1710528366


def test_current_timestamp_is_whole_seconds():
    before = int(time.time())
    now = current_timestamp()
    assert isinstance(now, int)
    assert before <= now <= before + 1
