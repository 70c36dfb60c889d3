"""Window record: per-identifier event counts keyed by whole second.

Entries are kept in two parallel lists sorted by timestamp so window sums and
prefix trims are a pair of binary searches instead of a full scan.
"""
from bisect import bisect_left, bisect_right
from collections.abc import Iterator, Mapping

# Counts are unsigned 64-bit on the wire.
MAX_COUNT = 2**64 - 1


class Stamp(Mapping[int, int]):
    """Sparse, ascending time series of event counts.

    A missing timestamp means zero events at that second.
    """

    __slots__ = ("_timestamps", "_counts")

    def __init__(self, entries: Mapping[int, int] | None = None) -> None:
        self._timestamps: list[int] = []
        self._counts: list[int] = []
        if entries:
            for timestamp in sorted(entries):
                self._timestamps.append(timestamp)
                self._counts.append(entries[timestamp])

    def __getitem__(self, timestamp: int) -> int:
        i = bisect_left(self._timestamps, timestamp)
        if i < len(self._timestamps) and self._timestamps[i] == timestamp:
            return self._counts[i]
        raise KeyError(timestamp)

    def __iter__(self) -> Iterator[int]:
        return iter(self._timestamps)

    def __len__(self) -> int:
        return len(self._timestamps)

    def __repr__(self) -> str:
        return f"Stamp({dict(self.items())!r})"

    def range_sum(self, window: int, now: int) -> int:
        """Sum the counts of every timestamp in ``[now - window, now]``."""
        lo = bisect_left(self._timestamps, max(0, now - window))
        hi = bisect_right(self._timestamps, now)
        return sum(self._counts[lo:hi])

    def expire(self, cutoff: int) -> None:
        """Drop entries strictly older than ``cutoff``."""
        i = bisect_left(self._timestamps, cutoff)
        if i:
            del self._timestamps[:i]
            del self._counts[:i]

    def increment(self, timestamp: int) -> int:
        """Record one event at ``timestamp`` and return the new count."""
        i = bisect_left(self._timestamps, timestamp)
        if i < len(self._timestamps) and self._timestamps[i] == timestamp:
            self._counts[i] = min(self._counts[i] + 1, MAX_COUNT)
        else:
            self._timestamps.insert(i, timestamp)
            self._counts.insert(i, 1)
        return self._counts[i]
