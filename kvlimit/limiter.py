"""Storage-backed sliding-window rate limiter.

Checking and recording are split in two phases. ``check_kv`` reads the
identifier's window record and decides; on Allow it hands back a Ticket. The
caller redeems the ticket only once the guarded action succeeded, which
re-reads the record, trims it, adds the event and writes it back.

Consistency is best-effort. Nothing coordinates two requests for the same
identifier: concurrent redemptions can both read the same snapshot and each
write back their own increment, so one event is lost and the limiter
undercounts. That is accepted in exchange for one read per check and one
read plus one write per redeem, with no locks or conditional writes.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from kvlimit.codec import decode_stamp, encode_stamp
from kvlimit.errors import TicketRedeemedError
from kvlimit.stamp import Stamp
from kvlimit.store import KVStore

logger = logging.getLogger(__name__)


async def fetch(store: KVStore, key: str) -> Stamp:
    """Load the window record for ``key``; a missing key is an empty record."""
    payload = await store.get(key)
    if payload is None:
        return Stamp()
    return decode_stamp(payload)


@dataclass(unsafe_hash=True)
class Ticket:
    """Permission to record one event for ``key`` at ``timestamp``.

    ``max_window`` is the longest configured rule, in seconds; entries older
    than that are dropped on redeem and it sizes the record's TTL.

    The three value fields are never reassigned; only the redeemed flag
    changes, and it takes no part in equality or hashing.
    """

    key: str
    timestamp: int
    max_window: int
    _redeemed: bool = field(default=False, init=False, repr=False, compare=False)

    @property
    def redeemed(self) -> bool:
        return self._redeemed

    def expire(self, stamp: Stamp) -> None:
        stamp.expire(self.timestamp - self.max_window)

    async def redeem(self, store: KVStore) -> None:
        """Record the event. A ticket can only be redeemed once, even if this call fails."""
        if self._redeemed:
            raise TicketRedeemedError(f"ticket for {self.key} already redeemed")
        self._redeemed = True

        stamp = await fetch(store, self.key)
        self.expire(stamp)
        stamp.increment(self.timestamp)
        await store.put(self.key, encode_stamp(stamp), ttl=self.max_window + 1)


@dataclass(frozen=True)
class Permit:
    allowed: bool
    ticket: Ticket | None = None

    @classmethod
    def allow(cls, ticket: Ticket | None = None) -> "Permit":
        return cls(allowed=True, ticket=ticket)

    @classmethod
    def deny(cls) -> "Permit":
        return cls(allowed=False)


@dataclass(frozen=True)
class RuleUsage:
    window: int
    limit: int
    used: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)


def _seconds(duration: timedelta | int) -> int:
    if isinstance(duration, timedelta):
        return int(duration.total_seconds())
    return int(duration)


class RateLimiter:
    """A namespace prefix plus a set of (window, max count) rules."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self._rules: dict[int, int] = {}

    @property
    def rules(self) -> dict[int, int]:
        """Window seconds → max count, ascending by window."""
        return dict(self._rules)

    def add_limit(self, duration: timedelta | int, max_count: int) -> None:
        window = _seconds(duration)
        if window <= 0:
            raise ValueError("duration must be at least one second")
        if max_count < 0:
            raise ValueError("max_count must be >= 0")
        self._rules[window] = max_count
        self._rules = dict(sorted(self._rules.items()))

    def key_for(self, identifier: str) -> str:
        return f"{self.prefix}/{identifier}"

    def check(self, stamp: Stamp, now: int) -> tuple[Permit, int | None]:
        """Evaluate every rule against ``stamp`` at ``now``.

        Returns Deny on the first rule whose window already holds ``max_count``
        events. Otherwise returns Allow together with the longest window, or
        None when there are no rules.
        """
        longest = None
        for window, max_count in self._rules.items():
            if stamp.range_sum(window, now) >= max_count:
                return Permit.deny(), None
            longest = window
        return Permit.allow(), longest

    def usage(self, stamp: Stamp, now: int) -> list[RuleUsage]:
        return [
            RuleUsage(window=window, limit=max_count, used=stamp.range_sum(window, now))
            for window, max_count in self._rules.items()
        ]

    async def check_kv(self, store: KVStore, identifier: str, now: int) -> Permit:
        """Check ``identifier`` against the stored record. Never writes."""
        key = self.key_for(identifier)
        stamp = await fetch(store, key)
        permit, longest = self.check(stamp, now)

        if not permit.allowed:
            logger.debug("Rate limit exceeded for %s", key)
            return permit
        # Nothing to record when no rules are configured
        if longest is None:
            return permit
        return Permit.allow(Ticket(key=key, timestamp=now, max_window=longest))
