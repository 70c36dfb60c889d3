"""Key-value store contract consumed by the limiter, plus an in-process store.

The limiter only ever needs two operations: read a key and write a key with
an expiry hint. Anything that can do both (Workers KV, Redis, SQLite) can back
it. Implementations raise StorageError when the backend fails; a missing or
expired key is not an error and reads as ``None``.
"""
import time
from abc import ABC, abstractmethod
from typing import Callable


class KVStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored payload, or None if absent or expired."""

    @abstractmethod
    async def put(self, key: str, value: bytes, *, ttl: int) -> None:
        """Store ``value`` under ``key``, expiring after ``ttl`` seconds."""

    async def purge_expired(self) -> int:
        """Delete expired entries and return how many were removed.

        Stores that expire keys on their own have nothing to do here.
        """
        return 0


class MemoryStore(KVStore):
    """Per-process store. Each worker process has its own copy of the data."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}

    async def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: bytes, *, ttl: int) -> None:
        self._entries[key] = (value, self._clock() + ttl)

    async def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        stale = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in stale:
            del self._entries[key]
        return len(stale)
