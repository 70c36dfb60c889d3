"""SQLite-backed key-value store.

Note: Uses a single aiosqlite connection for all operations. This serializes
all DB access, which is fine for a single-node deployment. Records from
several processes sharing one file stay consistent only up to the limiter's
own best-effort model (see kvlimit.limiter).
"""
import asyncio
import logging
import time

import aiosqlite

from kvlimit.config import settings
from kvlimit.errors import StorageError
from kvlimit.store import KVStore

logger = logging.getLogger(__name__)

_db: aiosqlite.Connection | None = None
_lock = asyncio.Lock()


def run_migrations() -> None:
    """Run Alembic migrations synchronously (called before the async event loop)."""
    from alembic.config import Config
    from alembic import command

    cfg = Config("alembic.ini")
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{settings.db_path}")
    command.upgrade(cfg, "head")


async def get_db() -> aiosqlite.Connection:
    global _db
    if _db is None:
        async with _lock:
            if _db is None:
                _db = await aiosqlite.connect(settings.db_path)
                _db.row_factory = aiosqlite.Row
                await _db.execute("PRAGMA journal_mode=WAL")
    return _db


async def close_db() -> None:
    global _db
    if _db is not None:
        try:
            await _db.close()
        except Exception as exc:
            logger.warning("Error closing database: %s", exc)
        _db = None


class SqliteStore(KVStore):
    """KVStore over the ``kv_entries`` table.

    Expired rows are invisible to ``get`` and removed by ``purge_expired``,
    which the app runs periodically.
    """

    async def get(self, key: str) -> bytes | None:
        try:
            db = await get_db()
            async with db.execute(
                "SELECT value FROM kv_entries WHERE key = ? AND expires_at > ?",
                (key, int(time.time())),
            ) as cur:
                row = await cur.fetchone()
        except aiosqlite.Error as exc:
            raise StorageError(f"get {key!r} failed: {exc}") from exc
        return bytes(row["value"]) if row else None

    async def put(self, key: str, value: bytes, *, ttl: int) -> None:
        try:
            db = await get_db()
            await db.execute(
                """INSERT INTO kv_entries (key, value, expires_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE
                   SET value = excluded.value, expires_at = excluded.expires_at""",
                (key, value, int(time.time()) + ttl),
            )
            await db.commit()
        except aiosqlite.Error as exc:
            raise StorageError(f"put {key!r} failed: {exc}") from exc

    async def purge_expired(self) -> int:
        db = await get_db()
        cur = await db.execute(
            "DELETE FROM kv_entries WHERE expires_at <= ?", (int(time.time()),)
        )
        await db.commit()
        return cur.rowcount
