"""Shared fixtures for the KVLimit test suite.

Environment variables MUST be set before any kvlimit imports because
kvlimit.config.Settings() and the guard's limiter are built at import time.
"""
import os

# Set env vars before any kvlimit module is imported
os.environ.setdefault("LIMIT_RULES", '{"60": 3}')
os.environ.setdefault("KEY_PREFIX", "ratelimit")

import pytest
import pytest_asyncio

from kvlimit import database as db
from kvlimit.config import settings
from kvlimit.store import MemoryStore


class FakeClock:
    def __init__(self, now: float = 1710528366) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return MemoryStore(clock=clock)


@pytest_asyncio.fixture
async def test_db(tmp_path):
    """Create a temp DB file, run Alembic migrations, open the async connection, yield, clean up."""
    db_file = tmp_path / "test.db"
    original_path = settings.db_path

    settings.db_path = str(db_file)

    # Run real Alembic migrations — verifies migrations work on every test
    db.run_migrations()

    conn = await db.get_db()
    yield conn

    await db.close_db()
    settings.db_path = original_path


@pytest_asyncio.fixture
async def client(test_db):
    """httpx.AsyncClient using ASGITransport — bypasses lifespan.

    test_db handles DB init, so the guard's SqliteStore talks to a fresh file.
    """
    import httpx
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
