"""KVLimit — FastAPI entry point."""
import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from kvlimit import database as db
from kvlimit import guard
from kvlimit.config import settings
from kvlimit.routers import records

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        db_dir = os.path.dirname(settings.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        db.run_migrations()
        await db.get_db()
        logger.info("Database ready at %s", settings.db_path)
    except Exception as exc:
        logger.critical("Failed to initialize database at %s: %s", settings.db_path, exc)
        raise RuntimeError(f"Database initialization failed: {exc}") from exc

    logger.info(
        "Rate limiting %r with rules %s",
        guard.limiter.prefix,
        ", ".join(f"{n}/{w}s" for w, n in guard.limiter.rules.items()) or "none",
    )

    async def _purge_loop():
        while True:
            await asyncio.sleep(settings.purge_interval_seconds)
            try:
                purged = await guard.store.purge_expired()
                if purged:
                    logger.info("Purged %d expired records", purged)
            except Exception:
                logger.exception("Purge loop iteration failed")

    purge_task = asyncio.create_task(_purge_loop())
    purge_task.add_done_callback(lambda t: logger.error("Purge task terminated: %s", t.exception()) if not t.cancelled() and t.exception() else None)

    yield

    purge_task.cancel()
    try:
        await db.close_db()
    except Exception:
        logger.exception("Error closing database")


app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

app.middleware("http")(guard.rate_limit)
app.include_router(records.router)


@app.get("/health")
async def health():
    try:
        await db.get_db()
        db_ok = True
    except Exception:
        db_ok = False
    if db_ok:
        return {"status": "ok", "db": "accessible"}
    return JSONResponse(status_code=503, content={"status": "degraded", "db": "unavailable"})
