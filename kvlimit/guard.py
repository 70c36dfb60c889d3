"""HTTP middleware that rate-limits every non-exempt request by client IP.

The ticket is redeemed only after the handler produced a non-error response,
so rejected or failed requests do not count against the client.
"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from kvlimit.clock import current_timestamp
from kvlimit.config import Settings, settings
from kvlimit.database import SqliteStore
from kvlimit.errors import DecodeError, KVLimitError, StorageError
from kvlimit.limiter import RateLimiter
from kvlimit.store import KVStore

logger = logging.getLogger(__name__)


def build_limiter(cfg: Settings) -> RateLimiter:
    rl = RateLimiter(cfg.key_prefix)
    for window, max_count in cfg.limit_rules.items():
        rl.add_limit(window, max_count)
    return rl


limiter = build_limiter(settings)
store: KVStore = SqliteStore()


def client_identifier(request: Request) -> str:
    """Client IP, taken from ``client_ip_header`` when configured.

    Only set ``client_ip_header`` behind a proxy that overwrites it, otherwise
    clients can pick their own identifier.
    """
    if settings.client_ip_header:
        forwarded = request.headers.get(settings.client_ip_header)
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit(request: Request, call_next):
    if request.url.path in settings.exempt_paths:
        return await call_next(request)

    identifier = client_identifier(request)
    try:
        permit = await limiter.check_kv(store, identifier, current_timestamp())
    except (StorageError, DecodeError) as exc:
        logger.error("Rate limit check failed for %s: %s", identifier, exc)
        if not settings.fail_open:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"detail": "Rate limiter unavailable"},
            )
        return await call_next(request)

    if not permit.allowed:
        logger.info("Rate limited %s on %s", identifier, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": "Rate limit exceeded. Try again later."},
        )

    response = await call_next(request)
    if permit.ticket is not None and response.status_code < 400:
        try:
            await permit.ticket.redeem(store)
        except KVLimitError:
            logger.exception("Failed to record event for %s", identifier)
    return response
