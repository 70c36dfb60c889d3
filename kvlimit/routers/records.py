"""Read-only view of an identifier's window record."""
from fastapi import APIRouter, HTTPException, Path, status

from kvlimit import guard
from kvlimit.clock import current_timestamp
from kvlimit.errors import DecodeError, StorageError
from kvlimit.limiter import fetch
from kvlimit.models import RecordResponse, RuleUsageResponse

router = APIRouter(prefix="/records")


@router.get("/{identifier}", response_model=RecordResponse)
async def get_record(identifier: str = Path(max_length=256)):
    key = guard.limiter.key_for(identifier)
    try:
        stamp = await fetch(guard.store, key)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable")
    except DecodeError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Stored record is corrupt")

    now = current_timestamp()
    permit, _ = guard.limiter.check(stamp, now)
    return RecordResponse(
        key=key,
        now=now,
        entries=dict(stamp.items()),
        rules=[
            RuleUsageResponse(window_seconds=u.window, limit=u.limit, used=u.used, remaining=u.remaining)
            for u in guard.limiter.usage(stamp, now)
        ],
        allowed=permit.allowed,
    )
