"""Liveness checks. Mounted before anything that touches auth or storage."""
import time
from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(prefix="/health", tags=["health"])

_started_at = time.monotonic()


def _uptime() -> float:
    return round(time.monotonic() - _started_at, 3)


@router.get("")
async def health() -> dict:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": _uptime(),
    }


@router.get("/live")
async def live() -> dict:
    return {
        "alive": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": _uptime(),
    }
