"""
Health check
"""
from datetime import datetime, timezone
import time
from fastapi import APIRouter
from ..config import settings

router = APIRouter()

STARTED_AT = time.monotonic()


@router.get("/health")
async def health():
    """Liveness probe"""
    return {
        "status": "OK",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }
