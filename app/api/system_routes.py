"""Expense Bridge — Liveness & Discovery Routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from app.config import Settings, get_settings
from app.models.record_models import utc_now_iso
from app.core.logging import get_logger

logger = get_logger("api.system")

router = APIRouter(tags=["System"])


def _pong() -> dict:
    return {
        "code": 0,
        "message": "pong",
        "timestamp": utc_now_iso(),
        "success": True,
    }


@router.get("/")
async def health(settings: Settings = Depends(get_settings)):
    """Liveness check."""
    return {
        "code": 0,
        "message": settings.health_message,
        "status": "healthy",
        "timestamp": utc_now_iso(),
        "version": settings.app_version,
    }


@router.get("/meta.json")
async def meta_json(settings: Settings = Depends(get_settings)):
    """Service discovery descriptor polled by the bitable platform."""
    logger.info("meta.json requested")
    return {
        "app_id": settings.app_id,
        "version": settings.app_version,
        "timestamp": utc_now_iso(),
        "status": "healthy",
        "capabilities": {
            "data_receive": True,
            "health_check": True,
        },
        "endpoints": {
            "data_receive": "/api/receive-data",
            "health_check": "/api/ping",
        },
    }


@router.get("//meta.json", include_in_schema=False)
async def meta_json_double_slash():
    return RedirectResponse("/meta.json", status_code=301)


# Ping is never signature-checked so the platform can verify the service.
@router.get("/api/ping")
async def ping_get():
    return _pong()


@router.post("/api/ping")
async def ping_post():
    logger.info("POST ping received")
    return _pong()
