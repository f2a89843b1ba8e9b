"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from app.config import settings

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "freeze-history"}


@router.get("/readyz")
async def readyz():
    """Readiness check: the dashboard API needs its Google credentials."""
    missing = settings.missing_api_settings()
    checks = {
        "configuration": {
            "ok": not missing,
            "issues": [f"{name} not set" for name in missing] or None,
            "environment": settings.environment,
        }
    }
    return {"overall_ok": not missing, "checks": checks, "timestamp": time.time()}
