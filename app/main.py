"""
FastAPI application serving the freeze report dashboard API.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.features.freeze_history.api import FreezeDataCache
from app.features.freeze_history.api import router as freeze_history_router
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.middleware.cors import CORSMiddleware
from app.routes import health
from app.services.google_sheets_client import GoogleSheetsClient

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared Sheets client and data cache; close the client on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    app.state.sheets_client = GoogleSheetsClient(settings)
    app.state.freeze_data_cache = FreezeDataCache(ttl_seconds=settings.DATA_CACHE_TTL_SECONDS)

    missing = settings.missing_api_settings()
    if missing:
        logger.warning("API started with incomplete configuration", missing=missing)

    yield

    logger.info("Application shutting down")
    try:
        await app.state.sheets_client.close()
    except Exception as e:
        logger.error("Error closing Sheets client", error=str(e))


app = FastAPI(
    title="Freeze History",
    description="Membership freeze report and cancellation history",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allowed_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Include routers
app.include_router(health.router)
app.include_router(freeze_history_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
