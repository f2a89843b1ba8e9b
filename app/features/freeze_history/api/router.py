"""
Freeze report routes.

Serves the rows of the Freezes sheet to the dashboard. Responses are
cached in-process on app.state so repeated page loads do not hit the
Sheets API.
"""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import Settings, settings
from app.infrastructure.observability.logging import get_logger
from app.services.google_sheets_client import GoogleSheetsClient

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["freeze-history"])

FREEZES_READ_COLUMNS = "A:AZ"


class FreezeDataCache:
    """Last Freezes sheet read plus the epoch-millisecond time it was taken."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.data: list[dict[str, Any]] | None = None
        self.last_fetch: int | None = None

    def is_fresh(self) -> bool:
        if self.data is None or self.last_fetch is None:
            return False
        return self._clock() * 1000 - self.last_fetch <= self.ttl_seconds * 1000

    def store(self, data: list[dict[str, Any]]) -> int:
        self.data = data
        self.last_fetch = int(self._clock() * 1000)
        return self.last_fetch

    def clear(self) -> None:
        self.data = None
        self.last_fetch = None


def rows_to_records(rows: list[list[Any]]) -> list[dict[str, Any]]:
    """Key every data row by the header row; missing cells become ''."""
    headers = rows[0]
    records = []
    for row in rows[1:]:
        records.append(
            {
                header: (row[index] if index < len(row) and row[index] not in (None, "") else "")
                for index, header in enumerate(headers)
            }
        )
    return records


def get_settings() -> Settings:
    return settings


def get_data_cache(request: Request) -> FreezeDataCache:
    cache = getattr(request.app.state, "freeze_data_cache", None)
    if cache is None:
        cache = FreezeDataCache(ttl_seconds=settings.DATA_CACHE_TTL_SECONDS)
        request.app.state.freeze_data_cache = cache
    return cache


def get_sheets_client(request: Request) -> GoogleSheetsClient:
    client = getattr(request.app.state, "sheets_client", None)
    if client is None:
        client = GoogleSheetsClient(settings)
        request.app.state.sheets_client = client
    return client


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/fetch-data")
async def fetch_data(
    refresh: bool = False,
    cache: FreezeDataCache = Depends(get_data_cache),
    sheets: GoogleSheetsClient = Depends(get_sheets_client),
    app_settings: Settings = Depends(get_settings),
):
    """Return the Freezes sheet as header-keyed records."""
    missing = app_settings.missing_api_settings()
    if missing:
        logger.error("Missing API configuration", missing=missing)
        return JSONResponse(
            status_code=500,
            content={
                "error": f"Server configuration error: Missing {missing[0]}",
                "details": "Please contact the administrator",
            },
        )

    if not refresh and cache.is_fresh():
        logger.info("Returning cached freeze data", records=len(cache.data))
        return {
            "data": cache.data,
            "cached": True,
            "lastFetch": cache.last_fetch,
            "recordCount": len(cache.data),
        }

    logger.info("Fetching fresh freeze data", refresh=refresh)
    try:
        rows = await sheets.get_values(
            app_settings.SPREADSHEET_ID,
            f"{app_settings.FREEZES_SHEET_NAME}!{FREEZES_READ_COLUMNS}",
        )
    except Exception as e:
        logger.error("Error fetching freeze data", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to fetch data",
                "details": str(e),
                "timestamp": _utc_timestamp(),
            },
        )

    if not rows:
        return JSONResponse(status_code=404, content={"error": "No data found in spreadsheet"})

    data = rows_to_records(rows)
    last_fetch = cache.store(data)
    logger.info("Fetched freeze data", records=len(data))

    return {
        "data": data,
        "cached": False,
        "lastFetch": last_fetch,
        "recordCount": len(data),
    }


@router.post("/refresh")
async def refresh_data(cache: FreezeDataCache = Depends(get_data_cache)):
    """Drop the cached sheet read so the next fetch goes to the Sheets API."""
    cache.clear()
    logger.info("Freeze data cache cleared")
    return {
        "message": "Cache cleared. Next data request will fetch fresh data.",
        "timestamp": _utc_timestamp(),
    }
