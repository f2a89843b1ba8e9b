"""
Low-level Google Sheets API client.

Used by the check-ins source, the report sinks and the dashboard API.
Handles the refresh-token exchange, raw Sheets v4 value calls and
response parsing.
"""

import asyncio
from typing import Any
from urllib.parse import quote

import httpx

from app.config import Settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Google Sheets API configuration
SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 30  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 2
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class GoogleSheetsError(Exception):
    """Custom exception for Google Sheets API errors."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.response_data = response_data or {}


def column_letter(col_index_zero_based: int) -> str:
    """Convert 0-based column index to A1 column letters (0->A, 25->Z, 26->AA)."""
    if col_index_zero_based < 0:
        raise ValueError("col_index_zero_based must be >= 0")

    result = ""
    n = col_index_zero_based
    while True:
        n, rem = divmod(n, 26)
        result = chr(ord("A") + rem) + result
        if n == 0:
            break
        n -= 1
    return result


class GoogleSheetsClient:
    """
    Service for Google Sheets value operations.

    The access token is exchanged once from the configured refresh token
    and reused for the lifetime of this client.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._client = client or self._create_client()
        self._access_token: str | None = None
        self._token_lock = asyncio.Lock()

    def _create_client(self) -> httpx.AsyncClient:
        """Create async HTTP client for Sheets API."""
        timeout = httpx.Timeout(REQUEST_TIMEOUT)
        limits = httpx.Limits(max_keepalive_connections=5, max_connections=10)
        return httpx.AsyncClient(timeout=timeout, limits=limits)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with retry and backoff."""
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = await self._client.request(method, url, **kwargs)
                if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                    backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                    logger.debug(
                        "Sheets API retrying request",
                        attempt=attempt,
                        status_code=response.status_code,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                return response
            except httpx.RequestError as e:
                if attempt >= MAX_RETRIES:
                    raise
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug(
                    "Sheets API request error, retrying",
                    attempt=attempt,
                    error=str(e),
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
        raise RuntimeError("Sheets API retry loop exhausted")

    async def _get_access_token(self) -> str:
        async with self._token_lock:
            if self._access_token:
                return self._access_token

            settings = self._settings
            if not (
                settings.GOOGLE_CLIENT_ID
                and settings.GOOGLE_CLIENT_SECRET
                and settings.GOOGLE_REFRESH_TOKEN
            ):
                raise GoogleSheetsError("Google OAuth credentials not configured", operation="token")

            data = {
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "refresh_token": settings.GOOGLE_REFRESH_TOKEN,
                "grant_type": "refresh_token",
            }
            try:
                response = await self._request_with_retry("POST", GOOGLE_TOKEN_URL, data=data)
            except httpx.RequestError as e:
                raise GoogleSheetsError(f"Network error during token exchange: {e}", operation="token") from e

            payload = self._handle_api_response(response, "token")
            token = payload.get("access_token")
            if not token:
                raise GoogleSheetsError("Token response missing access_token", operation="token")

            self._access_token = token
            logger.info("Google access token obtained for Sheets")
            return token

    async def _auth_headers(self) -> dict:
        token = await self._get_access_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _values_url(self, spreadsheet_id: str, range_: str, suffix: str = "") -> str:
        return f"{SHEETS_API_BASE_URL}/{spreadsheet_id}/values/{quote(range_, safe='!:')}{suffix}"

    def _handle_api_response(self, response: httpx.Response, operation: str) -> dict:
        """
        Handle and validate Sheets API response.

        Raises:
            GoogleSheetsError: If response contains errors
        """
        logger.debug(
            f"Sheets API {operation} response",
            status_code=response.status_code,
            response_size=len(response.text) if response.text else 0,
        )

        if response.is_success:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error(f"Failed to parse Sheets API {operation} response", error=str(e))
                raise GoogleSheetsError(f"Invalid response format: {e}", operation=operation) from e

        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            error_data = {}

        error_info = error_data.get("error", {})
        if isinstance(error_info, dict):
            error_message = error_info.get("message", "Unknown Sheets API error")
        else:
            error_message = str(error_info)

        logger.error(
            f"Sheets API {operation} failed",
            status_code=response.status_code,
            error_message=error_message,
        )
        raise GoogleSheetsError(
            f"Sheets API {operation} failed (HTTP {response.status_code}): {error_message}",
            operation=operation,
            status_code=response.status_code,
            response_data=error_data,
        )

    async def _call(self, method: str, url: str, operation: str, **kwargs) -> dict:
        headers = await self._auth_headers()
        try:
            response = await self._request_with_retry(method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            raise GoogleSheetsError(f"Network error during {operation}: {e}", operation=operation) from e
        return self._handle_api_response(response, operation)

    async def get_values(self, spreadsheet_id: str, range_: str) -> list[list[Any]]:
        """Read a range; returns [] when the range is empty."""
        data = await self._call(
            "GET",
            self._values_url(spreadsheet_id, range_),
            "values_get",
            params={"majorDimension": "ROWS"},
        )
        return data.get("values") or []

    async def clear_values(self, spreadsheet_id: str, range_: str) -> None:
        await self._call("POST", self._values_url(spreadsheet_id, range_, ":clear"), "values_clear")

    async def update_values(self, spreadsheet_id: str, range_: str, values: list[list[Any]]) -> dict:
        return await self._call(
            "PUT",
            self._values_url(spreadsheet_id, range_),
            "values_update",
            params={"valueInputOption": "RAW"},
            json={"range": range_, "majorDimension": "ROWS", "values": values},
        )
