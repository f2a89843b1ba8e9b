"""
Momence customer history fetcher with tiered retry.

One logical request per work item. Rate limiting (429) backs off hard,
server faults and timeouts back off gently, everything else fails at
once. Failures come back as FetchResult errors and never raise, so one
member cannot take down its batch.
"""

import httpx

from app.features.freeze_history.domain.models import (
    FetchError,
    FetchErrorKind,
    FetchResult,
    WorkItem,
)
from app.infrastructure.observability.logging import get_logger

from .run_context import RunContext

logger = get_logger(__name__)

RATE_LIMIT_STATUS = 429
RATE_LIMIT_BACKOFF = 2.0


class HistoryFetcher:
    """
    Fetches one member's raw history per call.

    Retry loop is explicit and bounded: at most ``MAX_RETRY_ATTEMPTS``
    retries after the first request, with delays that only grow.
    """

    def __init__(self, context: RunContext):
        self._context = context
        self._settings = context.settings

    def backoff_seconds(self, kind: FetchErrorKind, retry: int) -> float:
        """Delay before retry number ``retry`` (0-based) for a failure class."""
        if kind is FetchErrorKind.RATE_LIMIT_EXHAUSTED:
            return self._settings.RATE_LIMIT_DELAY_SECONDS * (RATE_LIMIT_BACKOFF**retry)
        return self._settings.RETRY_DELAY_SECONDS * (self._settings.SERVER_RETRY_BACKOFF**retry)

    async def fetch(self, item: WorkItem) -> FetchResult:
        url = self._settings.history_url(item.member_id, item.host_id)
        max_retries = self._settings.MAX_RETRY_ATTEMPTS
        waited = 0.0
        retry = 0

        while True:
            attempt = retry + 1
            status_code: int | None = None

            try:
                response = await self._context.client.get(url)
            except httpx.TimeoutException as e:
                retry_kind = FetchErrorKind.SERVER_FAULT_EXHAUSTED
                message = f"Request timed out: {e}"
            except httpx.RequestError as e:
                retry_kind = None
                message = f"Network error: {type(e).__name__}: {e}"
            else:
                status_code = response.status_code
                if response.is_success:
                    entries, message = self._parse_body(response)
                    if entries is not None:
                        return FetchResult(item=item, entries=entries)
                    retry_kind = None
                elif status_code == RATE_LIMIT_STATUS:
                    retry_kind = FetchErrorKind.RATE_LIMIT_EXHAUSTED
                    message = "Too many requests"
                elif status_code >= 500:
                    retry_kind = FetchErrorKind.SERVER_FAULT_EXHAUSTED
                    message = response.reason_phrase or "Server error"
                else:
                    retry_kind = None
                    message = response.reason_phrase or "Client error"

            will_retry = retry_kind is not None and retry < max_retries
            logger.warning(
                "Member history request failed",
                member_id=item.member_id,
                host_id=item.host_id,
                status_code=status_code,
                attempt=attempt,
                max_attempts=max_retries + 1,
                error=message,
                will_retry=will_retry,
            )

            if not will_retry:
                kind = retry_kind or FetchErrorKind.PERMANENT
                logger.error(
                    "Member history fetch gave up",
                    member_id=item.member_id,
                    host_id=item.host_id,
                    status_code=status_code,
                    error_kind=kind.value,
                    attempts=attempt,
                    waited_seconds=waited,
                )
                return FetchResult(
                    item=item,
                    error=FetchError(
                        kind=kind,
                        message=message,
                        status_code=status_code,
                        attempts=attempt,
                        waited_seconds=waited,
                    ),
                )

            delay = self.backoff_seconds(retry_kind, retry)
            logger.debug(
                "Backing off before retry",
                member_id=item.member_id,
                host_id=item.host_id,
                retry=retry + 1,
                delay_seconds=delay,
            )
            await self._context.sleep(delay)
            waited += delay
            retry += 1

    def _parse_body(self, response: httpx.Response) -> tuple[list | None, str]:
        try:
            body = response.json()
        except ValueError as e:
            return None, f"Invalid JSON in history response: {e}"
        if not isinstance(body, list):
            return None, f"Unexpected history payload type: {type(body).__name__}"
        return body, ""
