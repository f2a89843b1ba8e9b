"""
Per-run resources for the freeze history pipeline.

One RunContext is opened per batch run and closed at its end. It owns the
pooled upstream HTTP client, the cancellation signal, and the clock and
sleep functions, so nothing in the pipeline reaches for process globals.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx
import structlog

from app.config import Settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
ClockFunc = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def create_momence_client(settings: Settings) -> httpx.AsyncClient:
    """Create the pooled async client used for every upstream call in a run."""
    pool = settings.get_http_pool_config()
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    if settings.MOMENCE_ALL_COOKIES:
        headers["Cookie"] = settings.MOMENCE_ALL_COOKIES

    return httpx.AsyncClient(
        headers=headers,
        timeout=httpx.Timeout(pool["timeout"]),
        limits=httpx.Limits(
            max_connections=pool["max_connections"],
            max_keepalive_connections=pool["max_keepalive_connections"],
        ),
        follow_redirects=True,
        max_redirects=5,
    )


@dataclass
class RunContext:
    settings: Settings
    client: httpx.AsyncClient
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    clock: ClockFunc = _utc_now
    sleep: SleepFunc = asyncio.sleep
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        if not self.cancel_event.is_set():
            logger.warning("Run cancellation requested", run_id=self.run_id)
        self.cancel_event.set()

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        settings: Settings,
        clock: ClockFunc = _utc_now,
        sleep: SleepFunc = asyncio.sleep,
    ) -> AsyncIterator["RunContext"]:
        """Open the run's HTTP pool and close it when the run ends."""
        client = create_momence_client(settings)
        context = cls(settings=settings, client=client, clock=clock, sleep=sleep)
        try:
            with structlog.contextvars.bound_contextvars(run_id=context.run_id):
                logger.debug("Run context opened")
                yield context
        finally:
            await client.aclose()
            logger.debug("Run context closed", run_id=context.run_id)
