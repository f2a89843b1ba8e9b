"""
Batch scheduler for upstream history fetches.

Work items are cut into fixed-size batches. Up to ``concurrent_batches``
batches form a group; every item of every batch in the group is in flight
at once, so the upstream sees at most batch_size * concurrent_batches
outstanding requests. The scheduler pauses between groups because the
upstream's sustained rate limit needs pacing beyond per-request backoff.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from app.features.freeze_history.domain.models import (
    FetchError,
    FetchErrorKind,
    FetchResult,
    WorkItem,
)
from app.infrastructure.observability.logging import get_logger, log_batch_progress

from .history_fetcher import HistoryFetcher
from .run_context import RunContext

logger = get_logger(__name__)

BatchCallback = Callable[[int, list[FetchResult]], Awaitable[None] | None]


class BatchScheduler:
    def __init__(
        self,
        context: RunContext,
        fetcher: HistoryFetcher,
        *,
        batch_size: int,
        concurrent_batches: int,
        inter_group_delay: float,
        pass_name: str = "history",
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if concurrent_batches < 1:
            raise ValueError("concurrent_batches must be >= 1")

        self._context = context
        self._fetcher = fetcher
        self.batch_size = batch_size
        self.concurrent_batches = concurrent_batches
        self.inter_group_delay = inter_group_delay
        self.pass_name = pass_name

    @classmethod
    def from_context(cls, context: RunContext, pass_name: str = "history") -> "BatchScheduler":
        settings = context.settings
        return cls(
            context,
            HistoryFetcher(context),
            batch_size=settings.BATCH_SIZE,
            concurrent_batches=settings.CONCURRENT_BATCHES,
            inter_group_delay=settings.INTER_GROUP_DELAY_SECONDS,
            pass_name=pass_name,
        )

    def partition(self, items: Sequence[WorkItem]) -> list[list[WorkItem]]:
        return [list(items[i : i + self.batch_size]) for i in range(0, len(items), self.batch_size)]

    async def run(
        self, items: Sequence[WorkItem], on_batch: BatchCallback | None = None
    ) -> list[FetchResult]:
        """
        Fetch every item and return one result per dispatched item.

        ``on_batch`` is called with each batch's results as soon as that
        batch joins. Cancellation is checked between groups only; items
        already in flight finish on their own.
        """
        batches = self.partition(list(items))
        total_batches = len(batches)
        results: list[FetchResult] = []

        if not batches:
            logger.info("No work items to fetch", pass_name=self.pass_name)
            return results

        logger.info(
            "Processing work items in batches",
            pass_name=self.pass_name,
            total_items=len(items),
            batch_count=total_batches,
            batch_size=self.batch_size,
            concurrent_batches=self.concurrent_batches,
        )

        for group_start in range(0, total_batches, self.concurrent_batches):
            if self._context.cancelled:
                logger.warning(
                    "Batch run cancelled before dispatching group",
                    pass_name=self.pass_name,
                    completed_batches=group_start,
                    total_batches=total_batches,
                )
                break

            group = batches[group_start : group_start + self.concurrent_batches]
            logger.info(
                "Processing concurrent batches",
                pass_name=self.pass_name,
                first_batch=group_start + 1,
                last_batch=group_start + len(group),
                total_batches=total_batches,
            )

            group_results = await asyncio.gather(
                *(
                    self._run_batch(batch, batch_index, on_batch)
                    for batch_index, batch in enumerate(group, start=group_start + 1)
                )
            )
            for batch_results in group_results:
                results.extend(batch_results)

            if group_start + self.concurrent_batches < total_batches and not self._context.cancelled:
                await self._context.sleep(self.inter_group_delay)

        return results

    async def _run_batch(
        self, batch: list[WorkItem], batch_index: int, on_batch: BatchCallback | None
    ) -> list[FetchResult]:
        batch_results = list(await asyncio.gather(*(self._fetch_isolated(item) for item in batch)))

        succeeded = sum(1 for result in batch_results if result.ok)
        log_batch_progress(self.pass_name, batch_index, succeeded, len(batch_results) - succeeded)

        if on_batch is not None:
            outcome = on_batch(batch_index, batch_results)
            if asyncio.iscoroutine(outcome):
                await outcome

        return batch_results

    async def _fetch_isolated(self, item: WorkItem) -> FetchResult:
        try:
            return await self._fetcher.fetch(item)
        except Exception as e:
            logger.error(
                "Unexpected error fetching member history",
                member_id=item.member_id,
                host_id=item.host_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return FetchResult(
                item=item,
                error=FetchError(kind=FetchErrorKind.PERMANENT, message=f"{type(e).__name__}: {e}"),
            )
