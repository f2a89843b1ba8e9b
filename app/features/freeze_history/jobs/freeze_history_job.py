"""
Freeze history job.

One batch run: load work items, fetch and reconstruct every member's
history, classify compliance, then hand the records to the JSON, CSV and
Sheets sinks. The cancellation pass reuses the same scheduler machinery
and runs while the freeze outputs are being written.
"""

import asyncio
import signal
import time
from datetime import datetime
from zoneinfo import ZoneInfo

from app.config import Settings, settings
from app.features.freeze_history.domain.history import parse_history_entries
from app.features.freeze_history.domain.models import (
    CancellationRecord,
    FetchResult,
    MembershipRecord,
    WorkItem,
)
from app.features.freeze_history.pipeline.cancellations import CancellationExtractor
from app.features.freeze_history.pipeline.compliance import ComplianceClassifier
from app.features.freeze_history.pipeline.reconstruction import HistoryReconstructor
from app.features.freeze_history.services.batch_scheduler import BatchScheduler
from app.features.freeze_history.services.run_context import ClockFunc, RunContext, SleepFunc
from app.features.freeze_history.sinks import (
    SheetsReportWriter,
    cancellation_to_display,
    membership_to_display,
    write_csv,
    write_json,
)
from app.features.freeze_history.sources import CheckinsSource, MomenceReportsClient
from app.infrastructure.observability.logging import get_logger, log_run_summary
from app.services.google_sheets_client import GoogleSheetsClient

logger = get_logger(__name__)


class FreezeHistoryJobError(Exception):
    """Custom exception for freeze history job operations."""

    def __init__(self, message: str, operation: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class FreezeHistoryMetrics:
    """Metrics tracking for one freeze history run."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all metrics for new job run."""
        self.started = time.monotonic()
        self.work_items = 0
        self.fetch_succeeded = 0
        self.fetch_failed = 0
        self.failures_by_kind: dict[str, int] = {}
        self.membership_records = 0
        self.cancellation_records = 0
        self.total_duration_seconds = 0.0
        self.cancelled = False
        self.processing_errors = 0
        self.errors: list[dict] = []

    def record_fetch(self, result: FetchResult):
        if result.ok:
            self.fetch_succeeded += 1
            return

        self.fetch_failed += 1
        kind = result.error.kind.value
        self.failures_by_kind[kind] = self.failures_by_kind.get(kind, 0) + 1
        self.errors.append(
            {
                "member_id": result.item.member_id,
                "host_id": result.item.host_id,
                "error_kind": kind,
                "status_code": result.error.status_code,
                "attempts": result.error.attempts,
            }
        )

    def record_processing_error(self, item: WorkItem, error: Exception):
        self.processing_errors += 1
        self.errors.append(
            {
                "member_id": item.member_id,
                "host_id": item.host_id,
                "error_kind": "processing",
                "error": str(error),
            }
        )

    def finalize(self):
        self.total_duration_seconds = time.monotonic() - self.started

    def to_dict(self) -> dict:
        fetched = self.fetch_succeeded + self.fetch_failed
        return {
            "job_run": "freeze_history",
            "total_duration_seconds": round(self.total_duration_seconds, 2),
            "work_items": self.work_items,
            "fetch_succeeded": self.fetch_succeeded,
            "fetch_failed": self.fetch_failed,
            "failures_by_kind": dict(self.failures_by_kind),
            "success_rate_percent": round(
                (self.fetch_succeeded / fetched * 100) if fetched > 0 else 0, 2
            ),
            "membership_records": self.membership_records,
            "cancellation_records": self.cancellation_records,
            "cancelled": self.cancelled,
            "processing_errors": self.processing_errors,
            "errors_count": len(self.errors),
        }


class FreezeHistoryJob:
    """
    Batch job that rebuilds the freeze report from the upstream histories.

    Per-member failures never abort the run; the metrics report how many
    members could not be fetched so the caller can decide whether to rerun.
    """

    def __init__(
        self,
        job_settings: Settings | None = None,
        reconstructor: HistoryReconstructor | None = None,
        classifier: ComplianceClassifier | None = None,
        extractor: CancellationExtractor | None = None,
        clock: ClockFunc | None = None,
        sleep: SleepFunc | None = None,
    ):
        self.settings = job_settings or settings
        self.reconstructor = reconstructor or HistoryReconstructor()
        self.classifier = classifier or ComplianceClassifier()
        self.extractor = extractor or CancellationExtractor()
        self.metrics = FreezeHistoryMetrics()
        self.display_tz = ZoneInfo(self.settings.DISPLAY_TIMEZONE)
        self._clock = clock
        self._sleep = sleep
        self._context: RunContext | None = None

    def cancel(self) -> None:
        """Stop dispatching new batch groups; in-flight fetches finish."""
        if self._context is not None:
            self._context.cancel()
        self.metrics.cancelled = True

    def _run_overrides(self) -> dict:
        overrides = {}
        if self._clock is not None:
            overrides["clock"] = self._clock
        if self._sleep is not None:
            overrides["sleep"] = self._sleep
        return overrides

    def _validate_config(self) -> None:
        missing = self.settings.missing_run_settings()
        if missing:
            raise FreezeHistoryJobError(
                f"Missing required settings: {', '.join(missing)}",
                operation="validate_config",
                recoverable=False,
            )

    async def run_once(self, include_freezes: bool = True, include_cancellations: bool = True) -> dict:
        """
        Run one full pass over the current work items.

        Returns:
            Dict: Job execution metrics

        Raises:
            FreezeHistoryJobError: If configuration is incomplete or a sink fails
        """
        self._validate_config()
        self.metrics.reset()
        logger.info("Starting freeze history job", include_freezes=include_freezes,
                    include_cancellations=include_cancellations)

        sheets_client = GoogleSheetsClient(self.settings)
        try:
            async with RunContext.open(self.settings, **self._run_overrides()) as context:
                self._context = context
                source = CheckinsSource(self.settings, sheets_client, MomenceReportsClient(context))
                items = await source.load_work_items()
                self.metrics.work_items = len(items)

                if not items:
                    logger.warning("No member data found to process")
                else:
                    await self._process(context, items, sheets_client, include_freezes,
                                        include_cancellations)
        except FreezeHistoryJobError:
            raise
        except Exception as e:
            logger.error("Freeze history job failed", error=str(e), error_type=type(e).__name__)
            raise FreezeHistoryJobError(f"Freeze history job failed: {e}", operation="run_once") from e
        finally:
            self._context = None
            await sheets_client.close()

        self.metrics.finalize()
        metrics = self.metrics.to_dict()
        log_run_summary(
            self.metrics.membership_records,
            self.metrics.cancellation_records,
            self.metrics.total_duration_seconds,
            fetch_succeeded=self.metrics.fetch_succeeded,
            fetch_failed=self.metrics.fetch_failed,
            failures_by_kind=metrics["failures_by_kind"],
        )
        return metrics

    async def _process(
        self,
        context: RunContext,
        items: list[WorkItem],
        sheets_client: GoogleSheetsClient,
        include_freezes: bool,
        include_cancellations: bool,
    ) -> None:
        writer = SheetsReportWriter(self.settings, sheets_client)

        records: list[MembershipRecord] = []
        if include_freezes:
            records = await self.collect_membership_records(context, items)
            if context.cancelled:
                self._skip_outputs("freeze_history", len(records))
                return

        pending = []
        if include_cancellations:
            pending.append(self.collect_cancellations(context, items))
        if include_freezes:
            pending.append(self._write_freeze_outputs(records, writer))

        outcomes = await asyncio.gather(*pending)

        if include_cancellations:
            if context.cancelled:
                self._skip_outputs("cancellations", len(outcomes[0]))
                return
            cancellations: list[CancellationRecord] = outcomes[0]
            await writer.write_cancellations(
                [cancellation_to_display(c, self.display_tz) for c in cancellations]
            )

    async def collect_membership_records(
        self, context: RunContext, items: list[WorkItem]
    ) -> list[MembershipRecord]:
        """Freeze pass: fetch, reconstruct and classify every member."""
        now: datetime = context.clock()
        records: list[MembershipRecord] = []

        def on_batch(_batch_index: int, results: list[FetchResult]) -> None:
            for result in results:
                self.metrics.record_fetch(result)
                if not result.ok or not result.entries:
                    continue
                try:
                    entries = parse_history_entries(result.entries, result.item)
                    member_records = self.reconstructor.reconstruct(entries, now)
                    records.extend(self.classifier.apply(member_records))
                except Exception as e:
                    self._processing_failed(result.item, e, "freeze_history")

        scheduler = BatchScheduler.from_context(context, pass_name="freeze_history")
        await scheduler.run(items, on_batch=on_batch)
        self.metrics.membership_records = len(records)
        return records

    async def collect_cancellations(
        self, context: RunContext, items: list[WorkItem]
    ) -> list[CancellationRecord]:
        """Cancellation pass over the same work items."""
        cancellations: list[CancellationRecord] = []

        def on_batch(_batch_index: int, results: list[FetchResult]) -> None:
            for result in results:
                if not result.ok:
                    logger.warning(
                        "Failed to get cancellation data",
                        member_id=result.item.member_id,
                        host_id=result.item.host_id,
                        error=result.error.message,
                    )
                    continue
                try:
                    entries = parse_history_entries(result.entries or [], result.item)
                    cancellations.extend(self.extractor.extract(entries, result.item))
                except Exception as e:
                    self._processing_failed(result.item, e, "cancellations")

        scheduler = BatchScheduler.from_context(context, pass_name="cancellations")
        await scheduler.run(items, on_batch=on_batch)
        self.metrics.cancellation_records = len(cancellations)
        logger.info("Cancellation records extracted", count=len(cancellations))
        return cancellations

    def _processing_failed(self, item: WorkItem, error: Exception, pass_name: str) -> None:
        logger.error(
            "Failed to process member history",
            pass_name=pass_name,
            member_id=item.member_id,
            host_id=item.host_id,
            error=str(error),
            error_type=type(error).__name__,
        )
        self.metrics.record_processing_error(item, error)

    def _skip_outputs(self, pass_name: str, record_count: int) -> None:
        # Partial results must not replace the last complete report
        self.metrics.cancelled = True
        logger.warning(
            "Run cancelled, outputs left untouched",
            pass_name=pass_name,
            records_discarded=record_count,
        )

    async def _write_freeze_outputs(
        self, records: list[MembershipRecord], writer: SheetsReportWriter
    ) -> None:
        rows = [membership_to_display(record, self.display_tz) for record in records]
        await asyncio.gather(
            asyncio.to_thread(write_json, rows, self.settings.OUTPUT_JSON_PATH),
            asyncio.to_thread(write_csv, rows, self.settings.OUTPUT_CSV_PATH),
            writer.write_freezes(rows),
        )


def _install_signal_handlers(job: FreezeHistoryJob) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, job.cancel)
        loop.add_signal_handler(signal.SIGTERM, job.cancel)
    except (NotImplementedError, RuntimeError, ValueError):
        # Not supported on this platform / loop
        logger.debug("Signal handlers unavailable; cancellation only via KeyboardInterrupt")


async def run_freeze_history_job() -> dict:
    """Worker entry point for the full freeze + cancellation run."""
    job = FreezeHistoryJob()
    _install_signal_handlers(job)
    return await job.run_once()


async def run_cancellations_job() -> dict:
    """Worker entry point for a cancellation-only run."""
    job = FreezeHistoryJob()
    _install_signal_handlers(job)
    return await job.run_once(include_freezes=False)


if __name__ == "__main__":
    asyncio.run(run_freeze_history_job())
