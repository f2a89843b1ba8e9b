"""
Momence async session-bookings reports.

Fallback source of member ids when the check-ins sheet yields nothing:
trigger one report run per host, poll each run until it completes, then
read the member ids out of the finished report.
"""

import asyncio
from typing import Any

import httpx

from app.features.freeze_history.services.run_context import RunContext
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_FAILED_STATES = {"FAILED", "ERROR"}


class MomenceReportError(Exception):
    """Custom exception for async report operations."""

    def __init__(self, message: str, host_id: str | None = None, report_run_id: str | None = None):
        super().__init__(message)
        self.host_id = host_id
        self.report_run_id = report_run_id


class MomenceReportTimeoutError(MomenceReportError):
    """Report run did not finish within the polling budget."""


class MomenceReportCancelledError(MomenceReportError):
    """The run was cancelled while a report was still being polled."""


def _upper(value: Any) -> str:
    return value.upper() if isinstance(value, str) else ""


def is_report_completed(status: dict) -> bool:
    data = status.get("data")
    return (
        _upper(status.get("status")) in {"COMPLETED", "SUCCESS"}
        or _upper(status.get("state")) in {"COMPLETED", "FINISHED"}
        or status.get("completed") is True
        or status.get("isCompleted") is True
        or (isinstance(data, dict) and isinstance(data.get("items"), list))
    )


def is_report_failed(status: dict) -> bool:
    return (
        _upper(status.get("status")) in _FAILED_STATES
        or _upper(status.get("state")) == "FAILED"
        or status.get("error") is True
        or status.get("failed") is True
    )


class MomenceReportsClient:
    def __init__(self, context: RunContext):
        self._context = context
        self._settings = context.settings

    def _host_reports_url(self, host_id: str) -> str:
        base = self._settings.MOMENCE_API_BASE_URL.rstrip("/")
        return f"{base}/host/{host_id}/reports/session-bookings"

    def _report_payload(self) -> dict:
        settings = self._settings
        return {
            "timeZone": settings.REPORT_TIME_ZONE,
            "startDate": settings.REPORT_START_DATE,
            "endDate": settings.REPORT_END_DATE,
            "includeVatInRevenue": True,
            "computedSaleValue": True,
            "membershipTagIds": [],
            "sessionTagIds": [],
        }

    async def trigger_report(self, host_id: str) -> str:
        url = f"{self._host_reports_url(host_id)}/async"
        try:
            response = await self._context.client.post(url, json=self._report_payload())
            response.raise_for_status()
            report_run_id = response.json().get("reportRunId")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            raise MomenceReportError(f"Failed to trigger report: {e}", host_id=host_id) from e

        if not report_run_id:
            raise MomenceReportError("Report trigger returned no reportRunId", host_id=host_id)

        logger.info("Report triggered", host_id=host_id, report_run_id=report_run_id)
        return str(report_run_id)

    async def poll_report(self, host_id: str, report_run_id: str) -> dict:
        """
        Poll a report run until it completes.

        Raises:
            MomenceReportError: If the run fails or the status call errors
            MomenceReportTimeoutError: If MAX_POLLING_ATTEMPTS is exhausted
        """
        url = f"{self._host_reports_url(host_id)}/report-runs/{report_run_id}"
        max_attempts = self._settings.MAX_POLLING_ATTEMPTS

        for attempt in range(1, max_attempts + 1):
            if self._context.cancelled:
                raise MomenceReportCancelledError(
                    f"Polling of report {report_run_id} cancelled",
                    host_id=host_id,
                    report_run_id=report_run_id,
                )

            try:
                response = await self._context.client.get(url)
                response.raise_for_status()
                status = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(
                    "Error polling report",
                    host_id=host_id,
                    report_run_id=report_run_id,
                    error=str(e),
                )
                raise MomenceReportError(
                    f"Polling failed: {e}", host_id=host_id, report_run_id=report_run_id
                ) from e

            if not isinstance(status, dict):
                raise MomenceReportError(
                    "Unexpected report status payload", host_id=host_id, report_run_id=report_run_id
                )

            if is_report_completed(status):
                logger.info("Report completed", host_id=host_id, report_run_id=report_run_id)
                return status
            if is_report_failed(status):
                raise MomenceReportError(
                    f"Report run {report_run_id} for host {host_id} failed",
                    host_id=host_id,
                    report_run_id=report_run_id,
                )

            logger.info(
                "Report still running",
                host_id=host_id,
                report_run_id=report_run_id,
                state=status.get("status") or status.get("state") or "UNKNOWN",
                attempt=attempt,
            )
            await self._context.sleep(self._settings.POLLING_INTERVAL_SECONDS)

        raise MomenceReportTimeoutError(
            f"Report {report_run_id} timed out after {max_attempts} attempts.",
            host_id=host_id,
            report_run_id=report_run_id,
        )

    async def _pairs_for_host(self, host_id: str) -> list[tuple[Any, str]]:
        report_run_id = await self.trigger_report(host_id)
        report = await self.poll_report(host_id, report_run_id)
        items = (report.get("reportData") or {}).get("items") or []
        return [(item.get("memberId"), host_id) for item in items if isinstance(item, dict) and item.get("memberId")]

    async def collect_member_pairs(self, host_ids: list[str] | None = None) -> list[tuple[Any, str]]:
        """Run one report per host and return the raw member/host pairs found."""
        hosts = list(host_ids if host_ids is not None else self._settings.REPORT_HOST_IDS)
        outcomes = await asyncio.gather(
            *(self._pairs_for_host(host_id) for host_id in hosts), return_exceptions=True
        )

        pairs: list[tuple[Any, str]] = []
        for host_id, outcome in zip(hosts, outcomes):
            if isinstance(outcome, MomenceReportError):
                logger.error("Skipping host report", host_id=host_id, error=str(outcome))
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            pairs.extend(outcome)

        logger.info("Collected member pairs from async reports", hosts=len(hosts), pairs=len(pairs))
        return pairs
