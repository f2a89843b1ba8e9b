"""
Work item source.

Reads member/host pairs from the check-ins spreadsheet. Only an empty
sheet or a failed read switches to the async report fallback; any
non-empty primary result is used as-is.
"""

from app.config import Settings
from app.features.freeze_history.domain.models import WorkItem
from app.features.freeze_history.pipeline.work_items import build_work_items
from app.infrastructure.observability.logging import get_logger
from app.services.google_sheets_client import GoogleSheetsClient, GoogleSheetsError, column_letter

from .momence_reports import MomenceReportsClient

logger = get_logger(__name__)


class CheckinsSource:
    def __init__(
        self,
        settings: Settings,
        sheets_client: GoogleSheetsClient,
        reports_client: MomenceReportsClient,
    ):
        self._settings = settings
        self._sheets = sheets_client
        self._reports = reports_client

    @property
    def checkins_range(self) -> str:
        last_column = max(
            self._settings.CHECKINS_MEMBER_ID_COLUMN, self._settings.CHECKINS_HOST_ID_COLUMN
        )
        return f"{self._settings.CHECKINS_SHEET_NAME}!A:{column_letter(last_column)}"

    async def load_work_items(self) -> list[WorkItem]:
        try:
            rows = await self._sheets.get_values(
                self._settings.CHECKINS_SPREADSHEET_ID, self.checkins_range
            )
        except GoogleSheetsError as e:
            logger.error(
                "Error reading check-ins sheet, falling back to async reports",
                error=str(e),
                status_code=e.status_code,
            )
            return await self._load_from_reports()

        items = self._items_from_rows(rows)
        if not items:
            logger.warning(
                "No member pairs in check-ins sheet, falling back to async reports",
                sheet=self._settings.CHECKINS_SHEET_NAME,
                rows=len(rows),
            )
            return await self._load_from_reports()

        logger.info("Loaded work items from check-ins sheet", rows=len(rows), work_items=len(items))
        return items

    def _items_from_rows(self, rows: list[list]) -> list[WorkItem]:
        member_col = self._settings.CHECKINS_MEMBER_ID_COLUMN
        host_col = self._settings.CHECKINS_HOST_ID_COLUMN
        pairs = []
        # First row is the header
        for row in rows[1:]:
            member_id = row[member_col] if member_col < len(row) else None
            host_id = row[host_col] if host_col < len(row) else None
            pairs.append((member_id, host_id))
        return build_work_items(pairs)

    async def _load_from_reports(self) -> list[WorkItem]:
        pairs = await self._reports.collect_member_pairs()
        items = build_work_items(pairs)
        logger.info("Loaded work items from async reports", work_items=len(items))
        return items
