"""
Google Sheets sink.

Replaces the Freezes and Cancellations tabs wholesale on every run:
clear, header row, then data rows in chunks.
"""

from typing import Any

from app.config import Settings
from app.infrastructure.observability.logging import get_logger
from app.services.google_sheets_client import GoogleSheetsClient, column_letter

from .formatting import CANCELLATION_SHEET_COLUMNS, FREEZE_SHEET_COLUMNS, to_row

logger = get_logger(__name__)


class SheetsReportWriter:
    def __init__(self, settings: Settings, sheets_client: GoogleSheetsClient):
        self._settings = settings
        self._sheets = sheets_client

    async def write_freezes(self, rows: list[dict[str, Any]]) -> int:
        return await self._replace_sheet(
            self._settings.FREEZES_SHEET_NAME, FREEZE_SHEET_COLUMNS, rows
        )

    async def write_cancellations(self, rows: list[dict[str, Any]]) -> int:
        return await self._replace_sheet(
            self._settings.CANCELLATIONS_SHEET_NAME, CANCELLATION_SHEET_COLUMNS, rows
        )

    async def _replace_sheet(
        self, sheet_name: str, columns: list[tuple[str, str]], rows: list[dict[str, Any]]
    ) -> int:
        if not rows:
            logger.info("No data to write to Google Sheets", sheet=sheet_name)
            return 0

        spreadsheet_id = self._settings.SPREADSHEET_ID
        last_column = column_letter(len(columns) - 1)
        chunk_size = self._settings.SHEETS_WRITE_CHUNK_SIZE

        await self._sheets.clear_values(spreadsheet_id, f"{sheet_name}!A:{last_column}")
        await self._sheets.update_values(
            spreadsheet_id,
            f"{sheet_name}!A1:{last_column}1",
            [[title for _key, title in columns]],
        )

        for offset in range(0, len(rows), chunk_size):
            chunk = [to_row(row, columns) for row in rows[offset : offset + chunk_size]]
            # Row 1 holds the header and sheets are 1-indexed
            start_row = offset + 2
            end_row = start_row + len(chunk) - 1
            await self._sheets.update_values(
                spreadsheet_id, f"{sheet_name}!A{start_row}:{last_column}{end_row}", chunk
            )
            logger.info(
                "Wrote sheet chunk",
                sheet=sheet_name,
                chunk=offset // chunk_size + 1,
                written=min(offset + chunk_size, len(rows)),
                total=len(rows),
            )

        logger.info("Wrote rows to Google Sheets", sheet=sheet_name, rows=len(rows))
        return len(rows)
