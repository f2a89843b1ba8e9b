"""
Local file sinks: the JSON dataset and the CSV freeze report.
"""

import csv
import json
from pathlib import Path
from typing import Any

from app.infrastructure.observability.logging import get_logger

from .formatting import FREEZE_CSV_COLUMNS, to_row

logger = get_logger(__name__)


def write_json(rows: list[dict[str, Any]], path: Path) -> int:
    """Write display rows as a JSON array, one record per line."""
    if not rows:
        logger.info("No data to write to JSON", path=str(path))
        return 0

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("[\n")
        for index, row in enumerate(rows):
            f.write(json.dumps(row, ensure_ascii=False, default=str))
            f.write(",\n" if index < len(rows) - 1 else "\n")
        f.write("]")

    logger.info("Wrote JSON output", path=str(path), rows=len(rows))
    return len(rows)


def write_csv(rows: list[dict[str, Any]], path: Path) -> int:
    if not rows:
        logger.info("No data to write to CSV", path=str(path))
        return 0

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([title for _key, title in FREEZE_CSV_COLUMNS])
        for row in rows:
            writer.writerow(to_row(row, FREEZE_CSV_COLUMNS))

    logger.info("Wrote CSV output", path=str(path), rows=len(rows))
    return len(rows)
