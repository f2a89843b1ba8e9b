"""
Output sinks for the freeze history feature.
"""

from .file_writers import write_csv, write_json
from .formatting import cancellation_to_display, membership_to_display, render_freeze_pairs
from .sheets_writer import SheetsReportWriter

__all__ = [
    "SheetsReportWriter",
    "cancellation_to_display",
    "membership_to_display",
    "render_freeze_pairs",
    "write_csv",
    "write_json",
]
