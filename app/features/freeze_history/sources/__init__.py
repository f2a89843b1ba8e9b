"""
Work item sources: the check-ins sheet with the async report fallback.
"""

from .checkins_source import CheckinsSource
from .momence_reports import (
    MomenceReportCancelledError,
    MomenceReportError,
    MomenceReportsClient,
    MomenceReportTimeoutError,
)

__all__ = [
    "CheckinsSource",
    "MomenceReportCancelledError",
    "MomenceReportError",
    "MomenceReportTimeoutError",
    "MomenceReportsClient",
]
