"""
Domain subpackage for the freeze history feature.
"""

from .history import (
    Activity,
    HistoryEntry,
    MalformedLogError,
    MembershipEntry,
    SessionEntry,
    parse_history_entries,
)
from .models import (
    CancellationRecord,
    ComplianceStatus,
    FetchError,
    FetchErrorKind,
    FetchResult,
    FreezeEvent,
    FreezeEventKind,
    FreezeInterval,
    MembershipRecord,
    PolicyRule,
    WorkItem,
)

__all__ = [
    "Activity",
    "CancellationRecord",
    "ComplianceStatus",
    "FetchError",
    "FetchErrorKind",
    "FetchResult",
    "FreezeEvent",
    "FreezeEventKind",
    "FreezeInterval",
    "HistoryEntry",
    "MalformedLogError",
    "MembershipEntry",
    "MembershipRecord",
    "PolicyRule",
    "SessionEntry",
    "WorkItem",
    "parse_history_entries",
]
