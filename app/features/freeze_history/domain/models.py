"""
Domain models for the freeze history feature.

These lightweight dataclasses describe the shapes the pipeline produces
after the raw upstream history has been parsed. Timestamps stay as aware
datetimes here; display formatting happens at the sink boundary.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True, order=True)
class WorkItem:
    """One member's history to fetch from one host."""

    member_id: int
    host_id: str


class FetchErrorKind(str, Enum):
    RATE_LIMIT_EXHAUSTED = "rate_limit_exhausted"
    SERVER_FAULT_EXHAUSTED = "server_fault_exhausted"
    PERMANENT = "permanent"


@dataclass(slots=True)
class FetchError:
    """Terminal failure for a single work item."""

    kind: FetchErrorKind
    message: str
    status_code: int | None = None
    attempts: int = 1
    waited_seconds: float = 0.0


@dataclass(slots=True)
class FetchResult:
    """Outcome of fetching one work item; exactly one of entries/error is set."""

    item: WorkItem
    entries: list[dict[str, Any]] | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FreezeEventKind(str, Enum):
    FREEZE = "freeze"
    UNFREEZE = "unfreeze"


@dataclass(frozen=True, slots=True)
class FreezeEvent:
    kind: FreezeEventKind
    at: datetime


@dataclass(frozen=True, slots=True)
class FreezeInterval:
    """A freeze period; ``end`` is None while the freeze is ongoing."""

    start: datetime
    end: datetime | None
    days: int

    @property
    def is_ongoing(self) -> bool:
        return self.end is None


@dataclass(frozen=True, slots=True)
class PolicyRule:
    max_attempts: int
    max_days: int


class ComplianceStatus(str, Enum):
    WITHIN_LIMITS = "Within Limits"
    EXCEEDED = "Exceeded"


@dataclass(slots=True)
class MembershipRecord:
    """Aggregated view of one purchased membership."""

    member_id: int | None
    host_id: str | None
    bought_membership_id: int | str
    history_id: Any = None
    history_type: str = "membership"
    timestamp: datetime | None = None
    discount_code: Any = None
    member_name: str | None = None
    membership_name: str | None = None
    membership_id: Any = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    classes_left: Any = None
    usage_limit_for_sessions: Any = None
    created_at: datetime | None = None
    created_by_user_id: Any = None
    created_by_user_name: str | None = None
    is_freezed: bool | None = None
    is_voided: bool | None = None
    money_left: Any = None
    payment_transaction_id: Any = None
    sale_item_id: Any = None
    membership_type: str | None = None
    payment_method: str | None = None
    payment_source: str | None = None
    amount_paid: Any = None
    sessions_attended: int = 0
    location_id: Any = None
    location_name: str | None = None
    freeze_attempts: int = 0
    frozen_days: int = 0
    freeze_start_date: datetime | None = None
    freeze_end_date: datetime | None = None
    freeze_intervals: list[FreezeInterval] = field(default_factory=list)
    permitted_freeze_attempts: int = 0
    permitted_freeze_days: int = 0
    status: ComplianceStatus | None = None

    @property
    def key(self) -> tuple[int | None, int | str]:
        return (self.member_id, self.bought_membership_id)


@dataclass(slots=True)
class CancellationRecord:
    """One session booking cancellation, copied from the activity verbatim."""

    member_id: Any
    member_name: str | None
    host_id: Any
    session_id: Any
    session_name: str | None
    session_starts_at: datetime | None
    booking_id: Any
    cancellation_type: str
    cancelled_at: datetime | None
    cancelled_by_user_id: Any
    cancelled_by_user_name: str | None
    location_id: Any
    location_name: str | None
    teacher_id: Any
    teacher_name: str | None
    is_late_cancelled: bool | None
    is_cancelled_after_cut_off: bool | None
    membership_id: Any
    membership_name: str | None
    bought_membership_id: Any
    payment_method: str | None
    payment_source: str | None
    refund_amount_in_money_credits: Any = 0
    refund_amount_in_event_credits: Any = 0
    is_member_refunded: bool = False
