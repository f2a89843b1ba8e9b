"""
Raw history entries as returned by the Momence customer history endpoint.

The upstream returns a heterogeneous list tagged by ``type``. Only the
``session`` and ``membership`` variants matter to the pipeline; every
other type is dropped while parsing.
"""

from datetime import UTC, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from app.infrastructure.observability.logging import get_logger

from .models import WorkItem

logger = get_logger(__name__)

FREEZE_ACTIVITY = "bought-membership-freezed"
UNFREEZE_ACTIVITY = "bought-membership-unfreezed"
CANCELLED_BY_MEMBER_ACTIVITY = "session-booking-cancelled-by-member"
CANCELLED_BY_HOST_ACTIVITY = "session-booking-cancelled-by-host"
CANCELLATION_ACTIVITIES = frozenset({CANCELLED_BY_MEMBER_ACTIVITY, CANCELLED_BY_HOST_ACTIVITY})

KNOWN_ENTRY_TYPES = frozenset({"session", "membership"})


class MalformedLogError(ValueError):
    """A history entry is missing the fields that link it to a membership."""

    def __init__(self, message: str, entry_type: str | None = None, entry_id: Any = None):
        super().__init__(message)
        self.entry_type = entry_type
        self.entry_id = entry_id


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an upstream timestamp into an aware UTC datetime, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    # Naive timestamps are UTC upstream
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class Activity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = ""
    created_at: datetime | None = Field(default=None, alias="createdAt")
    created_by: Any = Field(default=None, alias="createdBy")
    triggered_by: Any = Field(default=None, alias="triggeredBy")
    payload: Any = None

    @field_validator("created_at", mode="before")
    @classmethod
    def _lenient_created_at(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @property
    def triggered_by_name(self) -> str | None:
        if not isinstance(self.triggered_by, dict) or not self.triggered_by:
            return None
        first = self.triggered_by.get("firstName") or ""
        last = self.triggered_by.get("lastName") or ""
        return f"{first} {last}"


class _HistoryEntryBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Any = None
    member_id: int | None = Field(default=None, alias="memberId")
    host_id: str | None = Field(default=None, alias="hostId")
    member_name: str | None = Field(default=None, alias="memberName")
    location_id: Any = Field(default=None, alias="locationId")
    location_name: str | None = Field(default=None, alias="locationName")
    membership_id: Any = Field(default=None, alias="membershipId")
    membership_name: str | None = Field(default=None, alias="membershipName")
    payment_method: str | None = Field(default=None, alias="paymentMethod")
    payment_source: str | None = Field(default=None, alias="paymentSource")
    activities: list[Activity] = Field(default_factory=list)

    @field_validator("host_id", mode="before")
    @classmethod
    def _host_id_as_str(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("activities", mode="before")
    @classmethod
    def _null_activities(cls, value: Any) -> Any:
        return value or []


class SessionEntry(_HistoryEntryBase):
    type: Literal["session"]
    bought_membership_id: int | str | None = Field(default=None, alias="boughtMembershipId")
    session_id: Any = Field(default=None, alias="sessionId")
    session_name: str | None = Field(default=None, alias="sessionName")
    starts_at: datetime | None = Field(default=None, alias="startsAt")
    booking_id: Any = Field(default=None, alias="bookingId")
    teacher_id: Any = Field(default=None, alias="teacherId")
    teacher_name: str | None = Field(default=None, alias="teacherName")
    is_late_cancelled: bool | None = Field(default=None, alias="isLateCancelled")
    is_cancelled_after_cut_off: bool | None = Field(default=None, alias="isCancelledAfterCutOff")
    paying_member_name: str | None = Field(default=None, alias="payingMemberName")

    @field_validator("starts_at", mode="before")
    @classmethod
    def _lenient_starts_at(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)


class MembershipEntry(_HistoryEntryBase):
    type: Literal["membership"]
    bought_membership_id: int | str = Field(alias="boughtMembershipId")
    timestamp: datetime | None = None
    discount_code: Any = Field(default=None, alias="discountCode")
    start_date: datetime | None = Field(default=None, alias="startDate")
    end_date: datetime | None = Field(default=None, alias="endDate")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    classes_left: Any = Field(default=None, alias="classesLeft")
    usage_limit_for_sessions: Any = Field(default=None, alias="usageLimitForSessions")
    created_by_user_id: Any = Field(default=None, alias="createdByUserId")
    created_by_user_name: str | None = Field(default=None, alias="createdByUserName")
    is_freezed: bool | None = Field(default=None, alias="isFreezed")
    is_voided: bool | None = Field(default=None, alias="isVoided")
    money_left: Any = Field(default=None, alias="moneyLeft")
    payment_transaction_id: Any = Field(default=None, alias="paymentTransactionId")
    sale_item_id: Any = Field(default=None, alias="saleItemId")
    membership_type: str | None = Field(default=None, alias="membershipType")
    paid: Any = None

    @field_validator("timestamp", "start_date", "end_date", "created_at", mode="before")
    @classmethod
    def _lenient_dates(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)


HistoryEntry = Annotated[Union[SessionEntry, MembershipEntry], Field(discriminator="type")]

_history_entry_adapter: TypeAdapter[HistoryEntry] = TypeAdapter(HistoryEntry)


def parse_history_entry(raw: Any, item: WorkItem | None = None) -> HistoryEntry | None:
    """
    Parse one raw entry into its tagged variant.

    Returns None for entry types the pipeline does not use. Member and host
    ids missing from the entry are filled from the work item it was
    fetched for.

    Raises:
        MalformedLogError: If a known entry type cannot be validated
    """
    if not isinstance(raw, dict):
        raise MalformedLogError(f"History entry is not an object: {type(raw).__name__}")

    entry_type = raw.get("type")
    if not isinstance(entry_type, str) or entry_type not in KNOWN_ENTRY_TYPES:
        return None

    data = dict(raw)
    if item is not None:
        if data.get("memberId") is None:
            data["memberId"] = item.member_id
        if data.get("hostId") in (None, ""):
            data["hostId"] = item.host_id

    try:
        return _history_entry_adapter.validate_python(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"][1:]) for err in e.errors()})
        raise MalformedLogError(
            f"Invalid {entry_type} entry: {', '.join(fields)}",
            entry_type=entry_type,
            entry_id=raw.get("id"),
        ) from e


def parse_history_entries(raw_entries: list[Any], item: WorkItem | None = None) -> list[HistoryEntry]:
    """Parse a member's raw history, skipping malformed entries."""
    entries: list[HistoryEntry] = []
    for raw in raw_entries or []:
        try:
            entry = parse_history_entry(raw, item)
        except MalformedLogError as e:
            logger.warning(
                "Skipping malformed history entry",
                member_id=item.member_id if item else None,
                host_id=item.host_id if item else None,
                entry_type=e.entry_type,
                entry_id=e.entry_id,
                error=str(e),
            )
            continue
        if entry is not None:
            entries.append(entry)
    return entries
