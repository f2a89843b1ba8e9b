"""
Display formatting for pipeline output.

Records keep aware datetimes internally; this module is the only place
they are rendered, in the configured display timezone.
"""

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from app.features.freeze_history.domain.models import (
    CancellationRecord,
    FreezeInterval,
    MembershipRecord,
)

DISPLAY_FORMAT = "%d/%m/%Y %H:%M"
MISSING = "-"
ONGOING = "Ongoing"

# (display key, column title)
FREEZE_SHEET_COLUMNS: list[tuple[str, str]] = [
    ("memberName", "Member Name"),
    ("membershipName", "Membership Name"),
    ("membershipId", "Membership Id"),
    ("memberId", "Member Id"),
    ("boughtMembershipId", "Bought Membership Id"),
    ("hostId", "Host Id"),
    ("startDate", "Start Date"),
    ("endDate", "End Date"),
    ("classesLeft", "Classes Left"),
    ("usageLimitForSessions", "Usage Limit For Sessions"),
    ("createdAt", "Created At"),
    ("createdByUserId", "Created By User Id"),
    ("createdByUserName", "Created By User Name"),
    ("isFreezed", "Is Freezed"),
    ("isVoided", "Is Voided"),
    ("moneyLeft", "Money Left"),
    ("paymentTransactionId", "Payment Transaction Id"),
    ("saleItemId", "Sale Item Id"),
    ("membershipType", "Membership Type"),
    ("paymentMethod", "Payment Method"),
    ("paymentSource", "Payment Source"),
    ("amountPaid", "Amount Paid"),
    ("sessionsAttended", "Sessions Attended"),
    ("locationId", "Location Id"),
    ("locationName", "Location Name"),
    ("freezeAttempts", "Freeze Attempts"),
    ("frozenDays", "Frozen Days"),
    ("permittedFreezeAttempts", "Permitted Freeze Attempts"),
    ("permittedFreezeDays", "Permitted Freeze Days"),
    ("status", "Status"),
    ("freezeStartDate", "Freeze Start Date"),
    ("freezeEndDate", "Freeze End Date"),
    ("allFreezePairs", "All Freeze Attempt Pairs"),
]

FREEZE_CSV_COLUMNS: list[tuple[str, str]] = [
    ("timestamp", "Timestamp"),
    ("historyType", "History Type"),
    ("historyId", "History Id"),
    ("discountCode", "Discount Code"),
    ("memberName", "Member Name"),
    ("membershipName", "Membership Name"),
    ("membershipId", "Membership Id"),
    ("memberId", "Member Id"),
    ("boughtMembershipId", "Bought Membership Id"),
    ("hostId", "Host Id"),
    ("startDate", "Start Date"),
    ("endDate", "End Date"),
    ("classesLeft", "Classes Left"),
    ("usageLimitForSessions", "Usage Limit For Sessions"),
    ("createdAt", "Created At"),
    ("paymentMethod", "Payment Method"),
    ("paymentSource", "Payment Source"),
    ("amountPaid", "Amount Paid"),
    ("sessionsAttended", "Sessions Attended"),
    ("freezeAttempts", "Freeze Attempts"),
    ("frozenDays", "Frozen Days"),
    ("permittedFreezeAttempts", "Permitted Freeze Attempts"),
    ("permittedFreezeDays", "Permitted Freeze Days"),
    ("status", "Status"),
    ("allFreezePairs", "All Freeze Attempt Pairs"),
]

CANCELLATION_SHEET_COLUMNS: list[tuple[str, str]] = [
    ("memberId", "Member Id"),
    ("memberName", "Member Name"),
    ("hostId", "Host Id"),
    ("sessionId", "Session Id"),
    ("sessionName", "Session Name"),
    ("sessionStartsAt", "Session Starts At"),
    ("bookingId", "Booking Id"),
    ("cancellationType", "Cancellation Type"),
    ("cancelledAt", "Cancelled At"),
    ("cancelledByUserId", "Cancelled By User Id"),
    ("cancelledByUserName", "Cancelled By User Name"),
    ("locationId", "Location Id"),
    ("locationName", "Location Name"),
    ("teacherId", "Teacher Id"),
    ("teacherName", "Teacher Name"),
    ("isLateCancelled", "Is Late Cancelled"),
    ("isCancelledAfterCutOff", "Is Cancelled After Cut Off"),
    ("membershipId", "Membership Id"),
    ("membershipName", "Membership Name"),
    ("boughtMembershipId", "Bought Membership Id"),
    ("paymentMethod", "Payment Method"),
    ("paymentSource", "Payment Source"),
    ("refundAmountInMoneyCredits", "Refund Amount Money Credits"),
    ("refundAmountInEventCredits", "Refund Amount Event Credits"),
    ("isMemberRefunded", "Is Member Refunded"),
]


def format_display_date(value: datetime | None, tz: ZoneInfo) -> str:
    if value is None:
        return MISSING
    return value.astimezone(tz).strftime(DISPLAY_FORMAT)


def format_value(value: Any) -> Any:
    if value is None or value == "":
        return MISSING
    return value


def render_freeze_pairs(intervals: list[FreezeInterval], tz: ZoneInfo) -> str:
    """Render intervals as ``Attempt n: start to end`` joined by `` | ``."""
    parts = []
    for number, interval in enumerate(intervals, start=1):
        end = ONGOING if interval.is_ongoing else format_display_date(interval.end, tz)
        parts.append(f"Attempt {number}: {format_display_date(interval.start, tz)} to {end}")
    return " | ".join(parts)


def membership_to_display(record: MembershipRecord, tz: ZoneInfo) -> dict[str, Any]:
    return {
        "timestamp": format_display_date(record.timestamp, tz),
        "historyType": format_value(record.history_type),
        "historyId": format_value(record.history_id),
        "discountCode": format_value(record.discount_code),
        "memberName": format_value(record.member_name),
        "membershipName": format_value(record.membership_name),
        "membershipId": format_value(record.membership_id),
        "memberId": format_value(record.member_id),
        "boughtMembershipId": format_value(record.bought_membership_id),
        "hostId": format_value(record.host_id),
        "startDate": format_display_date(record.start_date, tz),
        "endDate": format_display_date(record.end_date, tz),
        "classesLeft": format_value(record.classes_left),
        "usageLimitForSessions": format_value(record.usage_limit_for_sessions),
        "createdAt": format_display_date(record.created_at, tz),
        "createdByUserId": format_value(record.created_by_user_id),
        "createdByUserName": format_value(record.created_by_user_name),
        "isFreezed": format_value(record.is_freezed),
        "isVoided": format_value(record.is_voided),
        "moneyLeft": format_value(record.money_left),
        "paymentTransactionId": format_value(record.payment_transaction_id),
        "saleItemId": format_value(record.sale_item_id),
        "membershipType": format_value(record.membership_type),
        "paymentMethod": format_value(record.payment_method),
        "paymentSource": format_value(record.payment_source),
        "amountPaid": format_value(record.amount_paid),
        "sessionsAttended": record.sessions_attended,
        "locationId": format_value(record.location_id),
        "locationName": format_value(record.location_name),
        "freezeAttempts": record.freeze_attempts,
        "frozenDays": record.frozen_days,
        "permittedFreezeAttempts": record.permitted_freeze_attempts,
        "permittedFreezeDays": record.permitted_freeze_days,
        "status": record.status.value if record.status else "",
        "freezeStartDate": (
            format_display_date(record.freeze_start_date, tz) if record.freeze_start_date else ""
        ),
        "freezeEndDate": (
            format_display_date(record.freeze_end_date, tz) if record.freeze_end_date else ""
        ),
        "allFreezePairs": render_freeze_pairs(record.freeze_intervals, tz),
    }


def cancellation_to_display(record: CancellationRecord, tz: ZoneInfo) -> dict[str, Any]:
    return {
        "memberId": format_value(record.member_id),
        "memberName": format_value(record.member_name),
        "hostId": format_value(record.host_id),
        "sessionId": format_value(record.session_id),
        "sessionName": format_value(record.session_name),
        "sessionStartsAt": format_display_date(record.session_starts_at, tz),
        "bookingId": format_value(record.booking_id),
        "cancellationType": format_value(record.cancellation_type),
        "cancelledAt": format_display_date(record.cancelled_at, tz),
        "cancelledByUserId": format_value(record.cancelled_by_user_id),
        "cancelledByUserName": format_value(record.cancelled_by_user_name),
        "locationId": format_value(record.location_id),
        "locationName": format_value(record.location_name),
        "teacherId": format_value(record.teacher_id),
        "teacherName": format_value(record.teacher_name),
        "isLateCancelled": format_value(record.is_late_cancelled),
        "isCancelledAfterCutOff": format_value(record.is_cancelled_after_cut_off),
        "membershipId": format_value(record.membership_id),
        "membershipName": format_value(record.membership_name),
        "boughtMembershipId": format_value(record.bought_membership_id),
        "paymentMethod": format_value(record.payment_method),
        "paymentSource": format_value(record.payment_source),
        "refundAmountInMoneyCredits": format_value(record.refund_amount_in_money_credits),
        "refundAmountInEventCredits": format_value(record.refund_amount_in_event_credits),
        "isMemberRefunded": format_value(record.is_member_refunded),
    }


def to_row(display: dict[str, Any], columns: list[tuple[str, str]]) -> list[Any]:
    """Project a display dict onto a column list; missing cells become ''."""
    row = []
    for key, _title in columns:
        value = display.get(key)
        row.append("" if value is None else value)
    return row
