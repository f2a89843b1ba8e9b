from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from app.features.freeze_history.domain.models import (
    CancellationRecord,
    ComplianceStatus,
    FreezeInterval,
    MembershipRecord,
)
from app.features.freeze_history.sinks.formatting import (
    CANCELLATION_SHEET_COLUMNS,
    FREEZE_CSV_COLUMNS,
    FREEZE_SHEET_COLUMNS,
    cancellation_to_display,
    format_display_date,
    membership_to_display,
    render_freeze_pairs,
    to_row,
)

IST = ZoneInfo("Asia/Kolkata")


def _membership(**overrides) -> MembershipRecord:
    record = MembershipRecord(
        member_id=101,
        host_id="13752",
        bought_membership_id=900,
        member_name="Asha Rao",
        membership_name="Studio 8 Class Package",
        start_date=datetime(2025, 1, 1, 0, 0, tzinfo=UTC),
        freeze_attempts=2,
        frozen_days=9,
        permitted_freeze_attempts=1,
        permitted_freeze_days=30,
        status=ComplianceStatus.EXCEEDED,
    )
    for key, value in overrides.items():
        setattr(record, key, value)
    return record


def test_display_date_uses_display_timezone():
    assert format_display_date(datetime(2025, 1, 1, 10, 0, tzinfo=UTC), IST) == "01/01/2025 15:30"


def test_missing_date_renders_dash():
    assert format_display_date(None, IST) == "-"


def test_freeze_pairs_render_attempts_with_ongoing():
    intervals = [
        FreezeInterval(
            start=datetime(2025, 1, 1, 4, 30, tzinfo=UTC),
            end=datetime(2025, 1, 4, 4, 30, tzinfo=UTC),
            days=3,
        ),
        FreezeInterval(start=datetime(2025, 2, 1, 18, 30, tzinfo=UTC), end=None, days=6),
    ]

    rendered = render_freeze_pairs(intervals, IST)

    assert rendered == (
        "Attempt 1: 01/01/2025 10:00 to 04/01/2025 10:00 | "
        "Attempt 2: 02/02/2025 00:00 to Ongoing"
    )


def test_no_intervals_render_empty_string():
    assert render_freeze_pairs([], IST) == ""


def test_membership_display_fields():
    display = membership_to_display(_membership(), IST)

    assert display["memberName"] == "Asha Rao"
    assert display["startDate"] == "01/01/2025 05:30"
    assert display["endDate"] == "-"
    assert display["discountCode"] == "-"
    assert display["sessionsAttended"] == 0
    assert display["status"] == "Exceeded"
    assert display["freezeStartDate"] == ""
    assert display["freezeEndDate"] == ""
    assert display["allFreezePairs"] == ""


def test_every_column_has_a_display_key():
    membership_keys = set(membership_to_display(_membership(), IST))
    cancellation = CancellationRecord(
        member_id=1,
        member_name=None,
        host_id="13752",
        session_id=None,
        session_name=None,
        session_starts_at=None,
        booking_id=None,
        cancellation_type="session-booking-cancelled-by-host",
        cancelled_at=None,
        cancelled_by_user_id=None,
        cancelled_by_user_name=None,
        location_id=None,
        location_name=None,
        teacher_id=None,
        teacher_name=None,
        is_late_cancelled=None,
        is_cancelled_after_cut_off=None,
        membership_id=None,
        membership_name=None,
        bought_membership_id=None,
        payment_method=None,
        payment_source=None,
    )
    cancellation_keys = set(cancellation_to_display(cancellation, IST))

    assert len(FREEZE_SHEET_COLUMNS) == 33
    assert len(FREEZE_CSV_COLUMNS) == 25
    assert len(CANCELLATION_SHEET_COLUMNS) == 25
    assert {key for key, _ in FREEZE_SHEET_COLUMNS} <= membership_keys
    assert {key for key, _ in FREEZE_CSV_COLUMNS} <= membership_keys
    assert {key for key, _ in CANCELLATION_SHEET_COLUMNS} == cancellation_keys


def test_cancellation_display_keeps_falsy_refund_values():
    record = CancellationRecord(
        member_id=1,
        member_name="A",
        host_id="13752",
        session_id=3,
        session_name="Barre",
        session_starts_at=datetime(2025, 2, 10, 1, 30, tzinfo=UTC),
        booking_id=4,
        cancellation_type="session-booking-cancelled-by-member",
        cancelled_at=None,
        cancelled_by_user_id=None,
        cancelled_by_user_name=None,
        location_id=None,
        location_name=None,
        teacher_id=None,
        teacher_name=None,
        is_late_cancelled=False,
        is_cancelled_after_cut_off=None,
        membership_id=None,
        membership_name=None,
        bought_membership_id=None,
        payment_method=None,
        payment_source=None,
    )

    display = cancellation_to_display(record, IST)

    assert display["sessionStartsAt"] == "10/02/2025 07:00"
    assert display["cancelledAt"] == "-"
    assert display["isLateCancelled"] is False
    assert display["refundAmountInMoneyCredits"] == 0
    assert display["isMemberRefunded"] is False


def test_to_row_projects_columns_in_order():
    columns = [("b", "B"), ("a", "A"), ("missing", "Missing")]

    assert to_row({"a": 1, "b": "x"}, columns) == ["x", 1, ""]
