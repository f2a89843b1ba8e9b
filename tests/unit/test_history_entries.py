from datetime import UTC, datetime

import pytest

from app.features.freeze_history.domain.history import (
    MalformedLogError,
    MembershipEntry,
    SessionEntry,
    parse_history_entries,
    parse_history_entry,
    parse_timestamp,
)
from app.features.freeze_history.domain.models import WorkItem

ITEM = WorkItem(member_id=5, host_id="13752")


def test_parse_timestamp_variants():
    expected = datetime(2025, 1, 1, 10, 0, tzinfo=UTC)

    assert parse_timestamp("2025-01-01T10:00:00Z") == expected
    assert parse_timestamp("2025-01-01T15:30:00+05:30") == expected
    assert parse_timestamp("2025-01-01T10:00:00") == expected
    assert parse_timestamp(datetime(2025, 1, 1, 10, 0)) == expected
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(12345) is None


def test_entries_are_dispatched_on_type():
    session = parse_history_entry({"type": "session", "boughtMembershipId": "bm-1"}, ITEM)
    membership = parse_history_entry({"type": "membership", "boughtMembershipId": 9}, ITEM)

    assert isinstance(session, SessionEntry)
    assert session.bought_membership_id == "bm-1"
    assert isinstance(membership, MembershipEntry)
    assert membership.member_id == 5
    assert membership.host_id == "13752"


def test_unknown_type_returns_none():
    assert parse_history_entry({"type": "giftcard"}, ITEM) is None
    assert parse_history_entry({}, ITEM) is None


def test_membership_without_bought_id_is_malformed():
    with pytest.raises(MalformedLogError) as exc:
        parse_history_entry({"type": "membership", "id": "h-7"}, ITEM)

    assert exc.value.entry_type == "membership"
    assert exc.value.entry_id == "h-7"
    assert "boughtMembershipId" in str(exc.value)


def test_non_object_entry_is_malformed():
    with pytest.raises(MalformedLogError):
        parse_history_entry(["membership"], ITEM)


def test_null_activities_become_empty():
    entry = parse_history_entry(
        {"type": "membership", "boughtMembershipId": 9, "activities": None}, ITEM
    )

    assert entry.activities == []


def test_triggered_by_name_joins_first_and_last():
    entry = parse_history_entry(
        {
            "type": "session",
            "activities": [{"type": "x", "triggeredBy": {"firstName": "Mira", "lastName": "S"}}],
        },
        ITEM,
    )

    assert entry.activities[0].triggered_by_name == "Mira S"


def test_malformed_entries_are_skipped_not_fatal():
    entries = parse_history_entries(
        [
            "garbage",
            {"type": "membership"},
            {"type": "membership", "boughtMembershipId": 1},
            {"type": "session", "memberId": "not-a-number"},
        ],
        ITEM,
    )

    assert len(entries) == 1
    assert entries[0].bought_membership_id == 1


def test_unhashable_type_is_skipped():
    entries = parse_history_entries(
        [
            {"type": ["session"]},
            {"type": {"kind": "membership"}},
            {"type": "membership", "boughtMembershipId": 1},
        ],
        ITEM,
    )

    assert len(entries) == 1
    assert entries[0].bought_membership_id == 1


def test_opaque_activity_fields_are_kept():
    entry = parse_history_entry(
        {
            "type": "membership",
            "boughtMembershipId": 9,
            "activities": [
                {"type": "x", "triggeredBy": "system", "payload": "opaque-string"},
                {"type": "y", "triggeredBy": None, "payload": [1, 2]},
            ],
        },
        ITEM,
    )

    assert [a.payload for a in entry.activities] == ["opaque-string", [1, 2]]
    assert entry.activities[0].triggered_by_name is None
    assert entry.activities[1].triggered_by_name is None
