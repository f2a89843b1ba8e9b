"""
History reconstruction service.

Turns one member's parsed history into MembershipRecords: session
attendance and location per purchased membership, then the freeze
intervals recovered from the membership activity stream.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from app.features.freeze_history.domain.history import (
    FREEZE_ACTIVITY,
    UNFREEZE_ACTIVITY,
    HistoryEntry,
    MembershipEntry,
    SessionEntry,
)
from app.features.freeze_history.domain.models import (
    FreezeEvent,
    FreezeEventKind,
    FreezeInterval,
    MembershipRecord,
)

ONE_DAY = timedelta(days=1)

FreezeKey = tuple[int | None, int | str]


@dataclass
class _SessionStats:
    attended: int = 0
    location_id: object = None
    location_name: str | None = None


@dataclass
class FreezeSummary:
    """Totals derived from one membership's freeze events."""

    attempts: int = 0
    frozen_days: int = 0
    first_start: datetime | None = None
    last_end: datetime | None = None
    intervals: list[FreezeInterval] = field(default_factory=list)


def elapsed_days(start: datetime, end: datetime) -> int:
    """Whole days between two instants, rounded up."""
    return math.ceil(abs(end - start) / ONE_DAY)


def pair_freeze_events(events: Iterable[FreezeEvent], now: datetime) -> FreezeSummary:
    """
    Pair freeze/unfreeze events into intervals.

    Events are sorted by time first (stable, so equal timestamps keep their
    log order). A freeze opens an interval only when none is open; an
    unfreeze closes the open interval and is dropped when nothing is open.
    An interval still open at the end is measured against ``now``.
    """
    ordered = sorted(events, key=lambda e: e.at)
    summary = FreezeSummary()
    open_start: datetime | None = None

    for event in ordered:
        if event.kind is FreezeEventKind.FREEZE:
            summary.attempts += 1
            if summary.first_start is None:
                summary.first_start = event.at
            if open_start is None:
                open_start = event.at
        elif open_start is not None:
            days = elapsed_days(open_start, event.at)
            summary.intervals.append(FreezeInterval(start=open_start, end=event.at, days=days))
            summary.frozen_days += days
            summary.last_end = event.at
            open_start = None

    if open_start is not None:
        days = elapsed_days(open_start, now)
        summary.intervals.append(FreezeInterval(start=open_start, end=None, days=days))
        summary.frozen_days += days

    return summary


class HistoryReconstructor:
    """Rebuilds per-membership records from a member's raw history."""

    def reconstruct(self, entries: list[HistoryEntry], now: datetime) -> list[MembershipRecord]:
        sessions = self._collect_session_stats(entries)

        memberships = [entry for entry in entries if isinstance(entry, MembershipEntry)]
        events = self._collect_freeze_events(memberships)

        records: list[MembershipRecord] = []
        summaries: dict[FreezeKey, FreezeSummary] = {}
        for entry in memberships:
            key = (entry.member_id, entry.bought_membership_id)
            if key not in summaries:
                summaries[key] = pair_freeze_events(events.get(key, []), now)
            record = self._build_record(entry, sessions.get(entry.bought_membership_id))
            self._apply_freeze_summary(record, summaries[key])
            records.append(record)

        return records

    def _collect_session_stats(self, entries: list[HistoryEntry]) -> dict[int | str, _SessionStats]:
        stats: dict[int | str, _SessionStats] = {}
        for entry in entries:
            if not isinstance(entry, SessionEntry) or entry.bought_membership_id is None:
                continue
            session = stats.setdefault(entry.bought_membership_id, _SessionStats())
            session.attended += 1

            # First session with a location wins
            if session.location_name is None and entry.location_id and entry.location_name:
                session.location_id = entry.location_id
                session.location_name = entry.location_name
        return stats

    def _collect_freeze_events(
        self, memberships: list[MembershipEntry]
    ) -> dict[FreezeKey, list[FreezeEvent]]:
        events: dict[FreezeKey, list[FreezeEvent]] = {}
        for entry in memberships:
            key = (entry.member_id, entry.bought_membership_id)
            bucket = events.setdefault(key, [])
            for activity in entry.activities:
                if activity.created_at is None:
                    continue
                if activity.type == FREEZE_ACTIVITY:
                    bucket.append(FreezeEvent(FreezeEventKind.FREEZE, activity.created_at))
                elif activity.type == UNFREEZE_ACTIVITY:
                    bucket.append(FreezeEvent(FreezeEventKind.UNFREEZE, activity.created_at))
        return events

    def _build_record(self, entry: MembershipEntry, session: _SessionStats | None) -> MembershipRecord:
        location_id = entry.location_id
        location_name = entry.location_name
        if session is not None and session.location_name is not None:
            location_id = session.location_id
            location_name = session.location_name

        return MembershipRecord(
            member_id=entry.member_id,
            host_id=entry.host_id,
            bought_membership_id=entry.bought_membership_id,
            history_id=entry.id,
            history_type=entry.type,
            timestamp=entry.timestamp,
            discount_code=entry.discount_code,
            member_name=entry.member_name,
            membership_name=entry.membership_name,
            membership_id=entry.membership_id,
            start_date=entry.start_date,
            end_date=entry.end_date,
            classes_left=entry.classes_left,
            usage_limit_for_sessions=entry.usage_limit_for_sessions,
            created_at=entry.created_at,
            created_by_user_id=entry.created_by_user_id,
            created_by_user_name=entry.created_by_user_name,
            is_freezed=entry.is_freezed,
            is_voided=entry.is_voided,
            money_left=entry.money_left,
            payment_transaction_id=entry.payment_transaction_id,
            sale_item_id=entry.sale_item_id,
            membership_type=entry.membership_type,
            payment_method=entry.payment_method,
            payment_source=entry.payment_source,
            amount_paid=entry.paid,
            sessions_attended=session.attended if session else 0,
            location_id=location_id,
            location_name=location_name,
        )

    def _apply_freeze_summary(self, record: MembershipRecord, summary: FreezeSummary) -> None:
        record.freeze_attempts = summary.attempts
        record.frozen_days = summary.frozen_days
        record.freeze_start_date = summary.first_start
        record.freeze_end_date = summary.last_end
        record.freeze_intervals = list(summary.intervals)


history_reconstructor = HistoryReconstructor()
