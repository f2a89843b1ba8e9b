"""
Cancellation extraction.

A second read of the same member histories: every session booking
cancellation activity becomes one CancellationRecord. No linkage to the
freeze intervals.
"""

from app.features.freeze_history.domain.history import (
    CANCELLATION_ACTIVITIES,
    Activity,
    HistoryEntry,
    SessionEntry,
)
from app.features.freeze_history.domain.models import CancellationRecord, WorkItem


class CancellationExtractor:
    def extract(self, entries: list[HistoryEntry], item: WorkItem | None = None) -> list[CancellationRecord]:
        records: list[CancellationRecord] = []
        for entry in entries:
            if not isinstance(entry, SessionEntry):
                continue
            for activity in entry.activities:
                if activity.type in CANCELLATION_ACTIVITIES:
                    records.append(self._build_record(entry, activity, item))
        return records

    def _build_record(
        self, entry: SessionEntry, activity: Activity, item: WorkItem | None
    ) -> CancellationRecord:
        payload = activity.payload if isinstance(activity.payload, dict) else {}
        member_id = entry.member_id
        host_id = entry.host_id
        if item is not None:
            member_id = member_id if member_id is not None else item.member_id
            host_id = host_id or item.host_id

        return CancellationRecord(
            member_id=member_id,
            member_name=entry.paying_member_name or entry.member_name,
            host_id=host_id,
            session_id=entry.session_id,
            session_name=entry.session_name,
            session_starts_at=entry.starts_at,
            booking_id=entry.booking_id,
            cancellation_type=activity.type,
            cancelled_at=activity.created_at,
            cancelled_by_user_id=activity.created_by,
            cancelled_by_user_name=activity.triggered_by_name,
            location_id=entry.location_id,
            location_name=entry.location_name,
            teacher_id=entry.teacher_id,
            teacher_name=entry.teacher_name,
            is_late_cancelled=entry.is_late_cancelled,
            is_cancelled_after_cut_off=entry.is_cancelled_after_cut_off,
            membership_id=entry.membership_id,
            membership_name=entry.membership_name,
            bought_membership_id=entry.bought_membership_id,
            payment_method=entry.payment_method,
            payment_source=entry.payment_source,
            refund_amount_in_money_credits=payload.get("refundAmountInMoneyCredits") or 0,
            refund_amount_in_event_credits=payload.get("refundAmountInEventCredits") or 0,
            is_member_refunded=bool(payload.get("isMemberRefunded") or False),
        )


cancellation_extractor = CancellationExtractor()
