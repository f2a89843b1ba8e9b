"""
Work item normalization.

Every source (check-ins sheet, async reports) yields loose
``(member_id, host_id)`` pairs; this module turns them into the
deduplicated WorkItem list the scheduler consumes.
"""

from collections.abc import Iterable
from typing import Any

from app.features.freeze_history.domain.models import WorkItem


def _normalize_member_id(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        # Sheets sometimes hand back "1234.0"
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None


def _normalize_host_id(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_work_items(pairs: Iterable[tuple[Any, Any]]) -> list[WorkItem]:
    """
    Deduplicate member/host pairs into work items.

    Order is first-seen order of the input, so a fixed input always yields
    the same sequence. Pairs missing either id are dropped.
    """
    seen: set[WorkItem] = set()
    items: list[WorkItem] = []

    for member_value, host_value in pairs:
        member_id = _normalize_member_id(member_value)
        host_id = _normalize_host_id(host_value)
        if member_id is None or host_id is None:
            continue

        item = WorkItem(member_id=member_id, host_id=host_id)
        if item in seen:
            continue
        seen.add(item)
        items.append(item)

    return items
