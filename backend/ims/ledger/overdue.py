"""
Outstanding-checkout / overdue detector
- Groups out and return events by (code, normalized job).
- The earliest returnDate among a group's checkouts governs lateness.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from ims.ledger.context import ReconciliationContext
from ims.ledger.events import DAY_MS, EventType, normalize_events, now_ms

GroupKey = tuple[str, str | None]


@dataclass
class CheckoutGroup:
    code: str
    job_id: str | None
    out_qty: float = 0
    ret_qty: float = 0
    min_due: int | None = None
    last_out_ts: int | None = None

    @property
    def outstanding(self) -> float:
        """Unclamped issued minus returned."""
        return self.out_qty - self.ret_qty


@dataclass(frozen=True)
class OverdueRow:
    code: str
    job_id: str | None
    outstanding: float
    min_due: int
    days_late: int
    last_out_ts: int | None
    name: str | None = None
    job_name: str | None = None


def outstanding_by_group(events: Iterable[Any]) -> dict[GroupKey, CheckoutGroup]:
    groups: dict[GroupKey, CheckoutGroup] = {}
    for event in normalize_events(events):
        if event.type not in (EventType.OUT, EventType.RETURN):
            continue
        if not event.code or event.qty <= 0:
            continue
        key = (event.code, event.job_id)
        group = groups.get(key)
        if group is None:
            group = groups[key] = CheckoutGroup(code=event.code, job_id=event.job_id)
        if event.type == EventType.OUT:
            group.out_qty += event.qty
            if event.ts is not None and (group.last_out_ts is None or event.ts > group.last_out_ts):
                group.last_out_ts = event.ts
            if event.return_date is not None and (
                group.min_due is None or event.return_date < group.min_due
            ):
                group.min_due = event.return_date
        else:
            group.ret_qty += event.qty
    return groups


def outstanding_checkout(events: Iterable[Any], code: str, job_id: str | None = None) -> float:
    """Unclamped outstanding quantity for one (code, job) pair."""
    group = outstanding_by_group(events).get(((code or "").strip(), job_id))
    return group.outstanding if group is not None else 0


def build_overdue_rows(
    events: Iterable[Any],
    now: int | None = None,
    context: ReconciliationContext | None = None,
) -> list[OverdueRow]:
    """Overdue groups, most days late first."""
    if now is None:
        now = context.now if context is not None else now_ms()

    groups = outstanding_by_group(events)
    rows = []
    for code, job_id in sorted(groups, key=lambda k: (k[0], k[1] or "")):
        group = groups[(code, job_id)]
        outstanding = max(0, group.outstanding)
        if outstanding <= 0 or group.min_due is None or group.min_due >= now:
            continue
        rows.append(OverdueRow(
            code=group.code,
            job_id=group.job_id,
            outstanding=outstanding,
            min_due=group.min_due,
            days_late=(now - group.min_due) // DAY_MS,
            last_out_ts=group.last_out_ts,
            name=context.item_name(group.code) if context is not None else None,
            job_name=context.job_label(group.job_id) if context is not None else None,
        ))
    rows.sort(key=lambda r: r.days_late, reverse=True)
    return rows
