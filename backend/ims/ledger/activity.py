"""
Dashboard activity views built on the same fold
- low stock, top movers, counts due, per-job usage, recent activity.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from ims.ledger.balances import ItemBalance
from ims.ledger.context import ReconciliationContext
from ims.ledger.events import (
    DAY_MS, MOVEMENT_TYPES, Event, EventType, latest_counts, normalize_events,
)

RECENT_ACTIVITY_MAX = 50


@dataclass(frozen=True)
class LowStockRow:
    code: str
    name: str
    available: float
    threshold: float


@dataclass(frozen=True)
class TopMover:
    code: str
    name: str
    moved: float
    moves: int
    in_use: float


@dataclass(frozen=True)
class CountDueRow:
    code: str
    name: str
    last_counted_at: int | None
    days_since: int | None


@dataclass
class JobItemUsage:
    code: str
    name: str
    checked_in: float = 0
    checked_out: float = 0
    returned: float = 0
    reserved: float = 0
    consumed: float = 0

    @property
    def outstanding(self) -> float:
        return max(0, self.checked_out - self.returned)

    @property
    def net_usage(self) -> float:
        return self.checked_in - self.checked_out


@dataclass
class JobReport:
    job_id: str | None
    job_name: str
    closed: bool
    last_activity_ts: int | None = None
    items: list[JobItemUsage] = field(default_factory=list)

    @property
    def total_outstanding(self) -> float:
        return sum(i.outstanding for i in self.items)

    @property
    def total_reserved(self) -> float:
        return sum(max(0, i.reserved) for i in self.items)


def low_stock_threshold(code: str, context: ReconciliationContext, default: float) -> float:
    """Per-item reorder point / min stock when enabled, else the global default."""
    item = context.item(code)
    if item is not None and item.low_stock_enabled:
        if item.reorder_point is not None:
            return item.reorder_point
        if item.min_stock is not None:
            return item.min_stock
    return default


def build_low_stock_rows(
    balances: Iterable[ItemBalance],
    context: ReconciliationContext,
    threshold: float = 5,
    limit: int = 20,
) -> list[LowStockRow]:
    """Items still in stock but at or under their threshold; empty items are stockouts, not low."""
    rows = []
    for balance in balances:
        limit_qty = low_stock_threshold(balance.code, context, threshold)
        if 0 < balance.available <= limit_qty:
            rows.append(LowStockRow(balance.code, balance.name, balance.available, limit_qty))
    rows.sort(key=lambda r: (r.available, r.code))
    return rows[:limit]


def build_top_movers(
    events: Iterable[Any],
    balances: Iterable[ItemBalance],
    context: ReconciliationContext,
    days: int = 7,
    limit: int = 8,
) -> list[TopMover]:
    cutoff = context.now - days * DAY_MS
    moved: dict[str, float] = {}
    moves: dict[str, int] = {}
    for event in normalize_events(events):
        if not event.code or event.type not in MOVEMENT_TYPES or event.qty <= 0:
            continue
        if event.ts is None or event.ts < cutoff:
            continue
        moved[event.code] = moved.get(event.code, 0) + event.qty
        moves[event.code] = moves.get(event.code, 0) + 1

    checked_out = {b.code: b.checked_out for b in balances}
    rows = [
        TopMover(code, context.item_name(code), qty, moves[code], checked_out.get(code, 0))
        for code, qty in moved.items()
    ]
    rows.sort(key=lambda r: (-r.moved, r.code))
    return rows[:limit]


def build_count_due_rows(
    counts: Iterable[Any],
    context: ReconciliationContext,
    stale_days: int = 30,
) -> list[CountDueRow]:
    """Catalog items never counted or counted more than stale_days ago, stalest first."""
    latest = latest_counts(counts)
    rows = []
    for code, item in context.items.items():
        count = latest.get(code)
        counted_at = count.counted_at if count is not None else None
        days_since = (context.now - counted_at) // DAY_MS if counted_at is not None else None
        if days_since is None or days_since > stale_days:
            rows.append(CountDueRow(code, item.name, counted_at, days_since))
    rows.sort(key=lambda r: (r.days_since is not None, -(r.days_since or 0), r.code))
    return rows


def aggregate_by_job(events: Iterable[Any], context: ReconciliationContext) -> list[JobReport]:
    """Per-job item usage; unassigned movements are reported under job None."""
    reports: dict[str | None, JobReport] = {}
    usage: dict[tuple[str | None, str], JobItemUsage] = {}
    for event in normalize_events(events):
        if not event.code or event.qty <= 0 or event.type == EventType.ORDERED:
            continue
        report = reports.get(event.job_id)
        if report is None:
            report = reports[event.job_id] = JobReport(
                job_id=event.job_id,
                job_name=context.job_label(event.job_id),
                closed=context.is_job_closed(event.job_id),
            )
        if event.ts is not None and (report.last_activity_ts is None or event.ts > report.last_activity_ts):
            report.last_activity_ts = event.ts

        key = (event.job_id, event.code)
        row = usage.get(key)
        if row is None:
            row = usage[key] = JobItemUsage(event.code, context.item_name(event.code, event.name))
            report.items.append(row)
        if event.type == EventType.IN:
            row.checked_in += event.qty
        elif event.type == EventType.RETURN:
            row.checked_in += event.qty
            row.returned += event.qty
        elif event.type == EventType.OUT:
            row.checked_out += event.qty
        elif event.type == EventType.RESERVE:
            row.reserved += event.qty
        elif event.type == EventType.RESERVE_RELEASE:
            row.reserved -= event.qty
        elif event.type == EventType.CONSUME:
            row.consumed += event.qty

    for report in reports.values():
        report.items.sort(key=lambda i: i.code)
    return sorted(reports.values(), key=lambda r: (r.job_id is None, r.job_id or ""))


def recent_activity(events: Iterable[Any], limit: int = 20) -> list[Event]:
    """Newest events first; limit is clamped to 1..50."""
    limit = max(1, min(int(limit), RECENT_ACTIVITY_MAX))
    rows = [e for e in normalize_events(events) if e.code]
    rows.sort(key=lambda e: (e.ts or 0, e.id or ""), reverse=True)
    return rows[:limit]
