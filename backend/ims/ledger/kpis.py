"""
Derived KPI engine for the operations dashboard
- Pure over (events, counts, items, now, window_days).
- Every ratio returns None when its denominator is zero or nothing was
  measured, so "unavailable" is never confused with a verified 0 or 1.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from ims.ledger.balances import ItemBalance, aggregate_stock
from ims.ledger.context import ReconciliationContext
from ims.ledger.events import (
    DAY_MS, MOVEMENT_TYPES, TRANSACTION_TYPES, EventType, PhysicalCount,
    latest_counts, normalize_events, now_ms,
)
from ims.ledger.orders import build_order_balances

SLOW_MOVER_MAX_MOVES = 2
SLOW_MOVER_LIMIT = 6
TOP_USAGE_LIMIT = 6
CONCENTRATION_SHARE = 0.8


@dataclass(frozen=True)
class AccuracyResult:
    accuracy: float | None
    discrepancy_value: float
    counted_items: int


@dataclass
class MetricsSnapshot:
    generated_at: int
    window_days: int
    total_items: int = 0

    # accuracy
    accuracy: float | None = None
    discrepancy_value: float = 0
    counted_items: int = 0
    adjustment_rate: float | None = None

    # value and stock health
    inventory_value: float = 0
    inventory_trend: float | None = None
    below_reorder: int = 0
    negative_availability: int = 0
    stockouts: int = 0
    not_counted: int = 0
    dead_stock: int = 0
    service_level: float | None = None

    # throughput
    items_per_employee: float | None = None
    orders_per_day: float = 0

    # replenishment
    avg_lead_time_ms: float | None = None
    lead_time_stddev_ms: float | None = None
    on_time_rate: float | None = None
    fill_rate: float | None = None

    # turnover
    cogs: float = 0
    turnover: float | None = None
    days_on_hand: float | None = None

    # usage
    slow_movers: list[dict] = field(default_factory=list)
    top_usage: list[dict] = field(default_factory=list)
    eighty_twenty: float | None = None

    # shrinkage
    shrinkage: float | None = None
    damaged_rate: float | None = None
    write_offs: int = 0
    lost_value: float = 0


def compute_accuracy(
    balances: Iterable[ItemBalance],
    counts: dict[str, PhysicalCount],
    context: ReconciliationContext | None = None,
    since: int | None = None,
) -> AccuracyResult:
    """1 - sum|counted - system| / sum|system| over counted items.

    Items without a count (or with one older than `since`) are left out of
    both sums. A counted code the ledger has never seen has system qty 0.
    """
    system = {b.code: b.available for b in balances}
    sum_system = 0.0
    sum_diff = 0.0
    discrepancy_value = 0.0
    counted = 0
    for code, count in counts.items():
        if since is not None and (count.counted_at is None or count.counted_at < since):
            continue
        system_qty = system.get(code, 0)
        diff = abs(count.qty - system_qty)
        sum_system += abs(system_qty)
        sum_diff += diff
        discrepancy_value += diff * (context.unit_cost(code) if context else 0)
        counted += 1

    if not counted or not sum_system:
        return AccuracyResult(None, discrepancy_value, counted)
    return AccuracyResult(max(0.0, 1 - sum_diff / sum_system), discrepancy_value, counted)


def _in_window(ts: int | None, start: int) -> bool:
    return ts is not None and ts >= start


def compute_metrics(
    events: Iterable[Any],
    counts: Iterable[Any],
    items: Iterable[Any],
    now: int | None = None,
    window_days: int = 30,
    recent_days: int = 7,
    context: ReconciliationContext | None = None,
) -> MetricsSnapshot:
    now = now if now is not None else (context.now if context is not None else now_ms())
    if context is None:
        context = ReconciliationContext.build(items=items, now=now)
    window_start = now - window_days * DAY_MS
    recent_start = now - recent_days * DAY_MS

    events = [e for e in normalize_events(events) if e.code]
    balances = aggregate_stock(events, context)
    count_map = latest_counts(counts)
    snapshot = MetricsSnapshot(generated_at=now, window_days=window_days, total_items=len(balances))

    windowed = [e for e in events if _in_window(e.ts, window_start)]
    recent = [e for e in events if _in_window(e.ts, recent_start)]

    # ── 1. accuracy and adjustments ──
    result = compute_accuracy(balances, count_map, context, since=window_start)
    snapshot.accuracy = result.accuracy
    snapshot.discrepancy_value = result.discrepancy_value
    snapshot.counted_items = result.counted_items

    transactions = [e for e in windowed if e.type in TRANSACTION_TYPES]
    adjustments = sum(
        1 for e in transactions
        if e.type == EventType.CONSUME or e.status_key in ("damaged", "lost")
    )
    snapshot.adjustment_rate = adjustments / len(transactions) if transactions else None

    # ── 2. value and stock health ──
    last_movement: dict[str, int] = {}
    for e in events:
        if e.type in MOVEMENT_TYPES and e.ts is not None:
            last_movement[e.code] = max(last_movement.get(e.code, e.ts), e.ts)

    for balance in balances:
        item = context.item(balance.code)
        snapshot.inventory_value += max(0, balance.on_hand) * context.unit_cost(balance.code)
        if item is not None and item.reorder_point is not None and balance.net_available <= item.reorder_point:
            snapshot.below_reorder += 1
        if balance.net_available < 0:
            snapshot.negative_availability += 1
        if balance.available <= 0:
            snapshot.stockouts += 1
        count = count_map.get(balance.code)
        if count is None or not _in_window(count.counted_at, window_start):
            snapshot.not_counted += 1
        if not _in_window(last_movement.get(balance.code), window_start):
            snapshot.dead_stock += 1
    if balances:
        snapshot.service_level = 1 - snapshot.stockouts / len(balances)

    def value_delta(rows) -> float:
        total = 0.0
        for e in rows:
            if e.type not in MOVEMENT_TYPES:
                continue
            direction = 1 if e.type in (EventType.IN, EventType.RETURN) else -1
            total += direction * e.qty * context.unit_cost(e.code)
        return total

    value_week_ago = snapshot.inventory_value - value_delta(recent)
    if value_week_ago:
        snapshot.inventory_trend = (snapshot.inventory_value - value_week_ago) / value_week_ago

    # ── 3. throughput ──
    handled: dict[str, float] = {}
    for e in recent:
        if e.type in MOVEMENT_TYPES:
            user = e.user_email or e.user_name or "Unknown"
            handled[user] = handled.get(user, 0) + e.qty
    if handled:
        snapshot.items_per_employee = sum(handled.values()) / len(handled)

    received_orders = {e.source_id for e in recent if e.type == EventType.IN and e.source_id}
    snapshot.orders_per_day = len(received_orders) / recent_days if recent_days else 0

    # ── 4. replenishment ──
    orders = build_order_balances(events, events, context)
    ordered_qty = 0.0
    received_qty = 0.0
    lead_times = []
    on_time = 0
    on_time_total = 0
    for order in orders:
        if _in_window(order.first_order_ts, window_start):
            ordered_qty += order.ordered
            received_qty += order.checked_in
        if order.first_order_ts is not None and order.first_receipt_ts is not None:
            lead_times.append(order.first_receipt_ts - order.first_order_ts)
            if order.eta is not None:
                on_time_total += 1
                if order.first_receipt_ts <= order.eta:
                    on_time += 1
    if lead_times:
        mean = sum(lead_times) / len(lead_times)
        snapshot.avg_lead_time_ms = mean
        if len(lead_times) > 1:
            snapshot.lead_time_stddev_ms = math.sqrt(
                sum((t - mean) ** 2 for t in lead_times) / len(lead_times)
            )
    snapshot.on_time_rate = on_time / on_time_total if on_time_total else None
    snapshot.fill_rate = min(1.0, received_qty / ordered_qty) if ordered_qty else None

    # ── 5. turnover ──
    issued = [e for e in windowed if e.type == EventType.OUT]
    snapshot.cogs = sum(e.qty * context.unit_cost(e.code) for e in issued)
    value_at_window_start = max(0.0, snapshot.inventory_value - value_delta(windowed))
    avg_value = (snapshot.inventory_value + value_at_window_start) / 2
    snapshot.turnover = snapshot.cogs / avg_value if avg_value else None
    snapshot.days_on_hand = avg_value / (snapshot.cogs / window_days) if snapshot.cogs and window_days else None

    # ── 6. usage ──
    usage: dict[str, float] = {}
    moves: dict[str, int] = {}
    for e in issued:
        usage[e.code] = usage.get(e.code, 0) + e.qty
        moves[e.code] = moves.get(e.code, 0) + 1

    slow = [
        {"code": b.code, "name": b.name, "moves": moves.get(b.code, 0), "available": b.available}
        for b in balances
        if moves.get(b.code, 0) <= SLOW_MOVER_MAX_MOVES
    ]
    slow.sort(key=lambda r: (r["moves"], r["available"], r["code"]))
    snapshot.slow_movers = slow[:SLOW_MOVER_LIMIT]

    usage_sorted = sorted(usage.items(), key=lambda kv: (-kv[1], kv[0]))
    usage_total = sum(usage.values())
    snapshot.top_usage = [
        {
            "code": code,
            "name": context.item_name(code),
            "qty": qty,
            "share": qty / usage_total if usage_total else 0,
        }
        for code, qty in usage_sorted[:TOP_USAGE_LIMIT]
    ]
    if usage_total and balances:
        cumulative = 0.0
        sku_count = 0
        for _, qty in usage_sorted:
            cumulative += qty
            sku_count += 1
            if cumulative / usage_total >= CONCENTRATION_SHARE:
                break
        snapshot.eighty_twenty = sku_count / len(balances)

    # ── 7. shrinkage ──
    write_offs = [e for e in windowed if e.type == EventType.CONSUME]
    lost = [e for e in write_offs if e.status_key == "lost" or "lost" in e.reason_key]
    damaged = [e for e in write_offs if e.status_key == "damaged" or "damage" in e.reason_key]
    issued_qty = sum(e.qty for e in issued)
    snapshot.write_offs = len(write_offs)
    snapshot.shrinkage = sum(e.qty for e in lost) / issued_qty if issued_qty else None
    snapshot.damaged_rate = sum(e.qty for e in damaged) / issued_qty if issued_qty else None
    snapshot.lost_value = sum(e.qty * context.unit_cost(e.code) for e in lost)

    return snapshot
