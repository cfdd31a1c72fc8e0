"""
Order fulfillment matcher - ordered events against receipts
- Orders are keyed by sourceId, falling back to the ordered event's own id.
- Receipts that carry a matching sourceId are applied first.
- Unlinked `in` receipts are then allocated FIFO (oldest open order first)
  across open orders with the same code and normalized job. This is an
  inference, so every allocation is recorded with the path that made it.
- checkedIn never exceeds ordered; any excess is kept as over_received.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from ims.ledger.context import ReconciliationContext, UNKNOWN_ITEM
from ims.ledger.events import Event, EventType, normalize_events, now_ms

MATCH_SOURCE_ID = "source_id"
MATCH_FIFO = "fifo"


@dataclass(frozen=True)
class ReceiptMatch:
    """Audit entry: how much of which receipt was booked against an order."""
    event_id: str | None
    qty: float
    method: str
    ts: int | None = None


@dataclass
class OrderBalance:
    source_id: str
    code: str
    job_id: str | None = None
    name: str = UNKNOWN_ITEM
    ordered: float = 0
    checked_in: float = 0
    over_received: float = 0
    eta: int | None = None
    first_order_ts: int | None = None
    last_order_ts: int | None = None
    first_receipt_ts: int | None = None
    receipts: list[ReceiptMatch] = field(default_factory=list)

    @property
    def open_qty(self) -> float:
        return max(0, self.ordered - self.checked_in)

    def is_late(self, now: int) -> bool:
        return self.eta is not None and self.eta < now

    def book(self, receipt: Event, qty: float, method: str):
        self.checked_in += qty
        self.receipts.append(ReceiptMatch(receipt.id, qty, method, receipt.ts))
        if receipt.ts is not None and (
            self.first_receipt_ts is None or receipt.ts < self.first_receipt_ts
        ):
            self.first_receipt_ts = receipt.ts


@dataclass(frozen=True)
class IncomingRow:
    source_id: str
    code: str
    name: str
    job_id: str | None
    ordered: float
    checked_in: float
    open_qty: float
    eta: int | None
    last_order_ts: int | None
    is_late: bool


@dataclass(frozen=True)
class IncomingSummary:
    open_orders: int
    open_units: float
    late_orders: int
    next_eta: int | None
    top_items: list[dict]


def _order_sort_key(order: OrderBalance):
    return (order.last_order_ts or 0, order.source_id)


def _event_sort_key(event: Event):
    return (event.ts or 0, event.id or "")


def build_order_balances(
    ordered_events: Iterable[Any],
    receipt_events: Iterable[Any],
    context: ReconciliationContext | None = None,
) -> list[OrderBalance]:
    """One balance per order, oldest order first."""
    orders: dict[str, OrderBalance] = {}

    # ── 1. orders ──
    ordered = [
        e for e in normalize_events(ordered_events)
        if e.type == EventType.ORDERED and e.code and e.qty > 0
    ]
    for index, event in enumerate(sorted(ordered, key=_event_sort_key)):
        key = event.source_id or event.id or f"order-{index}"
        order = orders.get(key)
        if order is None:
            order = orders[key] = OrderBalance(
                source_id=key, code=event.code, job_id=event.job_id,
            )
        order.ordered += event.qty
        if order.eta is None and event.eta is not None:
            order.eta = event.eta
        if order.name == UNKNOWN_ITEM and event.name:
            order.name = event.name
        if event.ts is not None:
            if order.first_order_ts is None or event.ts < order.first_order_ts:
                order.first_order_ts = event.ts
            if order.last_order_ts is None or event.ts > order.last_order_ts:
                order.last_order_ts = event.ts

    receipts = sorted(
        (
            e for e in normalize_events(receipt_events)
            if e.type in (EventType.IN, EventType.RETURN) and e.code and e.qty > 0
        ),
        key=_event_sort_key,
    )

    # ── 2. explicitly linked receipts ──
    for receipt in receipts:
        order = orders.get(receipt.source_id) if receipt.source_id else None
        if order is None:
            continue
        take = min(receipt.qty, order.open_qty)
        if take > 0:
            order.book(receipt, take, MATCH_SOURCE_ID)
        order.over_received += receipt.qty - take

    # ── 3. FIFO fallback for unlinked check-ins ──
    candidates: dict[tuple[str, str | None], list[OrderBalance]] = {}
    for order in sorted(orders.values(), key=_order_sort_key):
        candidates.setdefault((order.code, order.job_id), []).append(order)

    for receipt in receipts:
        if receipt.type != EventType.IN or receipt.source_id:
            continue
        qty_left = receipt.qty
        for order in candidates.get((receipt.code, receipt.job_id), ()):
            if qty_left <= 0:
                break
            take = min(order.open_qty, qty_left)
            if take <= 0:
                continue
            order.book(receipt, take, MATCH_FIFO)
            qty_left -= take

    if context is not None:
        for order in orders.values():
            order.name = context.item_name(order.code, fallback=order.name)
    return sorted(orders.values(), key=_order_sort_key)


def build_incoming_rows(
    ordered_events: Iterable[Any],
    receipt_events: Iterable[Any],
    now: int | None = None,
    context: ReconciliationContext | None = None,
) -> list[IncomingRow]:
    """Orders still awaiting stock, most urgent eta first."""
    if now is None:
        now = context.now if context is not None else now_ms()

    rows = [
        IncomingRow(
            source_id=order.source_id,
            code=order.code,
            name=order.name,
            job_id=order.job_id,
            ordered=order.ordered,
            checked_in=order.checked_in,
            open_qty=order.open_qty,
            eta=order.eta,
            last_order_ts=order.last_order_ts,
            is_late=order.is_late(now),
        )
        for order in build_order_balances(ordered_events, receipt_events, context)
        if order.open_qty > 0
    ]
    rows.sort(key=lambda r: (
        r.eta if r.eta is not None else (r.last_order_ts or 0),
        r.source_id,
    ))
    return rows


def summarize_incoming(rows: Iterable[IncomingRow], now: int | None = None, top: int = 5) -> IncomingSummary:
    """Open units, late count, next upcoming eta and the largest open items."""
    now = now if now is not None else now_ms()
    rows = list(rows)

    by_code: dict[str, dict] = {}
    for row in rows:
        entry = by_code.setdefault(row.code, {"code": row.code, "name": row.name, "openQty": 0})
        entry["openQty"] += row.open_qty
    top_items = sorted(by_code.values(), key=lambda e: (-e["openQty"], e["code"]))[:top]

    upcoming = [r.eta for r in rows if r.eta is not None and r.eta >= now]
    return IncomingSummary(
        open_orders=len(rows),
        open_units=sum(r.open_qty for r in rows),
        late_orders=sum(1 for r in rows if r.is_late),
        next_eta=min(upcoming) if upcoming else None,
        top_items=top_items,
    )
