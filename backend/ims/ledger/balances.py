"""
Balance aggregator - folds movement events into one balance per item code
- in / return add to inbound, out to issued, return also to returned.
- reserve adds to and reserve_release subtracts from the reserved total.
- consume lowers on-hand without touching checked-out.
- ordered never moves stock (see ledger.orders).
- Display figures are clamped at zero; the unclamped values stay available
  for write-time validation.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from ims.ledger.context import ReconciliationContext, UNKNOWN_ITEM
from ims.ledger.events import Event, EventType, normalize_events

_JOB_TYPES = frozenset({
    EventType.OUT, EventType.RETURN, EventType.RESERVE, EventType.RESERVE_RELEASE,
})


@dataclass
class JobAllocation:
    """Stock an item has issued to (net of returns) or reserved for one job."""
    job_id: str
    out: float = 0
    reserve: float = 0

    @property
    def active(self) -> bool:
        return self.out > 0 or self.reserve > 0


@dataclass
class ItemBalance:
    code: str
    name: str = UNKNOWN_ITEM
    in_qty: float = 0
    out_qty: float = 0
    return_qty: float = 0
    reserve_qty: float = 0
    consume_qty: float = 0
    last_move_ts: int | None = None
    last_location: str | None = None
    jobs: dict[str, JobAllocation] = field(default_factory=dict)
    _location_ts: int | None = field(default=None, repr=False, compare=False)

    # --- derived figures ---

    @property
    def on_hand(self) -> float:
        return self.in_qty - self.out_qty - self.consume_qty

    @property
    def net_available(self) -> float:
        """Unclamped; negative when more was issued or reserved than received."""
        return self.on_hand - max(0, self.reserve_qty)

    @property
    def available(self) -> float:
        return max(0, self.net_available)

    @property
    def reserved(self) -> float:
        return max(0, self.reserve_qty)

    @property
    def outstanding(self) -> float:
        return self.out_qty - self.return_qty

    @property
    def checked_out(self) -> float:
        return max(0, self.outstanding)

    @property
    def active_jobs(self) -> list[JobAllocation]:
        return [self.jobs[j] for j in sorted(self.jobs) if self.jobs[j].active]

    # --- folding ---

    def apply(self, event: Event, context: ReconciliationContext | None = None):
        qty = event.qty
        kind = event.type
        if kind == EventType.IN:
            self.in_qty += qty
        elif kind == EventType.RETURN:
            self.in_qty += qty
            self.return_qty += qty
        elif kind == EventType.OUT:
            self.out_qty += qty
        elif kind == EventType.RESERVE:
            self.reserve_qty += qty
        elif kind == EventType.RESERVE_RELEASE:
            self.reserve_qty -= qty
        elif kind == EventType.CONSUME:
            self.consume_qty += qty
        elif kind != EventType.ORDERED:
            return

        ts = event.ts
        if ts is not None and (self.last_move_ts is None or ts > self.last_move_ts):
            self.last_move_ts = ts
        if event.location:
            # latest timestamp wins; on a tie the later event in the input wins
            rank = ts if ts is not None else -1
            if self._location_ts is None or rank >= self._location_ts:
                self._location_ts = rank
                self.last_location = event.location
        if self.name == UNKNOWN_ITEM and event.name:
            self.name = event.name

        if event.job_id and kind in _JOB_TYPES:
            if context is not None and context.is_job_closed(event.job_id):
                return
            alloc = self.jobs.get(event.job_id)
            if alloc is None:
                alloc = self.jobs[event.job_id] = JobAllocation(event.job_id)
            if kind == EventType.OUT:
                alloc.out += qty
            elif kind == EventType.RETURN:
                alloc.out -= qty
            elif kind == EventType.RESERVE:
                alloc.reserve += qty
            else:
                alloc.reserve -= qty


@dataclass(frozen=True)
class StockTotals:
    items: int
    available: float
    reserved: float
    checked_out: float
    on_hand: float
    out_of_stock: int


def aggregate_stock(
    events: Iterable[Any],
    context: ReconciliationContext | None = None,
) -> list[ItemBalance]:
    """Fold events into balances, one per code, sorted by code.

    Events without a code or with a zero quantity contribute nothing.
    """
    balances: dict[str, ItemBalance] = {}
    for event in normalize_events(events):
        if not event.code or event.qty <= 0:
            continue
        balance = balances.get(event.code)
        if balance is None:
            balance = balances[event.code] = ItemBalance(code=event.code)
        balance.apply(event, context)

    if context is not None:
        for balance in balances.values():
            balance.name = context.item_name(balance.code, fallback=balance.name)
    return [balances[code] for code in sorted(balances)]


def balance_for(
    events: Iterable[Any],
    code: str,
    context: ReconciliationContext | None = None,
) -> ItemBalance:
    """Balance of a single code; an empty balance when nothing matches."""
    code = (code or "").strip()
    relevant = [e for e in normalize_events(events) if e.code == code]
    rows = aggregate_stock(relevant, context)
    return rows[0] if rows else ItemBalance(code=code)


def job_reserved(events: Iterable[Any], code: str, job_id: str | None) -> float:
    """Net (unclamped) reservation of code for one job, closed or not."""
    total = 0
    for event in normalize_events(events):
        if event.code != code or event.job_id != job_id:
            continue
        if event.type == EventType.RESERVE:
            total += event.qty
        elif event.type == EventType.RESERVE_RELEASE:
            total -= event.qty
    return total


def summarize_stock(balances: Iterable[ItemBalance]) -> StockTotals:
    rows = list(balances)
    return StockTotals(
        items=len(rows),
        available=sum(b.available for b in rows),
        reserved=sum(b.reserved for b in rows),
        checked_out=sum(b.checked_out for b in rows),
        on_hand=sum(max(0, b.on_hand) for b in rows),
        out_of_stock=sum(1 for b in rows if b.available <= 0),
    )


def count_active_jobs(balances: Iterable[ItemBalance]) -> int:
    """Distinct jobs holding issued or reserved stock of any item."""
    return len({a.job_id for b in balances for a in b.active_jobs})
