"""
ReconciliationService - reads a tenant's log once and derives every view
- One instance per request: events and the ReconciliationContext are loaded
  lazily and reused by all views built from that instance.
"""

import logging
from dataclasses import dataclass

from ims.config import settings
from ims.exceptions import NotFoundError
from ims.ledger.activity import (
    CountDueRow, JobReport, LowStockRow, TopMover, aggregate_by_job,
    build_count_due_rows, build_low_stock_rows, build_top_movers, recent_activity,
)
from ims.ledger.balances import ItemBalance, StockTotals, aggregate_stock, count_active_jobs, summarize_stock
from ims.ledger.context import ReconciliationContext
from ims.ledger.events import Event, EventType
from ims.ledger.kpis import MetricsSnapshot, compute_metrics
from ims.ledger.orders import (
    IncomingRow, IncomingSummary, OrderBalance, build_incoming_rows,
    build_order_balances, summarize_incoming,
)
from ims.ledger.overdue import OverdueRow, build_overdue_rows
from ims.services.event_store import EventStore

logger = logging.getLogger(__name__)


@dataclass
class DashboardSummary:
    totals: StockTotals
    active_jobs: int
    overdue: list[OverdueRow]
    incoming: IncomingSummary
    low_stock: list[LowStockRow]
    top_movers: list[TopMover]
    count_due: list[CountDueRow]
    recent: list[Event]


class ReconciliationService:
    """Derived inventory state for one tenant at one instant."""

    def __init__(self, store: EventStore, now: int | None = None):
        self.store = store
        self._now = now
        self._context: ReconciliationContext | None = None
        self._events: list[Event] | None = None
        self._balances: list[ItemBalance] | None = None

    @property
    def context(self) -> ReconciliationContext:
        if self._context is None:
            self._context = ReconciliationContext.build(
                items=self.store.list_items(),
                jobs=self.store.list_jobs(),
                closed_job_statuses=settings.CLOSED_JOB_STATUSES,
                now=self._now,
            )
        return self._context

    @property
    def now(self) -> int:
        return self.context.now

    @property
    def events(self) -> list[Event]:
        if self._events is None:
            self._events = self.store.list_events()
            logger.debug(f"[{self.store.tenant_id}] loaded {len(self._events)} events")
        return self._events

    # ── balances ───────────────────────────────────────────

    def stock(self) -> list[ItemBalance]:
        if self._balances is None:
            self._balances = aggregate_stock(self.events, self.context)
        return self._balances

    def item_balance(self, code: str) -> ItemBalance:
        for balance in self.stock():
            if balance.code == code:
                return balance
        raise NotFoundError("no movements for item", code=code)

    def totals(self) -> StockTotals:
        return summarize_stock(self.stock())

    def active_jobs(self) -> int:
        return count_active_jobs(self.stock())

    def overdue(self) -> list[OverdueRow]:
        return build_overdue_rows(self.events, self.now, self.context)

    # ── orders ─────────────────────────────────────────────

    def _split_orders(self):
        ordered = [e for e in self.events if e.type == EventType.ORDERED]
        receipts = [e for e in self.events if e.type in (EventType.IN, EventType.RETURN)]
        return ordered, receipts

    def order_balances(self) -> list[OrderBalance]:
        return build_order_balances(*self._split_orders(), context=self.context)

    def order_detail(self, source_id: str) -> OrderBalance:
        for order in self.order_balances():
            if order.source_id == source_id:
                return order
        raise NotFoundError("order not found", sourceId=source_id)

    def incoming(self) -> list[IncomingRow]:
        return build_incoming_rows(*self._split_orders(), now=self.now, context=self.context)

    def incoming_summary(self, rows: list[IncomingRow] | None = None) -> IncomingSummary:
        return summarize_incoming(rows if rows is not None else self.incoming(), self.now)

    # ── KPIs and activity ──────────────────────────────────

    def metrics(self, window_days: int | None = None) -> MetricsSnapshot:
        return compute_metrics(
            self.events,
            self.store.list_counts(),
            self.context.items.values(),
            now=self.now,
            window_days=window_days or settings.KPI_WINDOW_DAYS,
            recent_days=settings.RECENT_DAYS,
            context=self.context,
        )

    def low_stock(self, limit: int = 20) -> list[LowStockRow]:
        return build_low_stock_rows(self.stock(), self.context, settings.LOW_STOCK_THRESHOLD, limit)

    def top_movers(self, days: int | None = None, limit: int = 8) -> list[TopMover]:
        return build_top_movers(self.events, self.stock(), self.context, days or settings.RECENT_DAYS, limit)

    def count_due(self) -> list[CountDueRow]:
        return build_count_due_rows(self.store.list_counts(), self.context, settings.COUNT_STALE_DAYS)

    def job_report(self) -> list[JobReport]:
        return aggregate_by_job(self.events, self.context)

    def recent(self, limit: int = 20) -> list[Event]:
        return recent_activity(self.events, limit)

    def dashboard(self) -> DashboardSummary:
        return DashboardSummary(
            totals=self.totals(),
            active_jobs=self.active_jobs(),
            overdue=self.overdue(),
            incoming=self.incoming_summary(),
            low_stock=self.low_stock(),
            top_movers=self.top_movers(),
            count_due=self.count_due(),
            recent=self.recent(),
        )
