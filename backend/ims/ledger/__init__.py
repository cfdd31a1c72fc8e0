"""
Inventory ledger reconciliation
- Pure functions that fold append-only movement events into balances,
  overdue checkouts, open orders and operational KPIs.
- Nothing here touches the database; callers fetch events and pass them in.
"""

from ims.ledger.balances import ItemBalance, aggregate_stock, summarize_stock
from ims.ledger.context import ReconciliationContext
from ims.ledger.events import Event, EventType, normalize_event, normalize_job_id
from ims.ledger.kpis import MetricsSnapshot, compute_accuracy, compute_metrics
from ims.ledger.orders import build_incoming_rows, build_order_balances
from ims.ledger.overdue import build_overdue_rows, outstanding_checkout

__all__ = [
    "Event",
    "EventType",
    "ItemBalance",
    "MetricsSnapshot",
    "ReconciliationContext",
    "aggregate_stock",
    "build_incoming_rows",
    "build_order_balances",
    "build_overdue_rows",
    "compute_accuracy",
    "compute_metrics",
    "normalize_event",
    "normalize_job_id",
    "outstanding_checkout",
    "summarize_stock",
]
