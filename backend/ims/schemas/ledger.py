"""
Reconciled-view schemas (stock, overdue, incoming, KPIs, activity)
"""

from ims.schemas.common import CamelModel
from ims.schemas.inventory import EventResponse


class JobAllocationOut(CamelModel):
    job_id: str
    out: float
    reserve: float


class StockRow(CamelModel):
    code: str
    name: str
    in_qty: float
    out_qty: float
    return_qty: float
    reserve_qty: float
    consume_qty: float
    on_hand: float
    available: float
    reserved: float
    checked_out: float
    last_move_ts: int | None = None
    last_location: str | None = None
    active_jobs: list[JobAllocationOut] = []


class StockTotalsOut(CamelModel):
    items: int
    available: float
    reserved: float
    checked_out: float
    on_hand: float
    out_of_stock: int


class StockResponse(CamelModel):
    totals: StockTotalsOut
    items: list[StockRow]


class OverdueRowOut(CamelModel):
    code: str
    name: str | None = None
    job_id: str | None = None
    job_name: str | None = None
    outstanding: float
    min_due: int
    days_late: int
    last_out_ts: int | None = None


class IncomingRowOut(CamelModel):
    source_id: str
    code: str
    name: str
    job_id: str | None = None
    ordered: float
    checked_in: float
    open_qty: float
    eta: int | None = None
    last_order_ts: int | None = None
    is_late: bool


class IncomingSummaryOut(CamelModel):
    open_orders: int
    open_units: float
    late_orders: int
    next_eta: int | None = None
    top_items: list[dict] = []


class IncomingResponse(CamelModel):
    summary: IncomingSummaryOut
    orders: list[IncomingRowOut]


class ReceiptMatchOut(CamelModel):
    event_id: str | None = None
    qty: float
    method: str
    ts: int | None = None


class OrderDetailOut(CamelModel):
    source_id: str
    code: str
    name: str
    job_id: str | None = None
    ordered: float
    checked_in: float
    open_qty: float
    over_received: float
    eta: int | None = None
    first_order_ts: int | None = None
    last_order_ts: int | None = None
    first_receipt_ts: int | None = None
    receipts: list[ReceiptMatchOut] = []


class MetricsOut(CamelModel):
    generated_at: int
    window_days: int
    total_items: int
    accuracy: float | None = None
    discrepancy_value: float
    counted_items: int
    adjustment_rate: float | None = None
    inventory_value: float
    inventory_trend: float | None = None
    below_reorder: int
    negative_availability: int
    stockouts: int
    not_counted: int
    dead_stock: int
    service_level: float | None = None
    items_per_employee: float | None = None
    orders_per_day: float
    avg_lead_time_ms: float | None = None
    lead_time_stddev_ms: float | None = None
    on_time_rate: float | None = None
    fill_rate: float | None = None
    cogs: float
    turnover: float | None = None
    days_on_hand: float | None = None
    slow_movers: list[dict] = []
    top_usage: list[dict] = []
    eighty_twenty: float | None = None
    shrinkage: float | None = None
    damaged_rate: float | None = None
    write_offs: int
    lost_value: float


class LowStockRowOut(CamelModel):
    code: str
    name: str
    available: float
    threshold: float


class TopMoverOut(CamelModel):
    code: str
    name: str
    moved: float
    moves: int
    in_use: float


class CountDueRowOut(CamelModel):
    code: str
    name: str
    last_counted_at: int | None = None
    days_since: int | None = None


class JobItemUsageOut(CamelModel):
    code: str
    name: str
    checked_in: float
    checked_out: float
    returned: float
    reserved: float
    consumed: float
    outstanding: float
    net_usage: float


class JobReportOut(CamelModel):
    job_id: str | None = None
    job_name: str
    closed: bool
    last_activity_ts: int | None = None
    total_outstanding: float
    total_reserved: float
    items: list[JobItemUsageOut] = []


class DashboardMetrics(CamelModel):
    total_items: int
    available: float
    reserved: float
    checked_out: float
    out_of_stock: int
    active_jobs: int
    overdue: int
    incoming_orders: int
    incoming_units: float
    late_orders: int


class DashboardOut(CamelModel):
    metrics: DashboardMetrics
    overdue: list[OverdueRowOut]
    incoming: IncomingSummaryOut
    low_stock: list[LowStockRowOut]
    top_movers: list[TopMoverOut]
    count_due: list[CountDueRowOut]
    recent: list[EventResponse]
