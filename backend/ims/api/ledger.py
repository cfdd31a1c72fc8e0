"""
Ledger API - views reconciled from the movement log on every request
- stock, overdue checkouts, incoming orders, KPIs, dashboard activity
"""

from fastapi import APIRouter, Depends, Query

from ims.api.deps import get_reconciliation
from ims.schemas.inventory import EventResponse
from ims.schemas.ledger import (
    CountDueRowOut, DashboardMetrics, DashboardOut, IncomingResponse, IncomingRowOut,
    IncomingSummaryOut, JobReportOut, LowStockRowOut, MetricsOut, OrderDetailOut,
    OverdueRowOut, StockResponse, StockRow, StockTotalsOut, TopMoverOut,
)
from ims.services.reconciliation import ReconciliationService

router = APIRouter(prefix="/api", tags=["ledger"])


def _dashboard_metrics(service: ReconciliationService) -> DashboardMetrics:
    totals = service.totals()
    incoming = service.incoming_summary()
    return DashboardMetrics(
        total_items=totals.items,
        available=totals.available,
        reserved=totals.reserved,
        checked_out=totals.checked_out,
        out_of_stock=totals.out_of_stock,
        active_jobs=service.active_jobs(),
        overdue=len(service.overdue()),
        incoming_orders=incoming.open_orders,
        incoming_units=incoming.open_units,
        late_orders=incoming.late_orders,
    )


@router.get("/stock", response_model=StockResponse)
def get_stock(service: ReconciliationService = Depends(get_reconciliation)):
    """Per-item balances plus tenant totals"""
    return StockResponse(
        totals=StockTotalsOut.model_validate(service.totals()),
        items=[StockRow.model_validate(b) for b in service.stock()],
    )


@router.get("/stock/{code}", response_model=StockRow)
def get_item_stock(code: str, service: ReconciliationService = Depends(get_reconciliation)):
    return StockRow.model_validate(service.item_balance(code))


@router.get("/overdue", response_model=list[OverdueRowOut])
def get_overdue(service: ReconciliationService = Depends(get_reconciliation)):
    """Outstanding checkouts past their earliest return date, most late first"""
    return [OverdueRowOut.model_validate(r) for r in service.overdue()]


@router.get("/incoming", response_model=IncomingResponse)
def get_incoming(service: ReconciliationService = Depends(get_reconciliation)):
    """Open orders by eta, with the order-register summary"""
    rows = service.incoming()
    return IncomingResponse(
        summary=IncomingSummaryOut.model_validate(service.incoming_summary(rows)),
        orders=[IncomingRowOut.model_validate(r) for r in rows],
    )


@router.get("/incoming/{source_id}", response_model=OrderDetailOut)
def get_order_detail(source_id: str, service: ReconciliationService = Depends(get_reconciliation)):
    """One order with every receipt booked against it and how it was matched"""
    return OrderDetailOut.model_validate(service.order_detail(source_id))


@router.get("/metrics", response_model=DashboardMetrics)
def get_metrics(service: ReconciliationService = Depends(get_reconciliation)):
    """Headline counters for the dashboard cards"""
    return _dashboard_metrics(service)


@router.get("/ops-metrics", response_model=MetricsOut)
def get_ops_metrics(
    window_days: int | None = Query(None, alias="windowDays", ge=1, le=365),
    service: ReconciliationService = Depends(get_reconciliation),
):
    """Operational KPIs over a rolling window; unmeasurable ratios are null"""
    return MetricsOut.model_validate(service.metrics(window_days))


@router.get("/low-stock", response_model=list[LowStockRowOut])
def get_low_stock(
    limit: int = Query(20, ge=1, le=200),
    service: ReconciliationService = Depends(get_reconciliation),
):
    return [LowStockRowOut.model_validate(r) for r in service.low_stock(limit)]


@router.get("/top-movers", response_model=list[TopMoverOut])
def get_top_movers(
    days: int | None = Query(None, ge=1, le=365),
    limit: int = Query(8, ge=1, le=100),
    service: ReconciliationService = Depends(get_reconciliation),
):
    return [TopMoverOut.model_validate(r) for r in service.top_movers(days, limit)]


@router.get("/count-due", response_model=list[CountDueRowOut])
def get_count_due(service: ReconciliationService = Depends(get_reconciliation)):
    return [CountDueRowOut.model_validate(r) for r in service.count_due()]


@router.get("/job-report", response_model=list[JobReportOut])
def get_job_report(service: ReconciliationService = Depends(get_reconciliation)):
    """Item usage per job; unassigned movements appear under jobId null"""
    return [JobReportOut.model_validate(r) for r in service.job_report()]


@router.get("/recent-activity", response_model=list[EventResponse])
def get_recent_activity(
    limit: int = Query(20, ge=1, le=50),
    service: ReconciliationService = Depends(get_reconciliation),
):
    return [EventResponse.model_validate(e) for e in service.recent(limit)]


@router.get("/dashboard", response_model=DashboardOut)
def get_dashboard(service: ReconciliationService = Depends(get_reconciliation)):
    """Everything the dashboard screen shows, from one read of the log"""
    summary = service.dashboard()
    return DashboardOut(
        metrics=_dashboard_metrics(service),
        overdue=[OverdueRowOut.model_validate(r) for r in summary.overdue],
        incoming=IncomingSummaryOut.model_validate(summary.incoming),
        low_stock=[LowStockRowOut.model_validate(r) for r in summary.low_stock],
        top_movers=[TopMoverOut.model_validate(r) for r in summary.top_movers],
        count_due=[CountDueRowOut.model_validate(r) for r in summary.count_due],
        recent=[EventResponse.model_validate(e) for e in summary.recent],
    )
