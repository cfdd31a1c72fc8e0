"""
Alert API - evaluate the stock rules now, or list what the monitor raised
"""

from fastapi import APIRouter, Depends, Query, Request

from ims.alerts.rules import evaluate_rules
from ims.alerts.snapshot import LedgerSnapshot
from ims.api.deps import get_reconciliation, get_tenant_id
from ims.schemas.alerts import AlertOut, RaisedAlertOut
from ims.services.reconciliation import ReconciliationService

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


@router.get("", response_model=list[AlertOut])
def current_alerts(service: ReconciliationService = Depends(get_reconciliation)):
    """Every rule that fires against the tenant's ledger right now"""
    snapshot = LedgerSnapshot.from_service(service)
    return [AlertOut.model_validate(a) for a in evaluate_rules(snapshot)]


@router.get("/recent", response_model=list[RaisedAlertOut])
def recent_alerts(
    request: Request,
    limit: int = Query(50, ge=1, le=200),
    tenant_id: str = Depends(get_tenant_id),
):
    """Alerts raised by the background monitor, newest first"""
    monitor = getattr(request.app.state, "monitor", None)
    if monitor is None:
        return []
    return [RaisedAlertOut.model_validate(r) for r in monitor.recent(tenant_id, limit)]
