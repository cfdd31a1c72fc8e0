"""
Alert schemas
"""

from ims.alerts.rules import Severity
from ims.schemas.common import CamelModel


class AlertOut(CamelModel):
    rule_id: str
    alert_type: str
    severity: Severity
    title: str
    description: str
    payload: dict = {}


class RaisedAlertOut(AlertOut):
    tenant_id: str
    raised_at: str
