"""
Stock alert rules - each rule inspects a LedgerSnapshot.

Every rule implements the AlertRule protocol:
  rule_id: str
  check(snapshot) -> Alert | None
"""

import enum
import logging
from dataclasses import dataclass
from typing import Protocol

from ims.alerts.snapshot import LedgerSnapshot

logger = logging.getLogger(__name__)


class Severity(str, enum.Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"


@dataclass
class Alert:
    """A condition worth a human look."""
    rule_id: str
    alert_type: str
    severity: Severity
    title: str
    description: str
    payload: dict

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "alert_type": self.alert_type,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "payload": self.payload,
        }


class AlertRule(Protocol):
    rule_id: str

    def check(self, snapshot: LedgerSnapshot) -> Alert | None: ...


class StockoutRule:
    """
    Items with nothing available while a job still holds or awaits them.
    - any: WARNING
    - a quarter or more of all tracked items: CRITICAL
    """

    rule_id = "stockout"

    def check(self, snapshot: LedgerSnapshot) -> Alert | None:
        if not snapshot.balances:
            return None
        empty = [b for b in snapshot.balances if b.available <= 0 and (b.reserved > 0 or b.checked_out > 0)]
        if not empty:
            return None

        share = len(empty) / len(snapshot.balances)
        severity = Severity.CRITICAL if share >= 0.25 else Severity.WARNING
        codes = [b.code for b in empty]
        return Alert(
            rule_id=self.rule_id,
            alert_type="STOCKOUT",
            severity=severity,
            title=f"{len(empty)} item(s) out of stock",
            description=f"No available stock for {', '.join(codes[:10])}.",
            payload={"codes": codes, "share": round(share, 3)},
        )


class LowStockRule:
    """Items at or below their reorder threshold."""

    rule_id = "low_stock"

    def check(self, snapshot: LedgerSnapshot) -> Alert | None:
        if not snapshot.low_stock:
            return None
        rows = snapshot.low_stock
        return Alert(
            rule_id=self.rule_id,
            alert_type="LOW_STOCK",
            severity=Severity.WARNING,
            title=f"{len(rows)} item(s) running low",
            description=", ".join(f"{r.code} ({r.available:g} left)" for r in rows[:10]),
            payload={"items": [{"code": r.code, "available": r.available, "threshold": r.threshold} for r in rows]},
        )


class OverdueCheckoutRule:
    """
    Checked-out stock past its return date.
    - WARNING
    - a week or more late: CRITICAL
    """

    rule_id = "overdue_checkout"

    def check(self, snapshot: LedgerSnapshot) -> Alert | None:
        if not snapshot.overdue:
            return None
        worst = snapshot.overdue[0]
        severity = Severity.CRITICAL if worst.days_late >= 7 else Severity.WARNING
        return Alert(
            rule_id=self.rule_id,
            alert_type="OVERDUE_CHECKOUT",
            severity=severity,
            title=f"{len(snapshot.overdue)} checkout(s) overdue",
            description=(
                f"Oldest: {worst.code} x{worst.outstanding:g} on job "
                f"{worst.job_id or 'General'}, {worst.days_late} day(s) late."
            ),
            payload={
                "groups": [
                    {"code": r.code, "jobId": r.job_id, "outstanding": r.outstanding, "daysLate": r.days_late}
                    for r in snapshot.overdue
                ],
            },
        )


class LateOrderRule:
    """Open orders whose eta has passed."""

    rule_id = "late_order"

    def check(self, snapshot: LedgerSnapshot) -> Alert | None:
        late = [r for r in snapshot.incoming if r.is_late]
        if not late:
            return None
        return Alert(
            rule_id=self.rule_id,
            alert_type="LATE_ORDER",
            severity=Severity.WARNING,
            title=f"{len(late)} order(s) past eta",
            description=", ".join(f"{r.code} ({r.open_qty:g} open)" for r in late[:10]),
            payload={"orders": [{"sourceId": r.source_id, "code": r.code, "openQty": r.open_qty, "eta": r.eta} for r in late]},
        )


class CountDueRule:
    """Catalog items never counted or not counted recently."""

    rule_id = "count_due"

    def check(self, snapshot: LedgerSnapshot) -> Alert | None:
        if not snapshot.count_due:
            return None
        rows = snapshot.count_due
        return Alert(
            rule_id=self.rule_id,
            alert_type="COUNT_DUE",
            severity=Severity.INFO,
            title=f"{len(rows)} item(s) due for a cycle count",
            description=", ".join(r.code for r in rows[:10]),
            payload={"codes": [r.code for r in rows]},
        )


ALL_RULES: list[AlertRule] = [
    StockoutRule(),
    LowStockRule(),
    OverdueCheckoutRule(),
    LateOrderRule(),
    CountDueRule(),
]


def evaluate_rules(snapshot: LedgerSnapshot, rules: list[AlertRule] | None = None) -> list[Alert]:
    """Run every rule; a failing rule is logged and skipped."""
    alerts = []
    for rule in rules if rules is not None else ALL_RULES:
        try:
            result = rule.check(snapshot)
        except Exception as e:
            logger.error(f"rule error ({rule.rule_id}): {e}")
            continue
        if result is not None:
            alerts.append(result)
    return alerts
