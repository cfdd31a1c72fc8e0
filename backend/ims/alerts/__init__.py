"""
Stock alerts
- Rules over a reconciled LedgerSnapshot and the monitor that runs them.
"""

from ims.alerts.rules import ALL_RULES, Alert, Severity, evaluate_rules
from ims.alerts.snapshot import LedgerSnapshot

__all__ = ["ALL_RULES", "Alert", "LedgerSnapshot", "Severity", "evaluate_rules"]
