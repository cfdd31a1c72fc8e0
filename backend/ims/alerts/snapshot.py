"""
LedgerSnapshot - reconciled state of one tenant, input to the alert rules
"""

from dataclasses import dataclass, field

from ims.ledger.activity import CountDueRow, LowStockRow
from ims.ledger.balances import ItemBalance
from ims.ledger.orders import IncomingRow
from ims.ledger.overdue import OverdueRow


@dataclass
class LedgerSnapshot:
    tenant_id: str
    now: int
    balances: list[ItemBalance] = field(default_factory=list)
    overdue: list[OverdueRow] = field(default_factory=list)
    incoming: list[IncomingRow] = field(default_factory=list)
    low_stock: list[LowStockRow] = field(default_factory=list)
    count_due: list[CountDueRow] = field(default_factory=list)

    @classmethod
    def from_service(cls, service) -> "LedgerSnapshot":
        """Build from a ReconciliationService."""
        return cls(
            tenant_id=service.store.tenant_id,
            now=service.now,
            balances=service.stock(),
            overdue=service.overdue(),
            incoming=service.incoming(),
            low_stock=service.low_stock(limit=100),
            count_due=service.count_due(),
        )
