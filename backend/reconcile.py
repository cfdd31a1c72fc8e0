"""
Per-tenant reconciliation report
- Folds every tenant's movement log and prints balances that need a look:
  negative net availability, over-returned checkouts and overdue groups.
- Usage: cd backend && python reconcile.py [tenant ...]
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import distinct

from ims.database import Base, SessionLocal, engine
from ims.models import InventoryEvent
from ims.services.event_store import EventStore
from ims.services.reconciliation import ReconciliationService

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger("reconcile")


def reconcile_tenant(session, tenant: str) -> int:
    """Print the tenant's balances; returns the number of problem rows."""
    service = ReconciliationService(EventStore(session, tenant))
    balances = service.stock()
    totals = service.totals()
    print(f"\nTenant {tenant}: {totals.items} items, available {totals.available:g}, "
          f"reserved {totals.reserved:g}, checked out {totals.checked_out:g}")

    problems = 0
    for b in balances:
        flags = []
        if b.net_available < 0:
            flags.append(f"net available {b.net_available:g}")
        if b.outstanding < 0:
            flags.append(f"returned {-b.outstanding:g} more than issued")
        if flags:
            problems += 1
            print(f"  ! {b.code:<16} {', '.join(flags)}")
    for row in service.overdue():
        problems += 1
        print(f"  ! {row.code:<16} {row.outstanding:g} overdue on {row.job_id or 'General'} ({row.days_late}d)")
    if not problems:
        print("  all balances reconcile")
    return problems


def main():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        tenants = sys.argv[1:] or [
            t for (t,) in session.query(distinct(InventoryEvent.tenant_id)).order_by(InventoryEvent.tenant_id)
        ]
        if not tenants:
            logger.info("no tenants with events")
            return
        total = sum(reconcile_tenant(session, t) for t in tenants)
        print(f"\n{len(tenants)} tenant(s), {total} row(s) flagged")
    finally:
        session.close()


if __name__ == "__main__":
    main()
