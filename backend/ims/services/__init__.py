"""
Service layer
- EventStore: tenant-scoped reads and appends over the ORM.
- InventoryService: validated writes (check-in/out, reserve, return, ...).
- ReconciliationService: feeds stored events to the pure ledger functions.
"""

from ims.services.event_store import EventStore
from ims.services.inventory_service import InventoryService
from ims.services.reconciliation import ReconciliationService

__all__ = ["EventStore", "InventoryService", "ReconciliationService"]
