"""
Shared FastAPI dependencies
- Tenant comes from the X-Tenant-Id header (DEFAULT_TENANT when absent).
- Services are built per request on top of the request's DB session.
"""

import logging

from fastapi import BackgroundTasks, Depends, Header, Request
from sqlalchemy.orm import Session

from ims.config import settings
from ims.database import get_db
from ims.events.event_bus import AsyncEventBus
from ims.services.event_store import EventStore
from ims.services.inventory_service import InventoryService
from ims.services.reconciliation import ReconciliationService

logger = logging.getLogger(__name__)


def get_tenant_id(x_tenant_id: str | None = Header(None)) -> str:
    return (x_tenant_id or "").strip() or settings.DEFAULT_TENANT


def get_store(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)) -> EventStore:
    return EventStore(db, tenant_id)


def get_inventory_service(store: EventStore = Depends(get_store)) -> InventoryService:
    return InventoryService(store)


def get_reconciliation(store: EventStore = Depends(get_store)) -> ReconciliationService:
    return ReconciliationService(store)


def get_event_bus(request: Request) -> AsyncEventBus | None:
    return getattr(request.app.state, "event_bus", None)


class Notifier:
    """Publishes to the event bus after the response has been sent."""

    def __init__(
        self,
        background: BackgroundTasks,
        bus: AsyncEventBus | None = Depends(get_event_bus),
        tenant_id: str = Depends(get_tenant_id),
    ):
        self.background = background
        self.bus = bus
        self.tenant_id = tenant_id

    def __call__(self, topic: str, **data):
        if self.bus is None or not self.bus.is_running:
            return
        self.background.add_task(self.bus.publish, topic, {"tenant_id": self.tenant_id, **data})
