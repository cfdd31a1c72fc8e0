"""
Movement API - validated writes and raw event listings
- Rejected writes answer 400 with {"error": ..., **detail}.
"""

from fastapi import APIRouter, Depends, Query

from ims.api.deps import Notifier, get_inventory_service, get_store
from ims.ledger.events import EventType
from ims.schemas.inventory import (
    BulkOrderRequest, CheckInRequest, CheckoutRequest, ClearResponse, ConsumeRequest,
    CountRequest, CountResponse, EventResponse, OrderRequest, ReassignRequest,
    ReleaseRequest, ReserveRequest, ReturnRequest,
)
from ims.services.event_store import EventStore
from ims.services.inventory_service import InventoryService

router = APIRouter(prefix="/api", tags=["inventory"])


def _events(store: EventStore, types, code: str | None = None) -> list[EventResponse]:
    return [EventResponse.model_validate(row) for row in store.list_records(types=types, code=code)]


def _recorded(notify: Notifier, rows) -> None:
    for row in rows:
        notify("inventory.movement_recorded", event_id=row.id, code=row.code, type=row.type, qty=row.qty)


# --- check-in ---

@router.get("/inventory", response_model=list[EventResponse])
def list_inventory(
    type: str | None = Query(None, description="Event type filter"),
    code: str | None = Query(None),
    store: EventStore = Depends(get_store),
):
    """List raw events, optionally by type and item code"""
    return _events(store, [type] if type else None, code)


@router.post("/inventory", response_model=EventResponse, status_code=201)
def check_in(
    body: CheckInRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    """Receive stock; unknown codes are created when a name is given"""
    row = service.check_in(**body.model_dump())
    _recorded(notify, [row])
    return EventResponse.model_validate(row)


@router.delete("/inventory", response_model=ClearResponse)
def clear_inventory(
    type: str = Query(..., description="Event type to clear"),
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    """Administrative reset: delete every event of one type"""
    deleted = service.clear(type)
    notify("inventory.cleared", type=type, deleted=deleted)
    return ClearResponse(type=type.strip().lower(), deleted=deleted)


# --- checkout / reserve ---

@router.get("/inventory-checkout", response_model=list[EventResponse])
def list_checkouts(code: str | None = None, store: EventStore = Depends(get_store)):
    return _events(store, [EventType.OUT], code)


@router.post("/inventory-checkout", response_model=EventResponse, status_code=201)
def check_out(
    body: CheckoutRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    """Issue stock, optionally to a job with a return date"""
    row = service.check_out(**body.model_dump())
    _recorded(notify, [row])
    return EventResponse.model_validate(row)


@router.get("/inventory-reserve", response_model=list[EventResponse])
def list_reservations(code: str | None = None, store: EventStore = Depends(get_store)):
    return _events(store, [EventType.RESERVE, EventType.RESERVE_RELEASE], code)


@router.post("/inventory-reserve", response_model=EventResponse, status_code=201)
def reserve(
    body: ReserveRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    row = service.reserve(**body.model_dump())
    _recorded(notify, [row])
    return EventResponse.model_validate(row)


@router.post("/inventory-reserve/release", response_model=EventResponse, status_code=201)
def release_reservation(
    body: ReleaseRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    row = service.release_reservation(**body.model_dump())
    _recorded(notify, [row])
    return EventResponse.model_validate(row)


@router.post("/inventory-reassign", response_model=list[EventResponse], status_code=201)
def reassign_reservation(
    body: ReassignRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    """Move a reservation from one job to another"""
    rows = service.reassign_reservation(**body.model_dump())
    _recorded(notify, rows)
    return [EventResponse.model_validate(r) for r in rows]


# --- returns / write-offs ---

@router.get("/inventory-return", response_model=list[EventResponse])
def list_returns(code: str | None = None, store: EventStore = Depends(get_store)):
    return _events(store, [EventType.RETURN], code)


@router.post("/inventory-return", response_model=EventResponse, status_code=201)
def return_stock(
    body: ReturnRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    """Return checked-out stock; cannot exceed the outstanding checkout"""
    row = service.return_stock(**body.model_dump())
    _recorded(notify, [row])
    return EventResponse.model_validate(row)


@router.post("/inventory-consume", response_model=EventResponse, status_code=201)
def consume(
    body: ConsumeRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    """Write off consumed, damaged or lost stock"""
    row = service.consume(**body.model_dump())
    _recorded(notify, [row])
    return EventResponse.model_validate(row)


# --- orders ---

@router.get("/inventory-order", response_model=list[EventResponse])
def list_orders(code: str | None = None, store: EventStore = Depends(get_store)):
    return _events(store, [EventType.ORDERED], code)


@router.post("/inventory-order", response_model=EventResponse, status_code=201)
def place_order(
    body: OrderRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    row = service.place_order(**body.model_dump())
    _recorded(notify, [row])
    return EventResponse.model_validate(row)


@router.post("/inventory-order/bulk", response_model=list[EventResponse], status_code=201)
def place_orders(
    body: BulkOrderRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    """All-or-nothing multi-line order"""
    rows = service.place_orders([line.model_dump() for line in body.lines])
    _recorded(notify, rows)
    return [EventResponse.model_validate(r) for r in rows]


# --- physical counts ---

@router.get("/inventory-counts", response_model=list[CountResponse])
def list_counts(store: EventStore = Depends(get_store)):
    return [CountResponse.model_validate(c) for c in store.list_counts()]


@router.post("/inventory-counts", response_model=CountResponse, status_code=201)
def record_count(
    body: CountRequest,
    service: InventoryService = Depends(get_inventory_service),
    notify: Notifier = Depends(),
):
    row = service.record_count(**body.model_dump())
    notify("inventory.counted", code=row.code, qty=row.qty)
    return CountResponse.model_validate(row)
