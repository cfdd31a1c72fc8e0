"""
Validated write path against an in-memory database.
"""

import pytest

from ims.exceptions import InsufficientStockError, ReturnExceedsCheckoutError, ValidationError
from ims.models import Job
from ims.services import EventStore, InventoryService


@pytest.fixture
def store(db):
    return EventStore(db, "acme")


@pytest.fixture
def service(store):
    svc = InventoryService(store)
    svc.check_in("DRILL", 10, name="Hammer drill", unit_price=120)
    return svc


def add_job(db, code, status="open", tenant="acme"):
    db.add(Job(tenant_id=tenant, code=code, name=code.title(), status=status))
    db.commit()


class TestCheckIn:

    def test_creates_item_and_event(self, service, store):
        item = store.get_item("DRILL")
        assert item.name == "Hammer drill"
        assert item.unit_price == 120
        events = store.list_events(code="DRILL")
        assert [(e.type, e.qty) for e in events] == [("in", 10)]
        assert events[0].id.startswith("evt_")
        assert events[0].ts is not None

    def test_unknown_item_needs_name(self, service):
        with pytest.raises(ValidationError) as exc:
            service.check_in("SAW", 1)
        assert exc.value.message == "unknown item code; provide name to create"

    @pytest.mark.parametrize("qty", [0, -2, None, "x"])
    def test_positive_qty_required(self, service, qty):
        with pytest.raises(ValidationError, match="code and positive qty required"):
            service.check_in("DRILL", qty)

    def test_source_id_must_reference_an_order(self, service):
        with pytest.raises(ValidationError, match="unknown order for sourceId"):
            service.check_in("DRILL", 1, source_id="PO-404")

    def test_linked_receipt(self, service, store):
        order = service.place_order("DRILL", 5, source_id="PO-1")
        row = service.check_in("DRILL", 2, source_id="PO-1")
        assert order.source_id == "PO-1"
        assert row.source_id == "PO-1"
        assert row.source_type == "order"


class TestCheckOut:

    def test_reduces_available(self, service):
        service.check_out("DRILL", 3, job_id="J1")
        balance = service.balance("DRILL")
        assert balance.available == 7
        assert balance.checked_out == 3

    def test_insufficient_stock(self, service):
        with pytest.raises(InsufficientStockError) as exc:
            service.check_out("DRILL", 11)
        assert exc.value.detail["available"] == 10
        assert exc.value.to_body()["error"] == "insufficient stock"

    def test_reservations_hold_stock(self, service):
        service.reserve("DRILL", 8, job_id="J1")
        with pytest.raises(InsufficientStockError):
            service.check_out("DRILL", 3, job_id="J2")

    def test_unknown_item(self, service):
        with pytest.raises(ValidationError, match="unknown item code"):
            service.check_out("NOPE", 1)

    def test_closed_job_rejected(self, service, db):
        add_job(db, "J9", status="Completed")
        with pytest.raises(ValidationError, match="job is closed"):
            service.check_out("DRILL", 1, job_id="J9")

    def test_sentinel_job_stored_as_none(self, service):
        row = service.check_out("DRILL", 1, job_id="General")
        assert row.job_id is None

    def test_bad_return_date(self, service):
        with pytest.raises(ValidationError, match="invalid date"):
            service.check_out("DRILL", 1, return_date="next-ish")


class TestReturns:

    def test_return_exceeding_checkout_rejected(self, service):
        service.check_out("DRILL", 5, job_id="J1")
        with pytest.raises(ReturnExceedsCheckoutError) as exc:
            service.return_stock("DRILL", 8, job_id="J1")
        body = exc.value.to_body()
        assert body["error"] == "return exceeds outstanding checkout"
        assert body["outstanding"] == 5

    def test_return_matches_job(self, service):
        service.check_out("DRILL", 5, job_id="J1")
        with pytest.raises(ValidationError, match="no matching checkout to return"):
            service.return_stock("DRILL", 1, job_id="J2")

    def test_partial_then_full_return(self, service):
        service.check_out("DRILL", 5, job_id="J1")
        service.return_stock("DRILL", 2, job_id="J1")
        service.return_stock("DRILL", 3, job_id="J1")
        balance = service.balance("DRILL")
        assert balance.checked_out == 0
        assert balance.available == 10
        with pytest.raises(ValidationError, match="no matching checkout to return"):
            service.return_stock("DRILL", 1, job_id="J1")


class TestReservations:

    def test_job_required(self, service):
        with pytest.raises(ValidationError, match="jobId required"):
            service.reserve("DRILL", 1, job_id="unassigned")

    def test_release(self, service):
        service.reserve("DRILL", 4, job_id="J1")
        service.release_reservation("DRILL", 3, job_id="J1")
        assert service.balance("DRILL").reserved == 1
        with pytest.raises(ValidationError, match="release exceeds reservation"):
            service.release_reservation("DRILL", 2, job_id="J1")

    def test_reassign(self, service):
        service.reserve("DRILL", 4, job_id="J1")
        rows = service.reassign_reservation("DRILL", 3, "J1", "J2")
        assert [(r.type, r.job_id) for r in rows] == [("reserve_release", "J1"), ("reserve", "J2")]
        balance = service.balance("DRILL")
        assert balance.reserved == 4
        assert {j.job_id: j.reserve for j in balance.active_jobs} == {"J1": 1, "J2": 3}

    def test_reassign_to_same_job(self, service):
        with pytest.raises(ValidationError, match="must differ"):
            service.reassign_reservation("DRILL", 1, "J1", "J1")


class TestWriteOffs:

    def test_consume_lowers_on_hand(self, service):
        service.consume("DRILL", 2, status="Damaged", reason="dropped")
        assert service.balance("DRILL").on_hand == 8

    def test_bad_status(self, service):
        with pytest.raises(ValidationError, match="status must be"):
            service.consume("DRILL", 1, status="stolen")

    def test_cannot_write_off_more_than_on_hand(self, service):
        with pytest.raises(ValidationError, match="write-off exceeds on-hand stock"):
            service.consume("DRILL", 11)


class TestOrders:

    def test_order_creates_missing_item(self, service, store):
        service.place_order("BIT", 6, name="Core bit", eta="2030-01-01")
        assert store.get_item("BIT").name == "Core bit"
        assert store.list_events(types=["ordered"])[0].eta is not None
        # ordered stock is not on hand
        assert service.balance("BIT").available == 0

    def test_bulk_is_all_or_nothing(self, service, store):
        with pytest.raises(ValidationError) as exc:
            service.place_orders([
                {"code": "BIT", "qty": 2},
                {"code": "BIT", "qty": 0},
            ])
        assert exc.value.detail["line"] == 1
        assert store.list_events(types=["ordered"]) == []

    def test_bulk(self, service):
        rows = service.place_orders([
            {"code": "BIT", "qty": 2, "source_id": "PO-9"},
            {"code": "DRILL", "qty": 1, "source_id": "PO-9"},
        ])
        assert len(rows) == 2
        assert {r.source_id for r in rows} == {"PO-9"}

    def test_empty_bulk(self, service):
        with pytest.raises(ValidationError):
            service.place_orders([])


class TestCountsAndClear:

    def test_record_count(self, service, store):
        row = service.record_count("DRILL", 9, counted_at="2025-06-01")
        assert row.qty == 9
        assert store.list_counts()[0].code == "DRILL"

    def test_negative_count_rejected(self, service):
        with pytest.raises(ValidationError):
            service.record_count("DRILL", -1)

    @pytest.mark.parametrize("qty", ["NaN", float("inf"), float("-inf")])
    def test_non_finite_count_rejected(self, service, store, qty):
        with pytest.raises(ValidationError):
            service.record_count("DRILL", qty)
        assert store.list_counts() == []

    def test_clear_by_type(self, service, store):
        service.check_out("DRILL", 1)
        assert service.clear("out") == 1
        assert [e.type for e in store.list_events()] == ["in"]

    def test_clear_unknown_type(self, service):
        with pytest.raises(ValidationError, match="unknown event type"):
            service.clear("everything")


def test_tenants_are_isolated(db):
    acme = InventoryService(EventStore(db, "acme"))
    other = InventoryService(EventStore(db, "other"))
    acme.check_in("DRILL", 4, name="Hammer drill")
    assert other.balance("DRILL").available == 0
    with pytest.raises(ValidationError, match="unknown item code"):
        other.check_out("DRILL", 1)
