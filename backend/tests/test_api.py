"""
HTTP surface: write validation, reconciled views, catalogs, tenancy.
"""

from datetime import datetime, timedelta, timezone

import pytest

TENANT = {"X-Tenant-Id": "acme"}


def iso_days(offset: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=offset)).strftime("%Y-%m-%dT%H:%M:%SZ")


def check_in(client, code="DRILL", qty=10, **fields):
    resp = client.post("/api/inventory", json={"code": code, "qty": qty, "name": "Hammer drill", **fields}, headers=TENANT)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["dbConnected"] is True
    assert data["monitorRunning"] is False


class TestWrites:

    def test_check_in_and_list(self, client):
        row = check_in(client, location="Yard 3")
        assert row["type"] == "in"
        assert row["qty"] == 10
        assert row["id"].startswith("evt_")

        listed = client.get("/api/inventory", params={"type": "in"}, headers=TENANT).json()
        assert [r["id"] for r in listed] == [row["id"]]

    def test_missing_qty_is_rejected(self, client):
        resp = client.post("/api/inventory", json={"code": "DRILL", "name": "Hammer drill"}, headers=TENANT)
        assert resp.status_code == 400
        assert resp.json()["error"] == "code and positive qty required"

    def test_checkout_over_available(self, client):
        check_in(client, qty=2)
        resp = client.post("/api/inventory-checkout", json={"code": "DRILL", "qty": 3}, headers=TENANT)
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "insufficient stock"
        assert body["errorCode"] == "INSUFFICIENT_STOCK"
        assert body["code"] == "DRILL"
        assert body["available"] == 2

    def test_return_exceeding_checkout(self, client):
        check_in(client)
        resp = client.post("/api/inventory-checkout", json={"code": "DRILL", "qty": 5, "jobId": "J1"}, headers=TENANT)
        assert resp.status_code == 201

        resp = client.post("/api/inventory-return", json={"code": "DRILL", "qty": 8, "jobId": "J1"}, headers=TENANT)
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "return exceeds outstanding checkout"
        assert body["outstanding"] == 5
        assert body["errorCode"] == "RETURN_EXCEEDS_CHECKOUT"

        resp = client.post("/api/inventory-return", json={"code": "DRILL", "qty": 5, "jobId": "J1"}, headers=TENANT)
        assert resp.status_code == 201
        assert client.get("/api/inventory-return", headers=TENANT).json()[0]["qty"] == 5

    def test_reserve_release_and_reassign(self, client):
        check_in(client)
        assert client.post("/api/inventory-reserve", json={"code": "DRILL", "qty": 4, "jobId": "J1"}, headers=TENANT).status_code == 201
        resp = client.post(
            "/api/inventory-reassign",
            json={"code": "DRILL", "qty": 2, "fromJobId": "J1", "toJobId": "J2"},
            headers=TENANT,
        )
        assert resp.status_code == 201
        assert [r["type"] for r in resp.json()] == ["reserve_release", "reserve"]

        resp = client.post("/api/inventory-reserve/release", json={"code": "DRILL", "qty": 5, "jobId": "J1"}, headers=TENANT)
        assert resp.status_code == 400
        assert resp.json()["reserved"] == 2

        stock = client.get("/api/stock/DRILL", headers=TENANT).json()
        assert stock["reserved"] == 4
        assert stock["available"] == 6
        assert [j["jobId"] for j in stock["activeJobs"]] == ["J1", "J2"]

    def test_consume(self, client):
        check_in(client)
        resp = client.post("/api/inventory-consume", json={"code": "DRILL", "qty": 1, "status": "lost"}, headers=TENANT)
        assert resp.status_code == 201
        assert resp.json()["status"] == "lost"

    def test_clear_requires_known_type(self, client):
        check_in(client)
        assert client.delete("/api/inventory", params={"type": "bogus"}, headers=TENANT).status_code == 400
        resp = client.delete("/api/inventory", params={"type": "IN"}, headers=TENANT)
        assert resp.json() == {"type": "in", "deleted": 1}

    def test_counts(self, client):
        check_in(client)
        resp = client.post("/api/inventory-counts", json={"code": "DRILL", "qty": 9}, headers=TENANT)
        assert resp.status_code == 201
        assert resp.json()["qty"] == 9
        assert len(client.get("/api/inventory-counts", headers=TENANT).json()) == 1

    @pytest.mark.parametrize("qty", ["NaN", "inf", "-1"])
    def test_count_needs_finite_non_negative_qty(self, client, qty):
        check_in(client)
        resp = client.post("/api/inventory-counts", json={"code": "DRILL", "qty": qty}, headers=TENANT)
        assert resp.status_code == 400
        assert resp.json()["error"] == "code and non-negative qty required"
        assert client.get("/api/inventory-counts", headers=TENANT).json() == []


class TestViews:

    def test_stock_totals(self, client):
        check_in(client)
        client.post("/api/inventory-checkout", json={"code": "DRILL", "qty": 3}, headers=TENANT)
        data = client.get("/api/stock", headers=TENANT).json()
        assert data["totals"]["available"] == 7
        assert data["totals"]["checkedOut"] == 3
        assert data["items"][0]["name"] == "Hammer drill"

    def test_unknown_stock_code(self, client):
        resp = client.get("/api/stock/NOPE", headers=TENANT)
        assert resp.status_code == 404
        assert resp.json()["error"] == "no movements for item"
        assert resp.json()["errorCode"] == "NOT_FOUND"

    def test_overdue(self, client):
        check_in(client)
        client.post(
            "/api/inventory-checkout",
            json={"code": "DRILL", "qty": 5, "jobId": "J1", "returnDate": iso_days(-2)},
            headers=TENANT,
        )
        rows = client.get("/api/overdue", headers=TENANT).json()
        assert len(rows) == 1
        assert rows[0]["jobId"] == "J1"
        assert rows[0]["outstanding"] == 5
        assert rows[0]["daysLate"] in (1, 2)
        assert rows[0]["jobName"] == "General"

    def test_incoming_and_order_detail(self, client):
        order = client.post(
            "/api/inventory-order",
            json={"code": "BIT", "qty": 20, "name": "Core bit", "eta": iso_days(1), "sourceId": "PO-1"},
            headers=TENANT,
        )
        assert order.status_code == 201
        check_in(client, code="BIT", qty=8, sourceId="PO-1")

        data = client.get("/api/incoming", headers=TENANT).json()
        assert data["summary"]["openOrders"] == 1
        assert data["orders"][0]["openQty"] == 12
        assert data["orders"][0]["isLate"] is False

        detail = client.get("/api/incoming/PO-1", headers=TENANT).json()
        assert detail["checkedIn"] == 8
        assert detail["receipts"][0]["method"] == "source_id"
        assert client.get("/api/incoming/PO-404", headers=TENANT).status_code == 404

    def test_unlinked_receipt_closes_order(self, client):
        client.post("/api/inventory-order", json={"code": "BIT", "qty": 10, "jobId": "J2"}, headers=TENANT)
        check_in(client, code="BIT", qty=10, jobId="J2")
        assert client.get("/api/incoming", headers=TENANT).json()["orders"] == []

    def test_bulk_order_reports_failing_line(self, client):
        resp = client.post(
            "/api/inventory-order/bulk",
            json={"lines": [{"code": "BIT", "qty": 1}, {"code": "", "qty": 1}]},
            headers=TENANT,
        )
        assert resp.status_code == 400
        assert resp.json()["line"] == 1
        assert client.get("/api/inventory-order", headers=TENANT).json() == []

    def test_ops_metrics_without_counts(self, client):
        check_in(client)
        data = client.get("/api/ops-metrics", params={"windowDays": 14}, headers=TENANT).json()
        assert data["windowDays"] == 14
        assert data["accuracy"] is None
        assert data["totalItems"] == 1
        assert data["notCounted"] == 1

    def test_dashboard(self, client):
        check_in(client, qty=3)
        data = client.get("/api/dashboard", headers=TENANT).json()
        assert data["metrics"]["totalItems"] == 1
        assert [r["code"] for r in data["lowStock"]] == ["DRILL"]
        assert data["recent"][0]["type"] == "in"
        assert data["countDue"][0]["daysSince"] is None

    def test_job_report(self, client):
        check_in(client)
        client.post("/api/inventory-checkout", json={"code": "DRILL", "qty": 2, "jobId": "J1"}, headers=TENANT)
        reports = client.get("/api/job-report", headers=TENANT).json()
        assert [r["jobId"] for r in reports] == ["J1", None]
        assert reports[0]["totalOutstanding"] == 2

    def test_ledger_is_tenant_scoped(self, client):
        check_in(client)
        other = client.get("/api/stock", headers={"X-Tenant-Id": "other"}).json()
        assert other["items"] == []
        assert client.get("/api/stock").json()["items"] == []


class TestCatalogs:

    def test_item_upsert_and_delete_keeps_history(self, client):
        resp = client.post("/api/items", json={"code": "SAW", "name": "Chop saw", "unitPrice": 300}, headers=TENANT)
        assert resp.status_code == 200
        resp = client.post("/api/items", json={"code": "SAW", "reorderPoint": 2, "lowStockEnabled": True}, headers=TENANT)
        assert resp.json()["name"] == "Chop saw"
        assert resp.json()["reorderPoint"] == 2

        client.post("/api/inventory", json={"code": "SAW", "qty": 1}, headers=TENANT)
        assert client.delete("/api/items/SAW", headers=TENANT).status_code == 200
        stock = client.get("/api/stock/SAW", headers=TENANT).json()
        assert stock["name"] == "Chop saw"
        assert client.delete("/api/items/SAW", headers=TENANT).status_code == 404

    def test_closed_job_blocks_checkout(self, client):
        check_in(client)
        resp = client.post("/api/jobs", json={"code": "J7", "name": "Depot", "status": "closed"}, headers=TENANT)
        assert resp.status_code == 200
        resp = client.post("/api/inventory-checkout", json={"code": "DRILL", "qty": 1, "jobId": "J7"}, headers=TENANT)
        assert resp.status_code == 400
        assert resp.json()["error"] == "job is closed"

    def test_fleet(self, client):
        payload = {
            "assetType": "vehicle", "code": "TRK-1", "name": "F-350",
            "plate": "7ABC123", "nextServiceAt": "2000-01-01",
        }
        resp = client.post("/api/fleet", json=payload, headers=TENANT)
        assert resp.status_code == 201
        asset = resp.json()
        assert asset["serviceDue"] is True
        assert client.post("/api/fleet", json=payload, headers=TENANT).status_code == 400

        resp = client.put(f"/api/fleet/{asset['id']}", json={**payload, "assignedProject": "J1"}, headers=TENANT)
        assert resp.json()["assignedProject"] == "J1"
        assert len(client.get("/api/fleet", params={"project": "J1"}, headers=TENANT).json()) == 1
        assert client.get("/api/fleet", params={"type": "equipment"}, headers=TENANT).json() == []
        assert client.delete(f"/api/fleet/{asset['id']}", headers=TENANT).status_code == 200


class TestAlerts:

    def test_current_alerts(self, client):
        check_in(client, qty=2)
        alerts = client.get("/api/alerts", headers=TENANT).json()
        assert "low_stock" in {a["ruleId"] for a in alerts}

    def test_recent_without_monitor(self, client):
        assert client.get("/api/alerts/recent", headers=TENANT).json() == []
