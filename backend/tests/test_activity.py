"""
Dashboard activity views: low stock, top movers, counts due, job usage, recent.
"""

from ims.ledger.activity import (
    aggregate_by_job, build_count_due_rows, build_low_stock_rows, build_top_movers,
    low_stock_threshold, recent_activity,
)
from ims.ledger.balances import aggregate_stock
from ims.ledger.context import ReconciliationContext
from ims.ledger.events import DAY_MS

from conftest import NOW


def ev(type_, code, qty, days_ago=0, **fields):
    return {"type": type_, "code": code, "qty": qty, "ts": NOW - days_ago * DAY_MS, **fields}


def make_context(items=(), jobs=()):
    return ReconciliationContext.build(items=items, jobs=jobs, now=NOW)


class TestLowStock:

    def test_threshold_prefers_enabled_item_settings(self):
        context = make_context([
            {"code": "A", "reorderPoint": 12, "lowStockEnabled": True},
            {"code": "B", "minStock": 2, "lowStockEnabled": "true"},
            {"code": "C", "reorderPoint": 40},
        ])
        assert low_stock_threshold("A", context, 5) == 12
        assert low_stock_threshold("B", context, 5) == 2
        assert low_stock_threshold("C", context, 5) == 5
        assert low_stock_threshold("Z", context, 5) == 5

    def test_empty_items_are_not_low(self):
        context = make_context()
        balances = aggregate_stock([
            ev("in", "A", 3), ev("in", "B", 2), ev("out", "B", 2), ev("in", "C", 30),
        ], context)
        rows = build_low_stock_rows(balances, context, threshold=5)
        assert [r.code for r in rows] == ["A"]
        assert rows[0].threshold == 5

    def test_sorted_by_available(self):
        context = make_context()
        balances = aggregate_stock([ev("in", "A", 4), ev("in", "B", 1), ev("in", "C", 5)], context)
        assert [r.code for r in build_low_stock_rows(balances, context, limit=2)] == ["B", "A"]


class TestTopMovers:

    def test_recent_movements_only(self):
        context = make_context([{"code": "A", "name": "Plate compactor"}])
        events = [
            ev("in", "A", 10, 2), ev("out", "A", 4, 1), ev("return", "A", 1, 0),
            ev("in", "B", 50, 30), ev("reserve", "B", 5, 1, jobId="J1"), ev("out", "B", 1, 1),
        ]
        balances = aggregate_stock(events, context)
        rows = build_top_movers(events, balances, context, days=7)
        assert [(r.code, r.moved, r.moves) for r in rows] == [("A", 15, 3), ("B", 1, 1)]
        assert rows[0].name == "Plate compactor"
        assert rows[0].in_use == 3


class TestCountDue:

    def test_never_counted_first_then_stalest(self):
        context = make_context([{"code": c, "name": c} for c in ("A", "B", "C", "D")])
        counts = [
            {"code": "A", "qty": 1, "countedAt": NOW - 40 * DAY_MS},
            {"code": "B", "qty": 1, "countedAt": NOW - 5 * DAY_MS},
            {"code": "C", "qty": 1, "countedAt": NOW - 90 * DAY_MS},
        ]
        rows = build_count_due_rows(counts, context, stale_days=30)
        assert [(r.code, r.days_since) for r in rows] == [("D", None), ("C", 90), ("A", 40)]

    def test_only_catalog_items(self):
        rows = build_count_due_rows([{"code": "X", "qty": 1}], make_context())
        assert rows == []


class TestJobReport:

    def test_usage_per_job(self):
        context = make_context(
            items=[{"code": "A", "name": "Laser level"}],
            jobs=[{"code": "J1", "name": "Riverside"}, {"code": "J2", "status": "completed"}],
        )
        reports = aggregate_by_job([
            ev("out", "A", 4, 3, jobId="J1"),
            ev("return", "A", 1, 2, jobId="J1"),
            ev("reserve", "A", 2, 1, jobId="J1"),
            ev("out", "A", 1, 1, jobId="J2"),
            ev("in", "A", 10, 9),
            ev("ordered", "A", 10, 1, jobId="J1"),
        ], context)
        assert [r.job_id for r in reports] == ["J1", "J2", None]

        riverside = reports[0]
        assert riverside.job_name == "Riverside"
        assert not riverside.closed
        usage = riverside.items[0]
        assert (usage.checked_out, usage.returned, usage.reserved) == (4, 1, 2)
        assert usage.outstanding == 3
        assert riverside.total_outstanding == 3
        assert riverside.total_reserved == 2
        assert riverside.last_activity_ts == NOW - DAY_MS

        assert reports[1].closed
        assert reports[2].job_name == "General"


class TestRecentActivity:

    def test_newest_first_with_limit(self):
        events = [ev("in", "A", 1, d, id=f"e{d}") for d in range(5)]
        rows = recent_activity(events, limit=3)
        assert [e.id for e in rows] == ["e0", "e1", "e2"]

    def test_limit_is_clamped(self):
        events = [ev("in", "A", 1, 0, id=f"e{i}") for i in range(60)]
        assert len(recent_activity(events, limit=500)) == 50
        assert len(recent_activity(events, limit=0)) == 1
