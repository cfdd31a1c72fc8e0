"""
Outstanding-checkout detection and overdue rows.
"""

from ims.ledger.context import ReconciliationContext
from ims.ledger.events import DAY_MS
from ims.ledger.overdue import build_overdue_rows, outstanding_by_group, outstanding_checkout

from conftest import NOW

YESTERDAY = NOW - DAY_MS


def out(code, qty, job="J1", due=None, ts=None):
    return {"type": "out", "code": code, "qty": qty, "jobId": job, "returnDate": due, "ts": ts or NOW - 10 * DAY_MS}


def ret(code, qty, job="J1"):
    return {"type": "return", "code": code, "qty": qty, "jobId": job, "ts": NOW}


def test_single_overdue_checkout():
    rows = build_overdue_rows([out("A", 5, due=YESTERDAY)], now=NOW)
    assert len(rows) == 1
    row = rows[0]
    assert (row.code, row.job_id, row.outstanding, row.days_late) == ("A", "J1", 5, 1)
    assert row.min_due == YESTERDAY


def test_earliest_due_date_governs():
    rows = build_overdue_rows([
        out("A", 2, due=NOW + 5 * DAY_MS),
        out("A", 3, due=NOW - 3 * DAY_MS),
    ], now=NOW)
    assert rows[0].days_late == 3
    assert rows[0].outstanding == 5


def test_full_return_clears_overdue():
    events = [out("A", 5, due=YESTERDAY)]
    assert build_overdue_rows(events, now=NOW)
    assert build_overdue_rows(events + [ret("A", 5)], now=NOW) == []


def test_partial_return_keeps_group_overdue():
    rows = build_overdue_rows([out("A", 5, due=YESTERDAY), ret("A", 2)], now=NOW)
    assert rows[0].outstanding == 3
    assert rows[0].days_late == 1


def test_not_yet_due_or_undated_is_not_overdue():
    events = [out("A", 1, due=NOW + DAY_MS), out("B", 1), out("C", 1, due="someday")]
    assert build_overdue_rows(events, now=NOW) == []


def test_due_exactly_now_is_not_overdue():
    assert build_overdue_rows([out("A", 1, due=NOW)], now=NOW) == []


def test_groups_split_by_normalized_job():
    events = [
        out("A", 2, job="J1", due=YESTERDAY),
        out("A", 1, job="general", due=YESTERDAY),
        out("A", 1, job="", due=YESTERDAY),
        ret("A", 2, job="J1"),
    ]
    rows = build_overdue_rows(events, now=NOW)
    assert [(r.job_id, r.outstanding) for r in rows] == [(None, 2)]


def test_sorted_most_late_first():
    rows = build_overdue_rows([
        out("A", 1, due=NOW - 2 * DAY_MS),
        out("B", 1, due=NOW - 9 * DAY_MS),
        out("C", 1, due=NOW - 4 * DAY_MS),
    ], now=NOW)
    assert [r.code for r in rows] == ["B", "C", "A"]


def test_last_out_ts_tracked():
    rows = build_overdue_rows([
        out("A", 1, due=YESTERDAY, ts=NOW - 8 * DAY_MS),
        out("A", 1, ts=NOW - 6 * DAY_MS),
    ], now=NOW)
    assert rows[0].last_out_ts == NOW - 6 * DAY_MS


def test_names_from_context():
    context = ReconciliationContext.build(
        items=[{"code": "A", "name": "Rotary laser"}],
        jobs=[{"code": "J1", "name": "Main St. bridge"}],
        now=NOW,
    )
    row = build_overdue_rows([out("A", 1, due=YESTERDAY)], context=context)[0]
    assert row.name == "Rotary laser"
    assert row.job_name == "Main St. bridge"


def test_outstanding_checkout_is_unclamped():
    events = [out("A", 2), ret("A", 5)]
    assert outstanding_checkout(events, "A", "J1") == -3
    assert outstanding_checkout(events, "A", None) == 0


def test_other_types_ignored():
    groups = outstanding_by_group([
        {"type": "in", "code": "A", "qty": 5},
        {"type": "reserve", "code": "A", "qty": 5, "jobId": "J1"},
    ])
    assert groups == {}
