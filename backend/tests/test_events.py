"""
Ingestion normalization: job ids, timestamps, quantities, key casings.
"""

import math
from datetime import date, datetime, timezone

import pytest

from ims.ledger.events import (
    Event, latest_counts, normalize_count, normalize_event, normalize_job_id, parse_ts, to_qty,
)


class TestNormalizeJobId:

    @pytest.mark.parametrize("value", [None, "", "   ", "general", "General", "GENERAL INVENTORY",
                                       "none", "None", "unassigned", " Unassigned "])
    def test_no_job_sentinels(self, value):
        assert normalize_job_id(value) is None

    def test_real_job_is_trimmed(self):
        assert normalize_job_id("  J-100 ") == "J-100"

    def test_case_of_real_job_is_kept(self):
        assert normalize_job_id("Job-a") == "Job-a"


class TestParseTs:

    def test_epoch_millis(self):
        assert parse_ts(1_700_000_000_000) == 1_700_000_000_000

    def test_numeric_string(self):
        assert parse_ts("1700000000000") == 1_700_000_000_000

    def test_iso_with_z(self):
        assert parse_ts("2024-01-02T00:00:00Z") == int(
            datetime(2024, 1, 2, tzinfo=timezone.utc).timestamp() * 1000
        )

    def test_naive_iso_is_utc(self):
        assert parse_ts("2024-01-02T12:00:00") == int(
            datetime(2024, 1, 2, 12, tzinfo=timezone.utc).timestamp() * 1000
        )

    def test_date_only_is_midnight_utc(self):
        expected = int(datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp() * 1000)
        assert parse_ts("2024-03-01") == expected
        assert parse_ts(date(2024, 3, 1)) == expected

    @pytest.mark.parametrize("value", [None, "", "soon", "2024-13-45", True, float("nan"), "inf"])
    def test_unparseable_is_none(self, value):
        assert parse_ts(value) is None


class TestToQty:

    def test_integral_values_become_int(self):
        assert to_qty("5") == 5
        assert isinstance(to_qty(5.0), int)

    def test_decimal_kept(self):
        assert to_qty("2.5") == 2.5

    @pytest.mark.parametrize("value", [None, "", "abc", float("nan"), math.inf, -3, 0, False])
    def test_bad_values_are_zero(self, value):
        assert to_qty(value) == 0


class TestNormalizeEvent:

    @pytest.mark.parametrize("key", ["jobId", "job_id", "jobid", "JOBID"])
    def test_job_key_casings(self, key):
        event = normalize_event({"code": "A", "type": "out", "qty": 1, key: "J1"})
        assert event.job_id == "J1"

    def test_full_record(self):
        event = normalize_event({
            "id": "evt_1", "code": " A ", "type": "OUT", "qty": "3", "ts": "1000",
            "jobId": "general", "returnDate": "2024-01-01", "sourceId": "", "userEmail": "a@b.c",
        })
        assert event.code == "A"
        assert event.type == "out"
        assert event.qty == 3
        assert event.ts == 1000
        assert event.job_id is None
        assert event.return_date == parse_ts("2024-01-01")
        assert event.source_id is None
        assert event.user_email == "a@b.c"

    def test_missing_fields_do_not_raise(self):
        event = normalize_event({})
        assert event.code == ""
        assert event.qty == 0
        assert event.ts is None

    def test_object_with_attributes(self):
        class Row:
            def __init__(self):
                self.code = "B"
                self.type = "in"
                self.qty = 4
                self.job_id = "J2"

        event = normalize_event(Row())
        assert (event.code, event.qty, event.job_id) == ("B", 4, "J2")

    def test_event_passes_through(self):
        event = Event(code="A", type="in", qty=1)
        assert normalize_event(event) is event


class TestCounts:

    def test_counted_at_casings(self):
        assert normalize_count({"code": "A", "qty": 3, "countedat": 10}).counted_at == 10
        assert normalize_count({"code": "A", "qty": 3, "counted_at": 10}).counted_at == 10
        assert normalize_count({"code": "A", "qty": 3, "ts": 10}).counted_at == 10

    def test_latest_count_wins(self):
        counts = [
            {"code": "A", "qty": 5, "countedAt": 200},
            {"code": "A", "qty": 9, "countedAt": 100},
            {"code": "B", "qty": 1, "countedAt": 50},
            {"code": "", "qty": 1, "countedAt": 50},
        ]
        latest = latest_counts(counts)
        assert latest["A"].qty == 5
        assert set(latest) == {"A", "B"}

    def test_undated_count_does_not_replace_dated(self):
        latest = latest_counts([{"code": "A", "qty": 5, "countedAt": 200}, {"code": "A", "qty": 7}])
        assert latest["A"].qty == 5
