"""
Canonical movement events
- normalize_event() is the one ingestion step: ORM rows, JSON mappings and
  mixed key casings (jobId / job_id / jobid) all become a frozen Event.
- Timestamps and due dates are parsed to epoch milliseconds; anything
  unparseable becomes None and drops out of date-based rules.
- normalize_job_id() collapses every "no job" sentinel to None.
"""

import enum
import math
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping

DAY_MS = 24 * 60 * 60 * 1000


class EventType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    RESERVE = "reserve"
    RESERVE_RELEASE = "reserve_release"
    RETURN = "return"
    CONSUME = "consume"
    ORDERED = "ordered"


# Types that physically move stock (top movers, dead stock, value trend)
MOVEMENT_TYPES = frozenset({EventType.IN, EventType.OUT, EventType.RETURN, EventType.CONSUME})

# Everything except ordered; denominator of the adjustment rate
TRANSACTION_TYPES = frozenset({
    EventType.IN, EventType.OUT, EventType.RETURN,
    EventType.RESERVE, EventType.RESERVE_RELEASE, EventType.CONSUME,
})

NO_JOB_SENTINELS = frozenset({"", "general", "general inventory", "none", "unassigned"})


def now_ms() -> int:
    return int(time.time() * 1000)


def normalize_job_id(value: Any) -> str | None:
    """Trimmed job id, or None for the unassigned pool."""
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in NO_JOB_SENTINELS:
        return None
    return text


def parse_ts(value: Any) -> int | None:
    """Epoch millis from a number, numeric string, ISO date/datetime, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, date):
        midnight = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return int(midnight.timestamp() * 1000)
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None

    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        return int(number) if math.isfinite(number) else None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def to_qty(value: Any) -> float:
    """Coerce a quantity; non-numeric, non-finite and negative values become 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number <= 0:
        return 0
    return int(number) if number.is_integer() else number


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def folded_keys(raw: Any) -> dict:
    """Key lookup table that ignores case and underscores."""
    if hasattr(raw, "to_record"):
        raw = raw.to_record()
    elif not isinstance(raw, Mapping):
        raw = {k: v for k, v in vars(raw).items() if not k.startswith("_")}
    return {str(k).replace("_", "").lower(): v for k, v in raw.items()}


@dataclass(frozen=True)
class Event:
    """One immutable ledger movement in canonical form."""
    code: str
    type: str
    qty: float
    ts: int | None = None
    id: str | None = None
    job_id: str | None = None
    return_date: int | None = None
    eta: int | None = None
    source_id: str | None = None
    source_type: str | None = None
    status: str | None = None
    reason: str | None = None
    location: str | None = None
    notes: str | None = None
    name: str | None = None
    user_email: str | None = None
    user_name: str | None = None

    @property
    def status_key(self) -> str:
        return (self.status or "").lower()

    @property
    def reason_key(self) -> str:
        return (self.reason or "").lower()

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "type": self.type,
            "qty": self.qty,
            "jobId": self.job_id,
            "ts": self.ts,
            "returnDate": self.return_date,
            "eta": self.eta,
            "sourceId": self.source_id,
            "sourceType": self.source_type,
            "status": self.status,
            "reason": self.reason,
            "location": self.location,
            "notes": self.notes,
            "userEmail": self.user_email,
            "userName": self.user_name,
        }


def normalize_event(raw: Any) -> Event:
    if isinstance(raw, Event):
        return raw
    row = folded_keys(raw)
    return Event(
        code=clean_text(row.get("code")) or "",
        type=(clean_text(row.get("type")) or "").lower(),
        qty=to_qty(row.get("qty")),
        ts=parse_ts(row.get("ts")),
        id=clean_text(row.get("id")),
        job_id=normalize_job_id(row.get("jobid")),
        return_date=parse_ts(row.get("returndate")),
        eta=parse_ts(row.get("eta")),
        source_id=clean_text(row.get("sourceid")),
        source_type=clean_text(row.get("sourcetype")),
        status=clean_text(row.get("status")),
        reason=clean_text(row.get("reason")),
        location=clean_text(row.get("location")),
        notes=clean_text(row.get("notes")),
        name=clean_text(row.get("name")),
        user_email=clean_text(row.get("useremail")),
        user_name=clean_text(row.get("username")),
    )


def normalize_events(rows: Iterable[Any]) -> list[Event]:
    return [normalize_event(row) for row in rows or ()]


@dataclass(frozen=True)
class PhysicalCount:
    """A cycle-count observation of one item."""
    code: str
    qty: float
    counted_at: int | None = None
    user_email: str | None = None


def normalize_count(raw: Any) -> PhysicalCount:
    if isinstance(raw, PhysicalCount):
        return raw
    row = folded_keys(raw)
    counted_at = row.get("countedat")
    if counted_at is None:
        counted_at = row.get("ts")
    try:
        qty = float(row.get("qty") or 0)
    except (TypeError, ValueError):
        qty = 0
    if not math.isfinite(qty):
        qty = 0
    return PhysicalCount(
        code=clean_text(row.get("code")) or "",
        qty=int(qty) if float(qty).is_integer() else qty,
        counted_at=parse_ts(counted_at),
        user_email=clean_text(row.get("useremail")),
    )


def latest_counts(counts: Iterable[Any]) -> dict[str, PhysicalCount]:
    """Most recent count per code; undated counts never replace dated ones."""
    latest: dict[str, PhysicalCount] = {}
    for count in (normalize_count(c) for c in counts or ()):
        if not count.code:
            continue
        current = latest.get(count.code)
        if current is not None and current.counted_at is not None:
            if count.counted_at is None or count.counted_at < current.counted_at:
                continue
        latest[count.code] = count
    return latest
