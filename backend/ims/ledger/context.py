"""
ReconciliationContext - immutable snapshot of reference data for one run
- Built once per request from the item and job catalogs and passed to the
  ledger functions explicitly.
- Missing items resolve to "Unknown" with zero cost, missing jobs to
  "General" and open.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from ims.ledger.events import clean_text, folded_keys, now_ms

UNKNOWN_ITEM = "Unknown"
GENERAL_JOB = "General"

DEFAULT_CLOSED_JOB_STATUSES = frozenset({
    "closed", "complete", "completed", "cancelled", "canceled", "archived",
})


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass(frozen=True)
class ItemRef:
    code: str
    name: str
    category: str | None = None
    unit_price: float = 0
    reorder_point: float | None = None
    min_stock: float | None = None
    low_stock_enabled: bool = False

    @classmethod
    def from_raw(cls, raw: Any) -> "ItemRef":
        if isinstance(raw, ItemRef):
            return raw
        row = folded_keys(raw)
        code = clean_text(row.get("code")) or ""
        return cls(
            code=code,
            name=clean_text(row.get("name")) or code,
            category=clean_text(row.get("category")),
            unit_price=_number(row.get("unitprice")) or 0,
            reorder_point=_number(row.get("reorderpoint")),
            min_stock=_number(row.get("minstock")),
            low_stock_enabled=_flag(row.get("lowstockenabled")),
        )


@dataclass(frozen=True)
class JobRef:
    code: str
    name: str | None = None
    status: str = "open"

    @classmethod
    def from_raw(cls, raw: Any) -> "JobRef":
        if isinstance(raw, JobRef):
            return raw
        row = folded_keys(raw)
        return cls(
            code=clean_text(row.get("code")) or "",
            name=clean_text(row.get("name")),
            status=(clean_text(row.get("status")) or "open").lower(),
        )


@dataclass(frozen=True)
class ReconciliationContext:
    """Catalog lookups plus the evaluation instant, fixed for one reconciliation."""
    items: Mapping[str, ItemRef] = field(default_factory=lambda: MappingProxyType({}))
    jobs: Mapping[str, JobRef] = field(default_factory=lambda: MappingProxyType({}))
    closed_job_statuses: frozenset[str] = DEFAULT_CLOSED_JOB_STATUSES
    now: int = field(default_factory=now_ms)

    @classmethod
    def build(
        cls,
        items: Iterable[Any] = (),
        jobs: Iterable[Any] = (),
        closed_job_statuses: Iterable[str] | None = None,
        now: int | None = None,
    ) -> "ReconciliationContext":
        item_refs = (ItemRef.from_raw(i) for i in items or ())
        job_refs = (JobRef.from_raw(j) for j in jobs or ())
        statuses = (
            frozenset(s.strip().lower() for s in closed_job_statuses)
            if closed_job_statuses is not None
            else DEFAULT_CLOSED_JOB_STATUSES
        )
        return cls(
            items=MappingProxyType({i.code: i for i in item_refs if i.code}),
            jobs=MappingProxyType({j.code: j for j in job_refs if j.code}),
            closed_job_statuses=statuses,
            now=now if now is not None else now_ms(),
        )

    def item(self, code: str) -> ItemRef | None:
        return self.items.get(code)

    def item_name(self, code: str, fallback: str | None = None) -> str:
        item = self.items.get(code)
        if item is not None:
            return item.name
        return fallback or UNKNOWN_ITEM

    def unit_cost(self, code: str) -> float:
        item = self.items.get(code)
        return item.unit_price if item is not None else 0

    def job_label(self, job_id: str | None) -> str:
        job = self.jobs.get(job_id) if job_id else None
        if job is None:
            return GENERAL_JOB
        return job.name or job.code

    def is_job_closed(self, job_id: str | None) -> bool:
        job = self.jobs.get(job_id) if job_id else None
        return job is not None and job.status in self.closed_job_statuses
