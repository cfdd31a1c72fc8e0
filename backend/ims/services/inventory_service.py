"""
InventoryService - validated writes to the movement log
- Every write re-reads the ledger for the affected code right before the
  insert and rejects anything that would break a balance rule.
- Concurrent writers to the same code can still race between the read and
  the insert; later reads reconcile whatever lands.
"""

import logging
import math

from ims.config import settings
from ims.exceptions import (
    InsufficientStockError, ReturnExceedsCheckoutError, ValidationError,
)
from ims.ledger.balances import ItemBalance, balance_for, job_reserved
from ims.ledger.context import ReconciliationContext
from ims.ledger.events import EventType, normalize_job_id, parse_ts, to_qty
from ims.ledger.overdue import outstanding_checkout
from ims.models import InventoryCount, InventoryEvent
from ims.services.event_store import EventStore

logger = logging.getLogger(__name__)

WRITE_OFF_STATUSES = ("consumed", "damaged", "lost")


def _date_text(value) -> str | None:
    """Keep due dates as given, but only when they parse."""
    if value is None or value == "":
        return None
    if parse_ts(value) is None:
        raise ValidationError("invalid date", value=str(value))
    return str(value)


class InventoryService:
    """Check-in, checkout, reservations, returns, write-offs and orders for one tenant."""

    def __init__(self, store: EventStore, closed_job_statuses: list[str] | None = None):
        self.store = store
        self.closed_job_statuses = closed_job_statuses or settings.CLOSED_JOB_STATUSES

    # ── helpers ────────────────────────────────────────────

    def context(self) -> ReconciliationContext:
        return ReconciliationContext.build(
            items=self.store.list_items(),
            jobs=self.store.list_jobs(),
            closed_job_statuses=self.closed_job_statuses,
        )

    @staticmethod
    def _require(code, qty) -> tuple[str, float]:
        code = (code or "").strip()
        qty = to_qty(qty)
        if not code or qty <= 0:
            raise ValidationError("code and positive qty required")
        return code, qty

    def _require_item(self, code: str):
        item = self.store.get_item(code)
        if item is None:
            raise ValidationError("unknown item code", code=code)
        return item

    def _require_open_job(self, job_id: str | None):
        job = self.store.get_job(job_id)
        if job is not None and (job.status or "").lower() in self.closed_job_statuses:
            raise ValidationError("job is closed", jobId=job_id)

    def balance(self, code: str) -> ItemBalance:
        return balance_for(self.store.list_events(code=code), code)

    # ── receiving ──────────────────────────────────────────

    def check_in(self, code, qty, name=None, job_id=None, location=None, notes=None,
                 source_id=None, user_email=None, user_name=None, ts=None,
                 category=None, unit_price=None) -> InventoryEvent:
        code, qty = self._require(code, qty)
        item = self.store.get_item(code)
        if item is None:
            if not (name or "").strip():
                raise ValidationError("unknown item code; provide name to create", code=code)
            item = self.store.ensure_item(code, name, category=category, unit_price=unit_price)

        source_id = (source_id or "").strip() or None
        if source_id:
            orders = self.store.list_events(types=[EventType.ORDERED], code=code)
            if not any((o.source_id or o.id) == source_id for o in orders):
                raise ValidationError("unknown order for sourceId", sourceId=source_id, code=code)

        return self.store.append_event(
            code=code, name=item.name, type=EventType.IN.value, qty=qty,
            job_id=job_id, location=location, notes=notes,
            source_id=source_id, source_type="order" if source_id else None,
            user_email=user_email, user_name=user_name, ts=ts,
        )

    # ── issuing ────────────────────────────────────────────

    def check_out(self, code, qty, job_id=None, return_date=None, location=None, notes=None,
                  user_email=None, user_name=None, ts=None) -> InventoryEvent:
        code, qty = self._require(code, qty)
        item = self._require_item(code)
        job_id = normalize_job_id(job_id)
        self._require_open_job(job_id)

        available = self.balance(code).available
        if qty > available:
            raise InsufficientStockError(available, code=code)

        return self.store.append_event(
            code=code, name=item.name, type=EventType.OUT.value, qty=qty,
            job_id=job_id, return_date=_date_text(return_date), location=location,
            notes=notes, user_email=user_email, user_name=user_name, ts=ts,
        )

    def reserve(self, code, qty, job_id, return_date=None, notes=None,
                user_email=None, user_name=None, ts=None) -> InventoryEvent:
        code, qty = self._require(code, qty)
        job_id = normalize_job_id(job_id)
        if not job_id:
            raise ValidationError("jobId required for reservations")
        item = self._require_item(code)
        self._require_open_job(job_id)

        available = self.balance(code).available
        if qty > available:
            raise InsufficientStockError(available, code=code)

        return self.store.append_event(
            code=code, name=item.name, type=EventType.RESERVE.value, qty=qty,
            job_id=job_id, return_date=_date_text(return_date), notes=notes,
            user_email=user_email, user_name=user_name, ts=ts,
        )

    def release_reservation(self, code, qty, job_id, reason=None, notes=None,
                            user_email=None, user_name=None, ts=None) -> InventoryEvent:
        code, qty = self._require(code, qty)
        job_id = normalize_job_id(job_id)
        if not job_id:
            raise ValidationError("jobId required for reservations")

        reserved = job_reserved(self.store.list_events(code=code), code, job_id)
        if qty > reserved:
            raise ValidationError("release exceeds reservation", reserved=max(0, reserved), code=code)

        return self.store.append_event(
            code=code, type=EventType.RESERVE_RELEASE.value, qty=qty, job_id=job_id,
            reason=reason, notes=notes, user_email=user_email, user_name=user_name, ts=ts,
        )

    def reassign_reservation(self, code, qty, from_job_id, to_job_id, reason=None,
                             user_email=None, user_name=None) -> list[InventoryEvent]:
        """Move reserved stock from one job to another as a release plus a reserve."""
        code, qty = self._require(code, qty)
        from_job_id = normalize_job_id(from_job_id)
        to_job_id = normalize_job_id(to_job_id)
        if not from_job_id or not to_job_id:
            raise ValidationError("fromJobId and toJobId required")
        if from_job_id == to_job_id:
            raise ValidationError("fromJobId and toJobId must differ")
        self._require_open_job(to_job_id)

        reserved = job_reserved(self.store.list_events(code=code), code, from_job_id)
        if qty > reserved:
            raise ValidationError("release exceeds reservation", reserved=max(0, reserved), code=code)

        note = reason or f"reassigned {from_job_id} -> {to_job_id}"
        common = dict(code=code, qty=qty, reason=note, user_email=user_email, user_name=user_name)
        return self.store.append_events([
            dict(type=EventType.RESERVE_RELEASE.value, job_id=from_job_id, **common),
            dict(type=EventType.RESERVE.value, job_id=to_job_id, **common),
        ])

    # ── returns and write-offs ─────────────────────────────

    def return_stock(self, code, qty, job_id=None, location=None, notes=None, status=None,
                     source_id=None, user_email=None, user_name=None, ts=None) -> InventoryEvent:
        code, qty = self._require(code, qty)
        job_id = normalize_job_id(job_id)

        outstanding = outstanding_checkout(self.store.list_events(code=code), code, job_id)
        if outstanding <= 0:
            raise ValidationError("no matching checkout to return", outstanding=0, code=code, jobId=job_id)
        if qty > outstanding:
            raise ReturnExceedsCheckoutError(outstanding, code=code, jobId=job_id)

        return self.store.append_event(
            code=code, type=EventType.RETURN.value, qty=qty, job_id=job_id,
            location=location, notes=notes, status=status, source_id=source_id,
            user_email=user_email, user_name=user_name, ts=ts,
        )

    def consume(self, code, qty, status="consumed", reason=None, job_id=None, notes=None,
                user_email=None, user_name=None, ts=None) -> InventoryEvent:
        """Write stock off as consumed, damaged or lost."""
        code, qty = self._require(code, qty)
        self._require_item(code)
        status = (status or "consumed").strip().lower()
        if status not in WRITE_OFF_STATUSES:
            raise ValidationError("status must be consumed, damaged or lost", status=status)

        on_hand = max(0, self.balance(code).on_hand)
        if qty > on_hand:
            raise ValidationError("write-off exceeds on-hand stock", onHand=on_hand, code=code)

        return self.store.append_event(
            code=code, type=EventType.CONSUME.value, qty=qty, status=status, reason=reason,
            job_id=job_id, notes=notes, user_email=user_email, user_name=user_name, ts=ts,
        )

    # ── purchasing ─────────────────────────────────────────

    def _order_fields(self, line: dict) -> dict:
        code, qty = self._require(line.get("code"), line.get("qty"))
        return dict(
            code=code, qty=qty, type=EventType.ORDERED.value,
            name=(line.get("name") or "").strip() or None,
            job_id=line.get("job_id"), eta=_date_text(line.get("eta")),
            source_id=(line.get("source_id") or "").strip() or None,
            notes=line.get("notes"), location=line.get("location"),
            user_email=line.get("user_email"), user_name=line.get("user_name"),
        )

    def place_order(self, code, qty, name=None, job_id=None, eta=None, source_id=None,
                    notes=None, user_email=None, user_name=None) -> InventoryEvent:
        fields = self._order_fields(dict(
            code=code, qty=qty, name=name, job_id=job_id, eta=eta, source_id=source_id,
            notes=notes, user_email=user_email, user_name=user_name,
        ))
        self.store.ensure_item(fields["code"], fields["name"])
        return self.store.append_event(**fields)

    def place_orders(self, lines: list[dict]) -> list[InventoryEvent]:
        """Bulk order; every line is validated before anything is written."""
        if not lines:
            raise ValidationError("at least one order line required")
        prepared = []
        for index, line in enumerate(lines):
            try:
                prepared.append(self._order_fields(line))
            except ValidationError as e:
                e.detail["line"] = index
                raise
        for fields in prepared:
            self.store.ensure_item(fields["code"], fields["name"])
        return self.store.append_events(prepared)

    # ── counts and admin ───────────────────────────────────

    def record_count(self, code, qty, counted_at=None, user_email=None, notes=None) -> InventoryCount:
        code = (code or "").strip()
        try:
            qty = float(qty)
        except (TypeError, ValueError):
            qty = -1
        if not code or not math.isfinite(qty) or qty < 0:
            raise ValidationError("code and non-negative qty required")
        self._require_item(code)
        return self.store.add_count(code, qty, parse_ts(counted_at), user_email, notes)

    def clear(self, event_type: str) -> int:
        try:
            kind = EventType((event_type or "").strip().lower())
        except ValueError:
            raise ValidationError("unknown event type", type=event_type) from None
        return self.store.clear_events(kind.value)
