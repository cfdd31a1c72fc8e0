"""
EventStore - tenant-scoped access to the movement log and catalogs
- Append-only: rows are inserted, never updated; the only delete is the
  administrative clear of one event type.
- Reads return canonical ledger Events, so callers never see raw rows.
"""

import logging
import uuid
from typing import Iterable

from sqlalchemy.orm import Session

from ims.ledger.events import Event, normalize_events, normalize_job_id, now_ms, parse_ts
from ims.models import InventoryCount, InventoryEvent, Item, Job

logger = logging.getLogger(__name__)


def new_event_id() -> str:
    return "evt_" + uuid.uuid4().hex[:16]


class EventStore:
    """Queries and inserts scoped to one tenant."""

    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id

    # ── events ─────────────────────────────────────────────

    def _event_query(self, types: Iterable[str] | None = None, code: str | None = None, since: int | None = None):
        query = self.db.query(InventoryEvent).filter(InventoryEvent.tenant_id == self.tenant_id)
        if types:
            query = query.filter(InventoryEvent.type.in_([str(getattr(t, "value", t)) for t in types]))
        if code:
            query = query.filter(InventoryEvent.code == code.strip())
        if since is not None:
            query = query.filter(InventoryEvent.ts >= since)
        return query

    def list_records(self, types=None, code=None, since=None) -> list[InventoryEvent]:
        return (
            self._event_query(types, code, since)
            .order_by(InventoryEvent.ts, InventoryEvent.id)
            .all()
        )

    def list_events(self, types=None, code=None, since=None) -> list[Event]:
        return normalize_events(self.list_records(types, code, since))

    def _new_row(self, fields: dict, default_ts: int) -> InventoryEvent:
        fields = dict(fields)
        fields["job_id"] = normalize_job_id(fields.get("job_id"))
        return InventoryEvent(
            id=fields.pop("id", None) or new_event_id(),
            tenant_id=self.tenant_id,
            ts=parse_ts(fields.pop("ts", None)) or default_ts,
            **fields,
        )

    def append_event(self, **fields) -> InventoryEvent:
        """Insert one event, assigning id and ts when absent."""
        row = self._new_row(fields, now_ms())
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(
            f"[{self.tenant_id}] event {row.id}: {row.type} {row.code} x{row.qty}"
            + (f" job={row.job_id}" if row.job_id else "")
        )
        return row

    def append_events(self, rows: list[dict]) -> list[InventoryEvent]:
        """Insert several events in one transaction."""
        created = []
        base_ts = now_ms()
        for fields in rows:
            row = self._new_row(fields, base_ts)
            self.db.add(row)
            created.append(row)
        self.db.commit()
        for row in created:
            self.db.refresh(row)
        logger.info(f"[{self.tenant_id}] {len(created)} events appended")
        return created

    def get_event(self, event_id: str) -> InventoryEvent | None:
        return (
            self.db.query(InventoryEvent)
            .filter(InventoryEvent.tenant_id == self.tenant_id, InventoryEvent.id == event_id)
            .first()
        )

    def clear_events(self, event_type: str) -> int:
        deleted = (
            self._event_query([event_type])
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.warning(f"[{self.tenant_id}] cleared {deleted} '{event_type}' events")
        return deleted

    # ── catalogs ───────────────────────────────────────────

    def list_items(self) -> list[Item]:
        return (
            self.db.query(Item)
            .filter(Item.tenant_id == self.tenant_id)
            .order_by(Item.code)
            .all()
        )

    def get_item(self, code: str) -> Item | None:
        return (
            self.db.query(Item)
            .filter(Item.tenant_id == self.tenant_id, Item.code == (code or "").strip())
            .first()
        )

    def ensure_item(self, code: str, name: str | None, **fields) -> Item:
        """Return the catalog item, creating it when absent."""
        item = self.get_item(code)
        if item is not None:
            return item
        item = Item(tenant_id=self.tenant_id, code=code.strip(), name=(name or code).strip(), **fields)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"[{self.tenant_id}] item {item.code} created")
        return item

    def list_jobs(self) -> list[Job]:
        return (
            self.db.query(Job)
            .filter(Job.tenant_id == self.tenant_id)
            .order_by(Job.code)
            .all()
        )

    def get_job(self, code: str | None) -> Job | None:
        if not code:
            return None
        return (
            self.db.query(Job)
            .filter(Job.tenant_id == self.tenant_id, Job.code == code)
            .first()
        )

    def list_counts(self) -> list[InventoryCount]:
        return (
            self.db.query(InventoryCount)
            .filter(InventoryCount.tenant_id == self.tenant_id)
            .order_by(InventoryCount.counted_at)
            .all()
        )

    def add_count(self, code: str, qty: float, counted_at: int | None = None,
                  user_email: str | None = None, notes: str | None = None) -> InventoryCount:
        row = InventoryCount(
            tenant_id=self.tenant_id,
            code=code.strip(),
            qty=qty,
            counted_at=counted_at or now_ms(),
            user_email=user_email,
            notes=notes,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"[{self.tenant_id}] count {row.code} = {row.qty}")
        return row
