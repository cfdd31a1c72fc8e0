"""
StockMonitor - re-reconciles a tenant after each ledger change and raises alerts
- Subscribes to inventory and catalog topics on the event bus.
- The same rule firing again for a tenant within the cooldown is suppressed.
- Raised alerts are kept in memory and published on alert.raised.
"""

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

from ims.alerts.rules import ALL_RULES, Alert, AlertRule, evaluate_rules
from ims.alerts.snapshot import LedgerSnapshot
from ims.config import settings
from ims.database import SessionLocal
from ims.events.event_bus import AsyncEventBus
from ims.services.event_store import EventStore
from ims.services.reconciliation import ReconciliationService

logger = logging.getLogger(__name__)

WATCHED_TOPICS = (
    "inventory.movement_recorded",
    "inventory.cleared",
    "inventory.counted",
    "catalog.updated",
)


def build_snapshot(db: Session, tenant_id: str, now: int | None = None) -> LedgerSnapshot:
    service = ReconciliationService(EventStore(db, tenant_id), now=now)
    return LedgerSnapshot.from_service(service)


class StockMonitor:
    """
    Watches ledger changes per tenant.
    - change event -> snapshot -> rules
    - new alerts are stored and published
    """

    def __init__(
        self,
        event_bus: AsyncEventBus,
        session_factory: Callable[[], Session] = SessionLocal,
        rules: list[AlertRule] | None = None,
        cooldown_seconds: int | None = None,
    ):
        self.event_bus = event_bus
        self.session_factory = session_factory
        self.rules = rules if rules is not None else ALL_RULES
        self.cooldown_seconds = (
            cooldown_seconds if cooldown_seconds is not None else settings.ALERT_COOLDOWN_SECONDS
        )
        self._last_raised: dict[tuple[str, str], datetime] = {}
        self._recent: deque[dict] = deque(maxlen=200)

    async def start(self):
        for topic in WATCHED_TOPICS:
            await self.event_bus.subscribe(topic, self._on_ledger_changed)
        logger.info("StockMonitor subscribed to ledger topics")

    async def stop(self):
        logger.info("StockMonitor stopped")

    # ── event handling ─────────────────────────────────────

    async def _on_ledger_changed(self, topic: str, data: dict):
        tenant_id = data.get("tenant_id")
        if not tenant_id:
            logger.debug(f"[Monitor] {topic} without tenant_id ignored")
            return
        await self.check_tenant(tenant_id)

    async def check_tenant(self, tenant_id: str) -> list[Alert]:
        """Evaluate rules off the event loop, then publish whatever survives the cooldown."""
        loop = asyncio.get_running_loop()
        try:
            alerts = await loop.run_in_executor(None, self._evaluate, tenant_id)
        except Exception as e:
            logger.error(f"[Monitor] evaluation failed for {tenant_id}: {e}")
            return []

        raised = []
        for alert in alerts:
            if not self._should_raise(tenant_id, alert):
                continue
            record = {
                "tenant_id": tenant_id,
                "raised_at": datetime.now(timezone.utc).isoformat(),
                **alert.to_dict(),
            }
            self._recent.append(record)
            await self.event_bus.publish("alert.raised", record)
            logger.warning(f"[Monitor] {tenant_id}: {alert.alert_type} [{alert.severity.value}] {alert.title}")
            raised.append(alert)
        return raised

    def _evaluate(self, tenant_id: str) -> list[Alert]:
        """Blocking DB read, run in an executor."""
        db = self.session_factory()
        try:
            return evaluate_rules(build_snapshot(db, tenant_id), self.rules)
        finally:
            db.close()

    def _should_raise(self, tenant_id: str, alert: Alert) -> bool:
        now = datetime.now(timezone.utc)
        key = (tenant_id, alert.rule_id)
        last = self._last_raised.get(key)
        if last and (now - last).total_seconds() < self.cooldown_seconds:
            return False
        self._last_raised[key] = now
        return True

    def recent(self, tenant_id: str, limit: int = 50) -> list[dict]:
        rows = [r for r in self._recent if r["tenant_id"] == tenant_id]
        return rows[-limit:][::-1]
