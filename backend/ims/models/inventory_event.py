"""
inventory_events table - append-only log of stock movements
- Balances are never stored; they are folded from these rows on read.
"""

from sqlalchemy import Column, String, Float, BigInteger, Text, Index

from ims.database import Base


class InventoryEvent(Base):
    __tablename__ = "inventory_events"

    id = Column(String(40), primary_key=True)  # e.g. "evt_3f9a..."
    tenant_id = Column(String(64), nullable=False, index=True)
    code = Column(String(64), nullable=False)
    name = Column(String(200))
    type = Column(String(20), nullable=False)  # in / out / reserve / ... / ordered
    qty = Column(Float, nullable=False)
    location = Column(String(120))
    job_id = Column(String(64))
    notes = Column(Text)
    ts = Column(BigInteger, nullable=False)  # epoch millis
    status = Column(String(40))
    reason = Column(String(200))
    return_date = Column(String(40))
    eta = Column(String(40))
    source_id = Column(String(40))  # link from a receipt to its ordered event
    source_type = Column(String(20))
    user_email = Column(String(200))
    user_name = Column(String(200))

    __table_args__ = (
        Index("ix_inventory_events_tenant_code", "tenant_id", "code"),
        Index("ix_inventory_events_tenant_type", "tenant_id", "type"),
    )

    def to_record(self) -> dict:
        """Plain JSON record using the API field names."""
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "type": self.type,
            "qty": self.qty,
            "location": self.location,
            "jobId": self.job_id,
            "notes": self.notes,
            "ts": self.ts,
            "status": self.status,
            "reason": self.reason,
            "returnDate": self.return_date,
            "eta": self.eta,
            "sourceId": self.source_id,
            "sourceType": self.source_type,
            "userEmail": self.user_email,
            "userName": self.user_name,
        }
