"""
inventory_counts table - physical cycle-count snapshots
"""

from sqlalchemy import Column, Integer, String, Float, BigInteger, Text

from ims.database import Base


class InventoryCount(Base):
    __tablename__ = "inventory_counts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    code = Column(String(64), nullable=False)
    qty = Column(Float, nullable=False)
    counted_at = Column(BigInteger, nullable=False)  # epoch millis
    user_email = Column(String(200))
    notes = Column(Text)
