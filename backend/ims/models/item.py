"""
items table - item catalog (reference data, freely edited)
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, Text, UniqueConstraint

from ims.database import Base


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    code = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    category = Column(String(100))
    unit_price = Column(Float)
    description = Column(Text)
    reorder_point = Column(Float)
    min_stock = Column(Float)
    low_stock_enabled = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_item_tenant_code"),
    )
