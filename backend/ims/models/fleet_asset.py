"""
fleet_assets table - equipment and vehicles tracked alongside stock
"""

import enum

from sqlalchemy import Column, Integer, String, Float, BigInteger, Text, Enum, JSON, UniqueConstraint

from ims.database import Base


class AssetType(str, enum.Enum):
    EQUIPMENT = "equipment"
    VEHICLE = "vehicle"


class AssetStatus(str, enum.Enum):
    ACTIVE = "active"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    OUT_OF_SERVICE = "out_of_service"
    RETIRED = "retired"


class FleetAsset(Base):
    __tablename__ = "fleet_assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    asset_type = Column(Enum(AssetType), nullable=False)
    code = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    category = Column(String(100))
    location = Column(String(200))
    status = Column(Enum(AssetStatus), default=AssetStatus.ACTIVE, nullable=False)
    assigned_project = Column(String(64))  # job code

    # vehicles
    make = Column(String(80))
    model = Column(String(80))
    year = Column(Integer)
    plate = Column(String(20))
    vin = Column(String(40))
    mileage = Column(Float)

    # equipment
    serial = Column(String(80))
    manufacturer = Column(String(120))
    warranty_expires = Column(String(40))
    usage_hours = Column(Float)

    last_service_at = Column(String(40))
    next_service_at = Column(String(40))
    last_activity_at = Column(BigInteger)  # epoch millis
    tags = Column(JSON)
    notes = Column(Text)

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_fleet_tenant_code"),
    )
