"""
Catalog schemas - items, jobs, fleet assets
"""

from pydantic import Field

from ims.models.fleet_asset import AssetStatus, AssetType
from ims.schemas.common import CamelModel


class ItemIn(CamelModel):
    code: str = Field(min_length=1)
    name: str | None = None
    category: str | None = None
    unit_price: float | None = None
    description: str | None = None
    reorder_point: float | None = None
    min_stock: float | None = None
    low_stock_enabled: bool = False


class ItemOut(CamelModel):
    id: int
    code: str
    name: str
    category: str | None = None
    unit_price: float | None = None
    description: str | None = None
    reorder_point: float | None = None
    min_stock: float | None = None
    low_stock_enabled: bool = False


class JobIn(CamelModel):
    code: str = Field(min_length=1)
    name: str | None = None
    status: str = "open"
    start_date: str | None = None
    end_date: str | None = None
    schedule_date: str | None = None
    location: str | None = None
    notes: str | None = None


class JobOut(JobIn):
    id: int


class FleetAssetIn(CamelModel):
    asset_type: AssetType
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str | None = None
    location: str | None = None
    status: AssetStatus = AssetStatus.ACTIVE
    assigned_project: str | None = None
    make: str | None = None
    model: str | None = None
    year: int | None = None
    plate: str | None = None
    vin: str | None = None
    mileage: float | None = None
    serial: str | None = None
    manufacturer: str | None = None
    warranty_expires: str | None = None
    usage_hours: float | None = None
    last_service_at: str | None = None
    next_service_at: str | None = None
    last_activity_at: int | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None


class FleetAssetOut(FleetAssetIn):
    id: int
    tags: list[str] | None = None
    service_due: bool = False
