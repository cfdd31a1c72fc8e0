"""
SQLAlchemy ORM model package
- Every model is imported here so it registers on Base.metadata.
"""

from ims.models.inventory_event import InventoryEvent
from ims.models.item import Item
from ims.models.job import Job
from ims.models.inventory_count import InventoryCount
from ims.models.fleet_asset import FleetAsset

__all__ = [
    "InventoryEvent",
    "Item",
    "Job",
    "InventoryCount",
    "FleetAsset",
]
