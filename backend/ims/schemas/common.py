"""
Shared pydantic schemas
- CamelModel reads snake_case attributes and speaks camelCase JSON.
"""

from datetime import datetime

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class HealthResponse(CamelModel):
    status: str
    db_connected: bool
    redis_connected: bool
    monitor_running: bool
    timestamp: datetime
