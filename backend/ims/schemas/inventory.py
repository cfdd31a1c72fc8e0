"""
Movement request/response schemas
- Quantities are optional here so the write path can answer with its own
  "code and positive qty required" error instead of a schema error.
"""

from pydantic import Field

from ims.schemas.common import CamelModel


class _UserFields(CamelModel):
    user_email: str | None = None
    user_name: str | None = None


class CheckInRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    name: str | None = None
    job_id: str | None = None
    location: str | None = None
    notes: str | None = None
    source_id: str | None = None
    category: str | None = None
    unit_price: float | None = None
    ts: int | str | None = None


class CheckoutRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    job_id: str | None = None
    return_date: str | None = None
    location: str | None = None
    notes: str | None = None
    ts: int | str | None = None


class ReserveRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    job_id: str | None = None
    return_date: str | None = None
    notes: str | None = None
    ts: int | str | None = None


class ReleaseRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    job_id: str | None = None
    reason: str | None = None
    notes: str | None = None
    ts: int | str | None = None


class ReassignRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    from_job_id: str | None = None
    to_job_id: str | None = None
    reason: str | None = None


class ReturnRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    job_id: str | None = None
    location: str | None = None
    notes: str | None = None
    status: str | None = None
    source_id: str | None = None
    ts: int | str | None = None


class ConsumeRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    status: str | None = "consumed"
    reason: str | None = None
    job_id: str | None = None
    notes: str | None = None
    ts: int | str | None = None


class OrderRequest(_UserFields):
    code: str | None = None
    qty: float | None = None
    name: str | None = None
    job_id: str | None = None
    eta: str | None = None
    source_id: str | None = None
    notes: str | None = None


class BulkOrderRequest(CamelModel):
    lines: list[OrderRequest] = Field(default_factory=list)


class CountRequest(CamelModel):
    code: str | None = None
    qty: float | None = None
    counted_at: int | str | None = None
    user_email: str | None = None
    notes: str | None = None


class EventResponse(CamelModel):
    id: str | None = None
    code: str
    name: str | None = None
    type: str
    qty: float
    job_id: str | None = None
    ts: int | None = None
    return_date: int | str | None = None
    eta: int | str | None = None
    source_id: str | None = None
    source_type: str | None = None
    status: str | None = None
    reason: str | None = None
    location: str | None = None
    notes: str | None = None
    user_email: str | None = None
    user_name: str | None = None


class CountResponse(CamelModel):
    id: int
    code: str
    qty: float
    counted_at: int
    user_email: str | None = None
    notes: str | None = None


class ClearResponse(CamelModel):
    type: str
    deleted: int
