"""
Fleet API - equipment and vehicles
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ims.api.deps import Notifier, get_tenant_id
from ims.database import get_db
from ims.exceptions import NotFoundError, ValidationError
from ims.ledger.events import now_ms, parse_ts
from ims.models import FleetAsset
from ims.models.fleet_asset import AssetType
from ims.schemas.catalog import FleetAssetIn, FleetAssetOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fleet", tags=["fleet"])


def _to_out(asset: FleetAsset, now: int) -> FleetAssetOut:
    out = FleetAssetOut.model_validate(asset)
    next_service = parse_ts(asset.next_service_at)
    out.service_due = next_service is not None and next_service <= now
    return out


def _get(db: Session, tenant_id: str, asset_id: int) -> FleetAsset:
    asset = (
        db.query(FleetAsset)
        .filter(FleetAsset.tenant_id == tenant_id, FleetAsset.id == asset_id)
        .first()
    )
    if asset is None:
        raise NotFoundError("asset not found", id=asset_id)
    return asset


@router.get("", response_model=list[FleetAssetOut])
def list_assets(
    asset_type: AssetType | None = Query(None, alias="type"),
    project: str | None = Query(None, description="Assigned job code"),
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    query = db.query(FleetAsset).filter(FleetAsset.tenant_id == tenant_id)
    if asset_type is not None:
        query = query.filter(FleetAsset.asset_type == asset_type)
    if project:
        query = query.filter(FleetAsset.assigned_project == project)
    now = now_ms()
    return [_to_out(a, now) for a in query.order_by(FleetAsset.code).all()]


@router.post("", response_model=FleetAssetOut, status_code=201)
def create_asset(
    body: FleetAssetIn,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    notify: Notifier = Depends(),
):
    code = body.code.strip()
    exists = (
        db.query(FleetAsset)
        .filter(FleetAsset.tenant_id == tenant_id, FleetAsset.code == code)
        .first()
    )
    if exists is not None:
        raise ValidationError("asset code already exists", code=code)
    asset = FleetAsset(tenant_id=tenant_id, **{**body.model_dump(), "code": code})
    db.add(asset)
    db.commit()
    db.refresh(asset)
    logger.info(f"[{tenant_id}] {asset.asset_type.value} {code} created")
    notify("catalog.updated", kind="fleet", code=code)
    return _to_out(asset, now_ms())


@router.put("/{asset_id}", response_model=FleetAssetOut)
def update_asset(
    asset_id: int,
    body: FleetAssetIn,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    notify: Notifier = Depends(),
):
    asset = _get(db, tenant_id, asset_id)
    for key, value in body.model_dump().items():
        setattr(asset, key, value)
    asset.last_activity_at = now_ms()
    db.commit()
    db.refresh(asset)
    notify("catalog.updated", kind="fleet", code=asset.code)
    return _to_out(asset, now_ms())


@router.delete("/{asset_id}", response_model=FleetAssetOut)
def delete_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    notify: Notifier = Depends(),
):
    asset = _get(db, tenant_id, asset_id)
    result = _to_out(asset, now_ms())
    db.delete(asset)
    db.commit()
    logger.info(f"[{tenant_id}] fleet asset {asset.code} deleted")
    notify("catalog.updated", kind="fleet", code=result.code)
    return result
