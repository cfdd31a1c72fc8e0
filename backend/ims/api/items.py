"""
Item catalog API
- Deleting an item leaves its events in place; views then label it "Unknown".
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ims.api.deps import Notifier, get_tenant_id
from ims.database import get_db
from ims.exceptions import NotFoundError
from ims.models import Item
from ims.schemas.catalog import ItemIn, ItemOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", response_model=list[ItemOut])
def list_items(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    rows = db.query(Item).filter(Item.tenant_id == tenant_id).order_by(Item.code).all()
    return [ItemOut.model_validate(r) for r in rows]


@router.post("", response_model=ItemOut)
def upsert_item(
    body: ItemIn,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    notify: Notifier = Depends(),
):
    """Create an item, or update it when the code already exists"""
    code = body.code.strip()
    item = db.query(Item).filter(Item.tenant_id == tenant_id, Item.code == code).first()
    # updates only touch the fields the client sent
    fields = body.model_dump(exclude={"code"}, exclude_unset=item is not None)
    if item is None or "name" in fields:
        fields["name"] = (fields.get("name") or "").strip() or (item.name if item else code)
    if item is None:
        item = Item(tenant_id=tenant_id, code=code, **fields)
        db.add(item)
        logger.info(f"[{tenant_id}] item {code} created")
    else:
        for key, value in fields.items():
            setattr(item, key, value)
        logger.info(f"[{tenant_id}] item {code} updated")
    db.commit()
    db.refresh(item)
    notify("catalog.updated", kind="item", code=code)
    return ItemOut.model_validate(item)


@router.delete("/{code}", response_model=ItemOut)
def delete_item(
    code: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    notify: Notifier = Depends(),
):
    item = db.query(Item).filter(Item.tenant_id == tenant_id, Item.code == code).first()
    if item is None:
        raise NotFoundError("item not found", code=code)
    result = ItemOut.model_validate(item)
    db.delete(item)
    db.commit()
    logger.info(f"[{tenant_id}] item {code} deleted")
    notify("catalog.updated", kind="item", code=code)
    return result
