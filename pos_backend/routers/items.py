# pos_backend/routers/items.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import or_
from sqlmodel import Session, select

from pos_backend.auth import require_role
from pos_backend.db import get_session
from pos_backend.errors import Conflict
from pos_backend.models import Item, now_ts
from pos_backend.schemas import ItemCreate, ItemOut, ItemUpdate

logger = logging.getLogger("pos.items")

router = APIRouter()


# ---------- Helpers ----------
def _check_fields(data: dict) -> None:
    if "name" in data and not (data["name"] or "").strip():
        raise HTTPException(status_code=400, detail="Item name is required")
    if "cost_price" in data and (data["cost_price"] is None or data["cost_price"] <= 0):
        raise HTTPException(status_code=400, detail="Valid cost_price is required")
    if "selling_price" in data and (data["selling_price"] is None or data["selling_price"] < 0):
        raise HTTPException(status_code=400, detail="selling_price cannot be negative")
    if "stock" in data and (data["stock"] is None or data["stock"] < 0):
        raise HTTPException(status_code=400, detail="Stock cannot be negative")
    if "tax_rate" in data and (data["tax_rate"] is None or not 0 <= data["tax_rate"] <= 100):
        raise HTTPException(status_code=400, detail="tax_rate must be 0-100")
    if "low_stock_threshold" in data and (data["low_stock_threshold"] is None or data["low_stock_threshold"] < 0):
        raise HTTPException(status_code=400, detail="low_stock_threshold cannot be negative")


def _clean_barcode(data: dict) -> None:
    # blank barcode means "none" so the unique index ignores it
    if "barcode" in data:
        bc = (data["barcode"] or "").strip()
        data["barcode"] = bc or None


def _commit_unique(session) -> None:
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("Barcode already exists")


# ---------- Endpoints ----------
@router.get("/", response_model=List[ItemOut])
def list_items(
    q: Optional[str] = Query(None, description="Search in name/barcode"),
    low_stock: bool = Query(False, description="Only items at or below their threshold"),
    limit: int = Query(500, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    stmt = select(Item)
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where(or_(Item.name.ilike(like), Item.barcode.ilike(like)))
    if low_stock:
        stmt = stmt.where(Item.stock <= Item.low_stock_threshold)
    stmt = stmt.order_by(Item.name, Item.id).limit(limit).offset(offset)
    return session.exec(stmt).all()


@router.get("/{item_id}", response_model=ItemOut)
def get_item(item_id: int, session: Session = Depends(get_session)):
    item = session.get(Item, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.post("/", response_model=ItemOut, status_code=201)
def create_item(payload: ItemCreate, session: Session = Depends(get_session)):
    data = payload.model_dump()
    _check_fields(data)
    _clean_barcode(data)

    item = Item(**data, created_at=now_ts(), updated_at=now_ts())
    session.add(item)
    _commit_unique(session)
    session.refresh(item)
    logger.info("item %s created: %s", item.id, item.name)
    return item


@router.patch("/{item_id}", response_model=ItemOut)
def update_item(item_id: int, payload: ItemUpdate, session: Session = Depends(get_session)):
    item = session.get(Item, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    data = payload.model_dump(exclude_unset=True)
    _check_fields(data)
    _clean_barcode(data)

    for k, v in data.items():
        setattr(item, k, v)
    item.updated_at = now_ts()

    session.add(item)
    _commit_unique(session)
    session.refresh(item)
    return item


@router.delete("/{item_id}", status_code=204, dependencies=[Depends(require_role("admin"))])
def delete_item(item_id: int, session: Session = Depends(get_session)):
    item = session.get(Item, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    session.delete(item)
    session.commit()
    return Response(status_code=204)
