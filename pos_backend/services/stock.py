# pos_backend/services/stock.py
from sqlalchemy import update
from sqlmodel import Session

from pos_backend.errors import InsufficientStock, NotFound
from pos_backend.models import Item, now_ts


def decrement(session: Session, item_id: int, quantity: int) -> None:
    """
    Take ``quantity`` units out of stock in one conditional UPDATE.
    Fails closed when the row would go below zero, so two bills racing for
    the last units cannot both succeed.
    """
    stmt = (
        update(Item)
        .where(Item.id == item_id, Item.stock >= quantity)
        .values(stock=Item.stock - quantity, updated_at=now_ts())
        .execution_options(synchronize_session=False)
    )
    result = session.exec(stmt)
    if result.rowcount != 1:
        if session.get(Item, item_id) is None:
            raise NotFound(f"Item not found: {item_id}")
        raise InsufficientStock(f"Insufficient stock for item {item_id}")


def increment(session: Session, item_id: int, quantity: int) -> None:
    stmt = (
        update(Item)
        .where(Item.id == item_id)
        .values(stock=Item.stock + quantity, updated_at=now_ts())
        .execution_options(synchronize_session=False)
    )
    result = session.exec(stmt)
    if result.rowcount != 1:
        raise NotFound(f"Item not found: {item_id}")
