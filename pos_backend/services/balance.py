# pos_backend/services/balance.py
from sqlalchemy import func, update
from sqlmodel import Session, select

from pos_backend.errors import NotFound
from pos_backend.models import Customer, now_ts


def adjust_balance(session: Session, customer_id: int, delta: float) -> float:
    """
    The one place Customer.balance changes. Applied as ``balance + delta``
    in SQL so concurrent bills and payments for one customer cannot
    overwrite each other. Returns the new balance.
    """
    stmt = (
        update(Customer)
        .where(Customer.id == customer_id)
        .values(balance=func.round(Customer.balance + delta, 2), updated_at=now_ts())
        .execution_options(synchronize_session=False)
    )
    result = session.exec(stmt)
    if result.rowcount != 1:
        raise NotFound(f"Customer not found: {customer_id}")

    return session.exec(
        select(Customer.balance).where(Customer.id == customer_id)
    ).one()
