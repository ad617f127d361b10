# pos_backend/services/ledger.py
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from pos_backend.errors import ValidationError
from pos_backend.models import TX_BILL, TX_PAYMENT, TX_REFUND, Transaction, now_ts
from pos_backend.utils.dates import day_bounds
from pos_backend.utils.money import round2

TX_TYPES = {TX_BILL, TX_PAYMENT, TX_REFUND}


def append(
    session: Session,
    *,
    customer_id: int,
    amount: float,
    type: str,
    description: Optional[str] = None,
    bill_id: Optional[int] = None,
    payment_id: Optional[int] = None,
) -> Transaction:
    """
    Append-only ledger row. Amount is signed the same way as the balance
    change it records: +amount => customer owes more.
    """
    if type not in TX_TYPES:
        raise ValidationError(f"Unknown transaction type: {type}")
    tx = Transaction(
        customer_id=int(customer_id),
        bill_id=bill_id,
        payment_id=payment_id,
        amount=round2(amount),
        type=type,
        description=description,
        created_at=now_ts(),
    )
    session.add(tx)
    session.flush()
    return tx


def list_entries(
    session: Session,
    customer_id: Optional[int] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    limit: int = 500,
    offset: int = 0,
) -> List[Transaction]:
    stmt = select(Transaction)
    if customer_id is not None:
        stmt = stmt.where(Transaction.customer_id == customer_id)
    start_iso, end_iso = day_bounds(from_date, to_date)
    if start_iso:
        stmt = stmt.where(Transaction.created_at >= start_iso)
    if end_iso:
        stmt = stmt.where(Transaction.created_at <= end_iso)
    stmt = (
        stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return session.exec(stmt).all()


def entries_for_bill(session: Session, bill_id: int) -> List[Transaction]:
    return session.exec(
        select(Transaction).where(Transaction.bill_id == bill_id).order_by(Transaction.id)
    ).all()


def replay_balance(session: Session, customer_id: int) -> float:
    """Sum of every ledger amount for the customer; equals Customer.balance."""
    total = session.exec(
        select(func.coalesce(func.sum(Transaction.amount), 0.0)).where(
            Transaction.customer_id == customer_id
        )
    ).one()
    return round2(float(total))
