# pos_backend/services/payments.py
import logging
from typing import Optional, Tuple

from sqlmodel import Session

from pos_backend.db import unit_of_work
from pos_backend.errors import NotFound, ValidationError
from pos_backend.models import PAYMENT_TYPES, TX_PAYMENT, Customer, Payment, Transaction, now_ts
from pos_backend.schemas import PaymentCreate
from pos_backend.services import ledger
from pos_backend.services.balance import adjust_balance
from pos_backend.utils.money import is_amount, round2

logger = logging.getLogger("pos.payments")


def persist_payment(
    session: Session,
    *,
    customer_id: int,
    amount: float,
    payment_method: str,
    description: Optional[str] = None,
) -> Payment:
    payment = Payment(
        customer_id=customer_id,
        amount=round2(amount),
        payment_method=payment_method,
        description=description,
        created_at=now_ts(),
    )
    session.add(payment)
    session.flush()   # need payment.id for the ledger row
    return payment


def record_payment(session: Session, payload: PaymentCreate) -> Tuple[Payment, Transaction]:
    """
    Standalone payment on the customer's running account (not tied to a bill):
    balance -= amount and one ``payment`` ledger row of -amount.
    """
    if not (is_amount(payload.amount) and payload.amount > 0) or payload.payment_method not in PAYMENT_TYPES:
        raise ValidationError("Invalid payment data")

    customer = session.get(Customer, payload.customer_id)
    if not customer:
        raise NotFound(f"Customer not found: {payload.customer_id}")

    amount = round2(payload.amount)
    with unit_of_work(session):
        payment = persist_payment(
            session,
            customer_id=customer.id,
            amount=amount,
            payment_method=payload.payment_method,
            description=payload.description,
        )
        adjust_balance(session, customer.id, -amount)
        tx = ledger.append(
            session,
            customer_id=customer.id,
            payment_id=payment.id,
            amount=-amount,
            type=TX_PAYMENT,
            description=payload.description or f"Payment of {amount}",
        )

    session.refresh(payment)
    session.refresh(tx)
    logger.info("payment #%s recorded: customer=%s amount=%.2f", payment.id, customer.id, amount)
    return payment, tx
