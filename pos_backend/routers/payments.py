# pos_backend/routers/payments.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from pos_backend.db import get_session
from pos_backend.models import Payment
from pos_backend.schemas import PaymentCreate, PaymentCreated, PaymentOut, TransactionOut
from pos_backend.services.payments import record_payment

router = APIRouter()


@router.get("/", response_model=List[PaymentOut])
def list_payments(
    customer_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    stmt = select(Payment)
    if customer_id is not None:
        stmt = stmt.where(Payment.customer_id == customer_id)
    stmt = stmt.order_by(Payment.created_at.desc(), Payment.id.desc()).limit(limit).offset(offset)
    return session.exec(stmt).all()


@router.post("/", response_model=PaymentCreated, status_code=201)
def post_payment(payload: PaymentCreate, session: Session = Depends(get_session)):
    payment, tx = record_payment(session, payload)
    return PaymentCreated(
        payment=PaymentOut.model_validate(payment),
        transaction=TransactionOut.model_validate(tx),
    )
