# pos_backend/routers/refunds.py
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from pos_backend.db import get_session
from pos_backend.models import Refund
from pos_backend.schemas import RefundCreate, RefundCreated, RefundLineOut, RefundOut, TransactionOut
from pos_backend.services.bills import refund_bill, refund_lines

router = APIRouter()


def refund_out(session: Session, r: Refund) -> RefundOut:
    return RefundOut(
        **r.model_dump(),
        items=[RefundLineOut.model_validate(ri) for ri in refund_lines(session, r.id)],
    )


@router.get("/{refund_id}", response_model=RefundOut)
def get_refund(refund_id: int, session: Session = Depends(get_session)):
    r = session.get(Refund, refund_id)
    if not r:
        raise HTTPException(status_code=404, detail="Refund not found")
    return refund_out(session, r)


@router.post("/", response_model=RefundCreated, status_code=201)
def post_refund(payload: RefundCreate, session: Session = Depends(get_session)):
    refund, tx = refund_bill(session, payload)
    return RefundCreated(
        refund=refund_out(session, refund),
        transaction=TransactionOut.model_validate(tx),
    )
