# pos_backend/routers/transactions.py
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from pos_backend.db import get_session
from pos_backend.models import Bill
from pos_backend.schemas import BillRef, TransactionDetail
from pos_backend.services import ledger

router = APIRouter()


@router.get("/", response_model=List[TransactionDetail])
def list_transactions(
    customer_id: Optional[int] = Query(None),
    from_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    to_date: Optional[str] = Query(None, description="YYYY-MM-DD (inclusive)"),
    limit: int = Query(500, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    # newest first
    rows = ledger.list_entries(
        session,
        customer_id=customer_id,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
        offset=offset,
    )

    bill_ids = {r.bill_id for r in rows if r.bill_id is not None}
    bills: Dict[int, Bill] = {}
    if bill_ids:
        bills = {b.id: b for b in session.exec(select(Bill).where(Bill.id.in_(bill_ids))).all()}

    out = []
    for r in rows:
        b = bills.get(r.bill_id) if r.bill_id is not None else None
        out.append(TransactionDetail(
            **r.model_dump(),
            bill=BillRef.model_validate(b) if b else None,
        ))
    return out
