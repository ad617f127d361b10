# pos_backend/routers/bills.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from sqlmodel import Session, select

from pos_backend.db import get_session
from pos_backend.models import Bill, Customer, Item
from pos_backend.schemas import (
    BillCreate, BillCreated, BillLineOut, BillOut,
    CustomerSummary, ItemSummary, TransactionOut,
)
from pos_backend.services.bills import bill_lines, create_bill

router = APIRouter()


def bill_out(session: Session, b: Bill) -> BillOut:
    """Bill with customer and item summaries joined in."""
    customer = session.get(Customer, b.customer_id)
    items = []
    for bi in bill_lines(session, b.id):
        itm = session.get(Item, bi.item_id)
        items.append(BillLineOut(
            **bi.model_dump(),
            item=ItemSummary.model_validate(itm) if itm else None,
        ))
    return BillOut(
        **b.model_dump(),
        customer=CustomerSummary.model_validate(customer) if customer else None,
        items=items,
    )


@router.get("/", response_model=List[BillOut])
def list_bills(
    customer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="pending | completed | refunded"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    stmt = select(Bill)
    if customer_id is not None:
        stmt = stmt.where(Bill.customer_id == customer_id)
    if status:
        stmt = stmt.where(Bill.status == status)
    stmt = stmt.order_by(Bill.created_at.desc(), Bill.id.desc()).limit(limit).offset(offset)
    return [bill_out(session, b) for b in session.exec(stmt).all()]


@router.get("/{bill_id}", response_model=BillOut)
def get_bill(bill_id: int, session: Session = Depends(get_session)):
    b = session.get(Bill, bill_id)
    if not b:
        raise HTTPException(status_code=404, detail="Bill not found")
    return bill_out(session, b)


@router.post("/", response_model=BillCreated, status_code=201)
def post_bill(
    payload: BillCreate,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    session: Session = Depends(get_session),
):
    bill, transactions, created = create_bill(session, payload, idempotency_key=idempotency_key)
    if not created:
        response.status_code = 200
    return BillCreated(
        bill=bill_out(session, bill),
        transactions=[TransactionOut.model_validate(t) for t in transactions],
    )
