import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from pos_backend.auth import require_role
from pos_backend.db import get_session, unit_of_work
from pos_backend.errors import Conflict
from pos_backend.models import (
    Bill, BillItem, Customer, Payment, Refund, RefundItem, Transaction,
)
from pos_backend.schemas import CustomerCreate, CustomerOut, CustomerUpdate

logger = logging.getLogger("pos.customers")

router = APIRouter()


def _normalize_phone(v: Optional[str]) -> str:
    raw = str(v or "").strip()
    digits = "".join(ch for ch in raw if ch.isdigit() or ch == "+")
    if not digits:
        raise HTTPException(status_code=400, detail="Phone is required")
    return digits


def _normalize_name(v: Optional[str]) -> str:
    return " ".join(str(v or "").strip().split())


def _account_exists(session, account_number: str, exclude_customer_id: Optional[int] = None) -> bool:
    stmt = select(Customer.id).where(Customer.account_number == account_number)
    if exclude_customer_id is not None:
        stmt = stmt.where(Customer.id != int(exclude_customer_id))
    return session.exec(stmt.limit(1)).first() is not None


def _commit_unique(session) -> None:
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("Account number exists")


@router.post("/", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerCreate, session: Session = Depends(get_session)) -> CustomerOut:
    name = _normalize_name(payload.name)
    account_number = payload.account_number.strip()
    if not name or not account_number:
        raise HTTPException(status_code=400, detail="Name, phone, and account number required")
    phone = _normalize_phone(payload.phone)

    address = str(payload.address).strip() if payload.address is not None else None
    if address == "":
        address = None

    if _account_exists(session, account_number):
        raise Conflict("Account number exists")

    now = datetime.now().isoformat(timespec="seconds")
    # balance starts at zero; only bills, payments and refunds move it
    row = Customer(
        name=name,
        phone=phone,
        address=address,
        account_number=account_number,
        created_at=now,
        updated_at=now,
    )
    session.add(row)
    _commit_unique(session)
    session.refresh(row)
    return row


@router.get("/", response_model=List[CustomerOut])
def list_customers(
    q: Optional[str] = Query(None, description="Search name/phone/account number"),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
) -> List[CustomerOut]:
    stmt = select(Customer)
    qq = (q or "").strip()
    if qq:
        like = f"%{qq.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Customer.name).like(like),
                func.lower(Customer.phone).like(like),
                func.lower(Customer.account_number).like(like),
            )
        )
    stmt = (
        stmt.order_by(func.lower(Customer.name).asc(), Customer.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return session.exec(stmt).all()


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, session: Session = Depends(get_session)) -> CustomerOut:
    row = session.get(Customer, customer_id)
    if not row:
        raise HTTPException(status_code=404, detail="Customer not found")
    return row


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    session: Session = Depends(get_session),
) -> CustomerOut:
    row = session.get(Customer, customer_id)
    if not row:
        raise HTTPException(status_code=404, detail="Customer not found")

    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        nm = _normalize_name(data.get("name"))
        if not nm:
            raise HTTPException(status_code=400, detail="Customer name is required")
        row.name = nm
    if "phone" in data:
        row.phone = _normalize_phone(data.get("phone"))
    if "account_number" in data:
        acct = str(data.get("account_number") or "").strip()
        if not acct:
            raise HTTPException(status_code=400, detail="Account number is required")
        if _account_exists(session, acct, exclude_customer_id=customer_id):
            raise Conflict("Account number exists")
        row.account_number = acct
    if "address" in data:
        addr = data.get("address")
        row.address = str(addr).strip() if addr is not None and str(addr).strip() != "" else None

    row.updated_at = datetime.now().isoformat(timespec="seconds")
    session.add(row)
    _commit_unique(session)
    session.refresh(row)
    return row


@router.delete("/{customer_id}", status_code=204, dependencies=[Depends(require_role("admin"))])
def delete_customer(customer_id: int, session: Session = Depends(get_session)) -> Response:
    row = session.get(Customer, customer_id)
    if not row:
        raise HTTPException(status_code=404, detail="Customer not found")

    # the customer's ledger, bills, payments and refunds go with them
    with unit_of_work(session):
        bill_ids = select(Bill.id).where(Bill.customer_id == customer_id)
        refund_ids = select(Refund.id).where(Refund.customer_id == customer_id)
        session.exec(delete(Transaction).where(Transaction.customer_id == customer_id))
        session.exec(delete(RefundItem).where(RefundItem.refund_id.in_(refund_ids)))
        session.exec(delete(Refund).where(Refund.customer_id == customer_id))
        session.exec(delete(BillItem).where(BillItem.bill_id.in_(bill_ids)))
        session.exec(delete(Bill).where(Bill.customer_id == customer_id))
        session.exec(delete(Payment).where(Payment.customer_id == customer_id))
        session.delete(row)

    logger.info("customer %s deleted with ledger history", customer_id)
    return Response(status_code=204)
