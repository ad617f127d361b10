# pos_backend/services/bills.py
"""
Bill lifecycle: pending -> completed (at creation, when paid in full) and
{pending, completed} -> refunded (terminal, once).

Creation and refund each touch four records (stock, balance, bill/refund,
ledger). Each runs inside one ``unit_of_work`` so either every write lands
or none does.
"""
import hashlib
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from pos_backend.db import unit_of_work
from pos_backend.errors import Conflict, NotFound, ValidationError
from pos_backend.models import (
    BILL_COMPLETED, BILL_PENDING, BILL_REFUNDED,
    TX_BILL, TX_PAYMENT, TX_REFUND,
    Bill, BillItem, Customer, Refund, RefundItem, Transaction, now_ts,
)
from pos_backend.schemas import BillCreate, RefundCreate
from pos_backend.services import ledger, stock
from pos_backend.services.balance import adjust_balance
from pos_backend.services.payments import persist_payment
from pos_backend.services.validation import validate_bill
from pos_backend.utils.money import EPSILON, is_amount, round2

logger = logging.getLogger("pos.bills")


def bill_ref(bill_id: int) -> str:
    return f"#{bill_id:06d}"


def bill_lines(session: Session, bill_id: int) -> List[BillItem]:
    return session.exec(
        select(BillItem).where(BillItem.bill_id == bill_id).order_by(BillItem.id)
    ).all()


def find_by_idempotency_key(session: Session, key: str) -> Optional[Bill]:
    return session.exec(select(Bill).where(Bill.idempotency_key == key)).first()


def request_fingerprint(payload: BillCreate) -> str:
    return hashlib.sha256(payload.model_dump_json().encode("utf-8")).hexdigest()


def _replay(
    session: Session, existing: Bill, key: str, fingerprint: Optional[str],
) -> Tuple[Bill, List[Transaction], bool]:
    # a key only replays the exact request it was first used with
    if existing.request_hash != fingerprint:
        raise Conflict(f"Idempotency key {key!r} was already used for a different bill")
    logger.info("bill %s replayed for idempotency key %r", bill_ref(existing.id), key)
    return existing, ledger.entries_for_bill(session, existing.id), False


def create_bill(
    session: Session,
    payload: BillCreate,
    idempotency_key: Optional[str] = None,
) -> Tuple[Bill, List[Transaction], bool]:
    """
    Returns (bill, transactions, created). ``created`` is False when the
    idempotency key matched an earlier identical request, whose bill is
    returned untouched. Reusing a key for a different request is a Conflict.
    """
    fingerprint = request_fingerprint(payload) if idempotency_key else None
    if idempotency_key:
        existing = find_by_idempotency_key(session, idempotency_key)
        if existing:
            return _replay(session, existing, idempotency_key, fingerprint)

    # every check happens before the first write
    vb = validate_bill(session, payload)
    status = BILL_COMPLETED if vb.partial_payment >= vb.grand_total else BILL_PENDING

    try:
        with unit_of_work(session):
            bill = Bill(
                customer_id=vb.customer.id,
                subtotal=vb.subtotal,
                markup=vb.markup,
                discount=vb.discount,
                grand_total=vb.grand_total,
                grand_total_cost=vb.grand_total_cost,
                tax_total=vb.tax_total,
                payment_type=vb.payment_type,
                partial_payment=vb.partial_payment,
                status=status,
                idempotency_key=idempotency_key,
                request_hash=fingerprint,
                created_at=now_ts(),
            )
            session.add(bill)
            session.flush()

            for ln in vb.lines:
                session.add(BillItem(
                    bill_id=bill.id,
                    item_id=ln.item.id,
                    quantity=ln.quantity,
                    unit_price=ln.unit_price,
                    custom_price=ln.custom_price,
                    unit_cost=ln.unit_cost,
                    tax_rate=ln.tax_rate,
                    total=ln.total,
                    total_cost=ln.total_cost,
                ))

            for ln in vb.lines:
                stock.decrement(session, ln.item.id, ln.quantity)

            adjust_balance(session, vb.customer.id, vb.grand_total - vb.partial_payment)

            transactions = [ledger.append(
                session,
                customer_id=vb.customer.id,
                bill_id=bill.id,
                amount=vb.grand_total,
                type=TX_BILL,
                description=f"Bill {bill_ref(bill.id)}",
            )]

            if vb.partial_payment > 0:
                note = f"Payment for Bill {bill_ref(bill.id)}"
                payment = persist_payment(
                    session,
                    customer_id=vb.customer.id,
                    amount=vb.partial_payment,
                    payment_method=vb.payment_type,
                    description=note,
                )
                transactions.append(ledger.append(
                    session,
                    customer_id=vb.customer.id,
                    bill_id=bill.id,
                    payment_id=payment.id,
                    amount=-vb.partial_payment,
                    type=TX_PAYMENT,
                    description=note,
                ))
    except IntegrityError:
        # a concurrent request with the same key won the insert
        if idempotency_key:
            existing = find_by_idempotency_key(session, idempotency_key)
            if existing:
                return _replay(session, existing, idempotency_key, fingerprint)
        raise

    session.refresh(bill)
    for tx in transactions:
        session.refresh(tx)
    logger.info(
        "bill %s created: customer=%s grand_total=%.2f paid=%.2f status=%s",
        bill_ref(bill.id), bill.customer_id, bill.grand_total, bill.partial_payment, bill.status,
    )
    return bill, transactions, True


def _sold_map(lines: List[BillItem]) -> Dict[int, int]:
    """item_id -> quantity sold on the bill"""
    out: Dict[int, int] = {}
    for bi in lines:
        out[bi.item_id] = out.get(bi.item_id, 0) + int(bi.quantity)
    return out


def refund_bill(session: Session, payload: RefundCreate) -> Tuple[Refund, Transaction]:
    if not (is_amount(payload.amount) and payload.amount > 0) or not payload.items or not payload.reason.strip():
        raise ValidationError("Invalid refund data")

    bill = session.get(Bill, payload.bill_id)
    if not bill:
        raise ValidationError(f"Bill not found or already refunded: {payload.bill_id}")
    if bill.status == BILL_REFUNDED:
        raise ValidationError(f"Bill {bill_ref(bill.id)} already refunded")

    customer = session.get(Customer, payload.customer_id)
    if not customer:
        raise NotFound(f"Customer not found: {payload.customer_id}")
    if bill.customer_id != customer.id:
        raise ValidationError(f"Bill {bill_ref(bill.id)} does not belong to customer {customer.id}")

    amount = round2(payload.amount)
    if amount > bill.grand_total + EPSILON:
        raise ValidationError(
            f"Refund amount {amount} exceeds bill grand total {bill.grand_total}"
        )

    # quantities are checked against the original bill lines only
    sold = _sold_map(bill_lines(session, bill.id))
    requested: Dict[int, int] = {}
    for line in payload.items:
        if line.quantity <= 0:
            raise ValidationError("Quantity must be > 0")
        requested[line.item_id] = requested.get(line.item_id, 0) + line.quantity
        if requested[line.item_id] > sold.get(line.item_id, 0):
            raise ValidationError(f"Invalid refund quantity for item {line.item_id}")

    with unit_of_work(session):
        # claim the terminal transition first; a racing refund finds 0 rows
        claimed = session.exec(
            update(Bill)
            .where(Bill.id == bill.id, Bill.status != BILL_REFUNDED)
            .values(status=BILL_REFUNDED)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            raise ValidationError(f"Bill {bill_ref(bill.id)} already refunded")

        for line in payload.items:
            stock.increment(session, line.item_id, line.quantity)

        refund = Refund(
            bill_id=bill.id,
            customer_id=customer.id,
            amount=amount,
            reason=payload.reason,
            created_at=now_ts(),
        )
        session.add(refund)
        session.flush()
        for line in payload.items:
            session.add(RefundItem(refund_id=refund.id, item_id=line.item_id, quantity=line.quantity))

        adjust_balance(session, customer.id, -amount)
        tx = ledger.append(
            session,
            customer_id=customer.id,
            bill_id=bill.id,
            amount=-amount,
            type=TX_REFUND,
            description=f"Refund for Bill {bill_ref(bill.id)}: {payload.reason}",
        )

    session.refresh(refund)
    session.refresh(tx)
    logger.info("refund #%s for bill %s: amount=%.2f", refund.id, bill_ref(bill.id), amount)
    return refund, tx


def refund_lines(session: Session, refund_id: int) -> List[RefundItem]:
    return session.exec(
        select(RefundItem).where(RefundItem.refund_id == refund_id).order_by(RefundItem.id)
    ).all()
