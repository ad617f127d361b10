# pos_backend/services/validation.py
"""
Trust boundary for bill creation.

Client-submitted line totals, subtotal and grand total are advisory: every
amount stored on a bill is recomputed here from the customer's request
quantities/prices and the catalogue's cost and tax data.
"""
from dataclasses import dataclass
from typing import Dict, List

from sqlmodel import Session

from pos_backend.errors import InsufficientStock, NotFound, ValidationError
from pos_backend.models import PAYMENT_TYPES, Customer, Item
from pos_backend.schemas import BillCreate
from pos_backend.utils.money import apply_markup_discount, close_enough, is_amount, round2


@dataclass
class ValidatedLine:
    item: Item
    quantity: int
    unit_price: float
    custom_price: float
    unit_cost: float
    tax_rate: float
    total: float
    total_cost: float


@dataclass
class ValidatedBill:
    customer: Customer
    lines: List[ValidatedLine]
    subtotal: float
    markup: float
    discount: float
    grand_total: float
    grand_total_cost: float
    tax_total: float
    payment_type: str
    partial_payment: float


def _is_positive(value) -> bool:
    return is_amount(value) and value > 0


def _is_percent(value) -> bool:
    return is_amount(value) and 0 <= value <= 100


def check_bill_fields(payload: BillCreate) -> None:
    """Shape and range checks; all problems are reported together."""
    errors = []
    if not payload.customer_id:
        errors.append("customer_id required")
    if not payload.items:
        errors.append("items must be a non-empty list")
    if not _is_positive(payload.subtotal):
        errors.append("subtotal must be positive")
    if not _is_percent(payload.markup):
        errors.append("markup must be 0-100")
    if not _is_percent(payload.discount):
        errors.append("discount must be 0-100")
    if not _is_positive(payload.grand_total):
        errors.append("grand_total must be positive")
    if payload.payment_type not in PAYMENT_TYPES:
        errors.append("payment_type must be cash or credit")
    if not (is_amount(payload.partial_payment) and payload.partial_payment >= 0):
        errors.append("partial_payment must be non-negative")
    if errors:
        raise ValidationError("; ".join(errors))


def validate_bill(session: Session, payload: BillCreate) -> ValidatedBill:
    """Run every pre-write check for a bill. Reads only."""
    check_bill_fields(payload)

    customer = session.get(Customer, payload.customer_id)
    if not customer:
        raise NotFound(f"Customer not found: {payload.customer_id}")

    lines: List[ValidatedLine] = []
    requested: Dict[int, int] = {}
    for index, line in enumerate(payload.items):
        if line.quantity <= 0:
            raise ValidationError(f"Item {index}: quantity must be > 0")
        if not (_is_positive(line.unit_price) and _is_positive(line.custom_price)):
            raise ValidationError(f"Item {index}: unit_price and custom_price must be positive")

        item = session.get(Item, line.item_id)
        if not item:
            raise NotFound(f"Item {index}: Item not found: {line.item_id}")

        requested[item.id] = requested.get(item.id, 0) + line.quantity
        if item.stock < requested[item.id]:
            raise InsufficientStock(
                f"Item {index}: Insufficient stock for {item.name}: {item.stock} available"
            )

        unit_cost = float(item.cost_price)
        tax_rate = float(item.tax_rate or 0.0)
        lines.append(ValidatedLine(
            item=item,
            quantity=line.quantity,
            unit_price=line.unit_price,
            custom_price=line.custom_price,
            unit_cost=unit_cost,
            tax_rate=tax_rate,
            total=round2(line.quantity * line.custom_price),
            total_cost=round2(line.quantity * unit_cost),
        ))

    calculated_subtotal = round2(sum(ln.total for ln in lines))
    if not close_enough(calculated_subtotal, payload.subtotal):
        raise ValidationError(
            f"Subtotal mismatch: provided {payload.subtotal}, calculated {calculated_subtotal}"
        )

    calculated_grand_total = round2(
        apply_markup_discount(calculated_subtotal, payload.markup, payload.discount)
    )
    if not close_enough(calculated_grand_total, payload.grand_total):
        raise ValidationError(
            f"Grand total mismatch: provided {payload.grand_total}, calculated {calculated_grand_total}"
        )

    return ValidatedBill(
        customer=customer,
        lines=lines,
        subtotal=calculated_subtotal,
        markup=payload.markup,
        discount=payload.discount,
        grand_total=calculated_grand_total,
        grand_total_cost=round2(sum(ln.total_cost for ln in lines)),
        tax_total=round2(sum(ln.total * ln.tax_rate / 100.0 for ln in lines)),
        payment_type=payload.payment_type,
        partial_payment=round2(payload.partial_payment),
    )
