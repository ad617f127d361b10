# pos_backend/models.py
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


def now_ts() -> str:
    return datetime.now().isoformat(timespec="seconds")


BILL_PENDING = "pending"
BILL_COMPLETED = "completed"
BILL_REFUNDED = "refunded"

TX_BILL = "bill"
TX_PAYMENT = "payment"
TX_REFUND = "refund"

PAYMENT_TYPES = {"cash", "credit"}


# ---------- DB Tables ----------
class Item(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    barcode: Optional[str] = Field(default=None, unique=True, index=True)
    cost_price: float
    selling_price: float
    stock: int = 0
    type: Optional[str] = None
    size: Optional[str] = None
    tax_rate: float = 0.0               # percent, GST style
    low_stock_threshold: int = 10
    created_at: str = Field(default_factory=now_ts)
    updated_at: str = Field(default_factory=now_ts)


class Customer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    phone: str
    address: Optional[str] = None
    account_number: str = Field(unique=True, index=True)
    # positive => customer owes money; written only by services.balance
    balance: float = 0.0
    created_at: str = Field(default_factory=now_ts)
    updated_at: str = Field(default_factory=now_ts)


class Bill(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="customer.id", index=True)
    subtotal: float                     # sum of qty * custom_price
    markup: float = 0.0                 # percent
    discount: float = 0.0               # percent
    grand_total: float
    grand_total_cost: float
    tax_total: float = 0.0
    payment_type: str                   # "cash" | "credit"
    partial_payment: float = 0.0
    status: str = Field(default=BILL_PENDING, index=True)
    idempotency_key: Optional[str] = Field(default=None, unique=True, index=True)
    request_hash: Optional[str] = None   # sha256 of the request the key was first used with
    created_at: str = Field(default_factory=now_ts, index=True)


class BillItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    bill_id: int = Field(foreign_key="bill.id", index=True)
    item_id: int
    quantity: int
    unit_price: float
    custom_price: float
    unit_cost: float                    # cost snapshot at bill time
    tax_rate: float = 0.0               # tax snapshot at bill time
    total: float                        # quantity * custom_price
    total_cost: float                   # quantity * unit_cost


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="customer.id", index=True)
    amount: float
    payment_method: str
    description: Optional[str] = None
    created_at: str = Field(default_factory=now_ts)


class Transaction(SQLModel, table=True):
    """Append-only ledger row. Signed amount: + increases what the customer owes."""

    __tablename__ = "ledger_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="customer.id", index=True)
    bill_id: Optional[int] = Field(default=None, foreign_key="bill.id")
    payment_id: Optional[int] = Field(default=None, foreign_key="payment.id")
    amount: float
    type: str                           # "bill" | "payment" | "refund"
    description: Optional[str] = None
    created_at: str = Field(default_factory=now_ts, index=True)


class Refund(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    bill_id: int = Field(foreign_key="bill.id", index=True)
    customer_id: int = Field(foreign_key="customer.id", index=True)
    amount: float
    reason: str
    created_at: str = Field(default_factory=now_ts)


class RefundItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    refund_id: int = Field(foreign_key="refund.id", index=True)
    item_id: int
    quantity: int


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    role: str = "staff"
