# pos_backend/schemas.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class _In(BaseModel):
    # unknown fields and NaN/Infinity literals are rejected at the boundary
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------- Items ----------
class ItemCreate(_In):
    name: str
    cost_price: float
    selling_price: float
    stock: int = 0
    barcode: Optional[str] = None
    type: Optional[str] = None
    size: Optional[str] = None
    tax_rate: float = 0.0
    low_stock_threshold: int = 10


class ItemUpdate(_In):
    name: Optional[str] = None
    cost_price: Optional[float] = None
    selling_price: Optional[float] = None
    stock: Optional[int] = None
    barcode: Optional[str] = None
    type: Optional[str] = None
    size: Optional[str] = None
    tax_rate: Optional[float] = None
    low_stock_threshold: Optional[int] = None


class ItemOut(_Out):
    id: int
    name: str
    barcode: Optional[str] = None
    cost_price: float
    selling_price: float
    stock: int
    type: Optional[str] = None
    size: Optional[str] = None
    tax_rate: float
    low_stock_threshold: int
    created_at: str
    updated_at: str


# ---------- Customers ----------
class CustomerCreate(_In):
    name: str
    phone: str
    account_number: str
    address: Optional[str] = None


class CustomerUpdate(_In):
    name: Optional[str] = None
    phone: Optional[str] = None
    account_number: Optional[str] = None
    address: Optional[str] = None


class CustomerOut(_Out):
    id: int
    name: str
    phone: str
    address: Optional[str] = None
    account_number: str
    balance: float
    created_at: str
    updated_at: str


class CustomerSummary(_Out):
    id: int
    name: str
    account_number: str
    balance: float


# ---------- Bills ----------
class BillLineIn(_In):
    item_id: int
    quantity: int
    unit_price: float
    custom_price: float
    total: float


class BillCreate(_In):
    # optional here so the validator can report every missing field at once
    customer_id: Optional[int] = None
    items: List[BillLineIn] = []
    subtotal: Optional[float] = None
    markup: float = 0.0
    discount: float = 0.0
    grand_total: Optional[float] = None
    payment_type: Optional[str] = None
    partial_payment: float = 0.0


class ItemSummary(_Out):
    id: int
    name: str
    type: Optional[str] = None
    size: Optional[str] = None


class BillLineOut(_Out):
    item_id: int
    item: Optional[ItemSummary] = None
    quantity: int
    unit_price: float
    custom_price: float
    unit_cost: float
    tax_rate: float
    total: float
    total_cost: float


class BillOut(_Out):
    id: int
    customer_id: int
    customer: Optional[CustomerSummary] = None
    items: List[BillLineOut]
    subtotal: float
    markup: float
    discount: float
    grand_total: float
    grand_total_cost: float
    tax_total: float
    payment_type: str
    partial_payment: float
    status: str
    created_at: str


# ---------- Ledger ----------
class TransactionOut(_Out):
    id: int
    customer_id: int
    bill_id: Optional[int] = None
    payment_id: Optional[int] = None
    amount: float
    type: str
    description: Optional[str] = None
    created_at: str


class BillRef(_Out):
    id: int
    grand_total: float
    status: str
    created_at: str


class TransactionDetail(TransactionOut):
    bill: Optional[BillRef] = None


class BillCreated(BaseModel):
    bill: BillOut
    transactions: List[TransactionOut]


# ---------- Payments ----------
class PaymentCreate(_In):
    customer_id: int
    amount: float
    payment_method: str
    description: Optional[str] = None


class PaymentOut(_Out):
    id: int
    customer_id: int
    amount: float
    payment_method: str
    description: Optional[str] = None
    created_at: str


class PaymentCreated(BaseModel):
    payment: PaymentOut
    transaction: TransactionOut


# ---------- Refunds ----------
class RefundLineIn(_In):
    item_id: int
    quantity: int


class RefundCreate(_In):
    bill_id: int
    customer_id: int
    amount: float
    items: List[RefundLineIn]
    reason: str


class RefundLineOut(_Out):
    item_id: int
    quantity: int


class RefundOut(_Out):
    id: int
    bill_id: int
    customer_id: int
    amount: float
    reason: str
    items: List[RefundLineOut]
    created_at: str


class RefundCreated(BaseModel):
    refund: RefundOut
    transaction: TransactionOut


# ---------- Reports ----------
class SalesRow(BaseModel):
    period: str
    total_sales: float
    total_cost: float
    total_profit: float
    total_tax: float
    bill_count: int


# ---------- Auth ----------
class LoginIn(_In):
    email: str
    password: str


class TokenOut(BaseModel):
    token: str
    token_type: str = "bearer"
