# pos_backend/services/reports.py
import csv
import io
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlmodel import Session, select

from pos_backend.errors import ValidationError
from pos_backend.models import BILL_COMPLETED, Bill, Customer, Item
from pos_backend.services.bills import bill_lines
from pos_backend.utils.dates import parse_ymd
from pos_backend.utils.money import round2

PERIODS = ("daily", "weekly", "monthly", "custom")

EXPORT_FIELDS = [
    "bill_id", "customer", "date", "subtotal", "tax_total",
    "discount", "grand_total", "payment_type", "items",
]


def _window_start(period: str, now: datetime) -> datetime:
    if period == "daily":
        return now - timedelta(days=30)
    if period == "weekly":
        return now - timedelta(days=84)
    # monthly: twelve months back
    try:
        return now.replace(year=now.year - 1)
    except ValueError:   # Feb 29
        return now.replace(year=now.year - 1, day=28)


def _period_key(period: str, created_at: str) -> str:
    ts = datetime.fromisoformat(created_at)
    if period == "weekly":
        return ts.strftime("%Y-W%U")   # Sunday-based week number
    if period == "monthly":
        return ts.strftime("%Y-%m")
    return ts.strftime("%Y-%m-%d")


def sales_report(
    session: Session,
    period: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[dict]:
    """
    Totals of completed bills grouped by day, week or month. Read only.
    ``custom`` groups by day between two inclusive YYYY-MM-DD dates.
    """
    if period not in PERIODS:
        raise ValidationError("Invalid period")

    stmt = select(Bill).where(Bill.status == BILL_COMPLETED)
    if period == "custom":
        if not start_date or not end_date:
            raise ValidationError("Start and end dates required")
        try:
            start, end = parse_ymd(start_date), parse_ymd(end_date)
        except ValidationError:
            raise ValidationError("Invalid date range")
        if start > end:
            raise ValidationError("Invalid date range")
        stmt = stmt.where(
            Bill.created_at >= start.strftime("%Y-%m-%dT00:00:00"),
            Bill.created_at <= end.strftime("%Y-%m-%dT23:59:59"),
        )
    else:
        since = _window_start(period, now or datetime.now())
        stmt = stmt.where(Bill.created_at >= since.isoformat(timespec="seconds"))

    groups: Dict[str, dict] = {}
    for b in session.exec(stmt).all():
        key = _period_key(period, b.created_at)
        row = groups.setdefault(key, {
            "period": key,
            "total_sales": 0.0,
            "total_cost": 0.0,
            "total_profit": 0.0,
            "total_tax": 0.0,
            "bill_count": 0,
        })
        row["total_sales"] += b.grand_total
        row["total_cost"] += b.grand_total_cost
        row["total_profit"] += b.grand_total - b.grand_total_cost
        row["total_tax"] += b.tax_total or 0.0
        row["bill_count"] += 1

    out = []
    for key in sorted(groups):
        row = groups[key]
        for k in ("total_sales", "total_cost", "total_profit", "total_tax"):
            row[k] = round2(row[k])
        out.append(row)
    return out


def export_bills_csv(session: Session) -> str:
    bills = session.exec(select(Bill).order_by(Bill.created_at.desc(), Bill.id.desc())).all()
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_FIELDS, lineterminator="\n")
    writer.writeheader()
    for b in bills:
        customer = session.get(Customer, b.customer_id)
        parts = []
        for bi in bill_lines(session, b.id):
            item = session.get(Item, bi.item_id)
            parts.append(f"{item.name if item else bi.item_id} x{bi.quantity}")
        writer.writerow({
            "bill_id": b.id,
            "customer": customer.name if customer else "",
            "date": b.created_at,
            "subtotal": b.subtotal,
            "tax_total": b.tax_total,
            "discount": b.discount,
            "grand_total": b.grand_total,
            "payment_type": b.payment_type,
            "items": ";".join(parts),
        })
    return buf.getvalue()
