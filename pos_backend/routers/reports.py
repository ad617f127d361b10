# pos_backend/routers/reports.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from pos_backend.db import get_session
from pos_backend.schemas import SalesRow
from pos_backend.services.reports import export_bills_csv, sales_report

router = APIRouter()


@router.get("/sales", response_model=List[SalesRow])
def get_sales(
    period: str = Query(..., description="daily | weekly | monthly | custom"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, custom only"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, custom only"),
    session: Session = Depends(get_session),
):
    return sales_report(session, period, start_date=start_date, end_date=end_date)


@router.get("/export")
def export_sales(session: Session = Depends(get_session)) -> Response:
    return Response(
        content=export_bills_csv(session),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sales_report.csv"'},
    )
