from datetime import datetime
from typing import Optional, Tuple

from pos_backend.errors import ValidationError


def parse_ymd(date_str: str) -> datetime:
    try:
        return datetime.strptime(date_str, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValidationError("date must be YYYY-MM-DD")


def day_bounds(from_date: Optional[str], to_date: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Turn inclusive YYYY-MM-DD dates into ISO bounds comparable with the
    stored ``created_at`` strings ("YYYY-MM-DDTHH:MM:SS").
    Either side may be open.
    """
    start_iso = end_iso = None
    if from_date:
        start_iso = parse_ymd(from_date).strftime("%Y-%m-%dT00:00:00")
    if to_date:
        end_iso = parse_ymd(to_date).strftime("%Y-%m-%dT23:59:59")
    return start_iso, end_iso
