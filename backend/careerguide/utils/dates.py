from datetime import date, datetime, timezone
from typing import Any, Optional


def to_datetime(value: Any) -> Optional[datetime]:
    """Normalize stored timestamps (ISO strings or store datetimes) to naive UTC"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def in_range(value: Any, start: Optional[date], end: Optional[date]) -> bool:
    """Inclusive date-range check; unparseable values only pass an open range"""
    if start is None and end is None:
        return True
    dt = to_datetime(value)
    if dt is None:
        return False
    if start is not None and dt.date() < start:
        return False
    if end is not None and dt.date() > end:
        return False
    return True


def iso(value: Any) -> str:
    dt = to_datetime(value)
    return dt.isoformat() if dt else ""
