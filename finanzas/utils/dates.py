# -*- coding: utf-8 -*-
"""Calendar helpers shared by the budget engine and the dashboard."""
import calendar
from datetime import date, datetime, timezone
from typing import Optional, Tuple

# Years accepted for budgets and monthly reports.
MIN_YEAR, MAX_YEAR = 2000, 2100

# Short Spanish month labels, as shown on the dashboard charts.
MONTH_LABELS = ("ene", "feb", "mar", "abr", "may", "jun",
                "jul", "ago", "sept", "oct", "nov", "dic")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat those as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month (both inclusive)."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def from_unix(value) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def parse_iso_datetime(value) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime string (``Z`` suffix allowed)."""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return as_aware(parsed)
