import re
from datetime import date, datetime, timedelta
from typing import Iterator

from ..config import settings
from ..errors import ValidationError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value, field: str = "date") -> date:
    """
    Parse a calendar date given as ``YYYY-MM-DD``.
    ``date`` objects pass through; datetimes are cut to their date part.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValidationError(f"Invalid date format found for {field}: {value}. Use YYYY-MM-DD.")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid date format found for {field}: {value}. Use YYYY-MM-DD.")


def parse_range(start, end, start_field: str = "checkInDate", end_field: str = "checkOutDate") -> tuple[date, date]:
    """Parse and validate a half-open ``[start, end)`` range, bounded by MAX_RANGE_DAYS."""
    s = parse_date(start, start_field)
    e = parse_date(end, end_field)
    if e <= s:
        raise ValidationError(f"{end_field} must be after {start_field}")
    if (e - s).days > settings.MAX_RANGE_DAYS:
        raise ValidationError(f"Date range may not exceed {settings.MAX_RANGE_DAYS} days")
    return s, e


def parse_date_list(values, field: str = "dates") -> list[date]:
    """Sorted distinct dates of a non-empty list whose span stays within MAX_RANGE_DAYS."""
    if not values or not isinstance(values, (list, tuple, set)):
        raise ValidationError(f"{field} must be a non-empty list.")
    days = sorted({parse_date(v, field) for v in values})
    if (days[-1] - days[0]).days + 1 > settings.MAX_RANGE_DAYS:
        raise ValidationError(f"{field} may not span more than {settings.MAX_RANGE_DAYS} days")
    return days


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date in ``[start, end)``."""
    d = start
    one = timedelta(days=1)
    while d < end:
        yield d
        d += one


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 2000 <= year <= 2100:
        raise ValidationError("Year must be between 2000 and 2100")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end
