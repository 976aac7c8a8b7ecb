"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2025-01-15", "January 15, 2025", etc.
    - Relative dates: "today", "yesterday", "this month", "last month"

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a billing period.

    Args:
        period: Period string (this-month, last-month, or a month like 2025-01)

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return (today.replace(day=1), today)

    if period == "last-month":
        # First day of last month through the day before this month began
        start_date = (today - relativedelta(months=1)).replace(day=1)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    try:
        month_start = datetime.strptime(period, "%Y-%m").date()
    except ValueError:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: this-month, last-month, YYYY-MM"
        )
    return (month_start, month_start + relativedelta(months=1) - timedelta(days=1))


def month_to_date_bounds(as_of: date) -> tuple[datetime, datetime]:
    """Return [start, end) datetimes from the first of as_of's month through as_of."""
    start = datetime.combine(as_of.replace(day=1), time.min)
    end = datetime.combine(as_of + timedelta(days=1), time.min)
    return (start, end)
