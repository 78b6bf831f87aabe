"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def month_end(day: date) -> date:
    """Last day of the month containing ``day``."""
    return day + relativedelta(day=31)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-31", "January 31, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.
    - Period ends: "end of last month", "end of this month", "end of last quarter",
      "end of last year"

    Args:
        date_str: Date string in various formats
        today: Reference date for relative dates; defaults to the current date

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # Period-end dates, the usual input for period-end runs and postings
    if date_str.startswith("end of "):
        period = date_str[7:]
        if period == "this month":
            return month_end(today)
        elif period == "last month":
            return today.replace(day=1) - timedelta(days=1)
        elif period == "last quarter":
            quarter_start = today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)
            return quarter_start - timedelta(days=1)
        elif period == "this year":
            return today.replace(month=12, day=31)
        elif period == "last year":
            return today.replace(month=1, day=1) - timedelta(days=1)
        raise ValueError(f"Could not parse date '{date_str}': unknown period '{period}'")

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            return today - timedelta(days=today.weekday() + 7)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
