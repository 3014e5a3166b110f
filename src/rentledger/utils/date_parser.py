"""Date parsing utilities."""

from datetime import date, datetime, timedelta
import re

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_SLASH_DATE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(date_str: str, dayfirst: bool = True) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2025-01-15", "15/01/2025", "15 jan 2025", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    ISO dates are always year-month-day. Slash dates are read day-first
    unless ``dayfirst`` is False.

    Args:
        date_str: Date string in various formats
        dayfirst: Whether ambiguous numeric dates put the day first

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
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)

    if _ISO_DATE.match(date_str):
        try:
            return date.fromisoformat(date_str)
        except ValueError as e:
            raise ValueError(f"Could not parse date '{date_str}': {e}")

    try:
        dt = date_parser.parse(date_str, dayfirst=dayfirst)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_slash_date(date_str: str, order: str = "dmy") -> date:
    """Parse a strict numeric slash date.

    Args:
        date_str: Date such as "15/01/2025"
        order: "dmy" for DD/MM/YYYY (Brazilian) or "mdy" for MM/DD/YYYY (Airbnb exports)

    Returns:
        Date object

    Raises:
        ValueError: If the text is not a valid slash date
    """
    match = _SLASH_DATE.match(date_str or "")
    if match is None:
        raise ValueError(f"Could not parse date '{date_str}'")
    first, second, year = (int(part) for part in match.groups())
    if order == "dmy":
        day, month = first, second
    elif order == "mdy":
        month, day = first, second
    else:
        raise ValueError(f"Unknown date order '{order}'")
    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def excel_serial_to_date(serial: float) -> date:
    """Convert an Excel serial day number to a date (1900 date system)."""
    return (datetime(1899, 12, 30) + timedelta(days=int(serial))).date()


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a whole calendar period.

    Ranges cover the full month or year, including future days, so pending
    reservations show up in this month's figures.

    Args:
        period: Period string (this-month, last-month, this-year, last-year)

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        start_date = today.replace(day=1)
        return (start_date, start_date + relativedelta(months=1) - timedelta(days=1))

    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "this-year":
        return (today.replace(month=1, day=1), today.replace(month=12, day=31))

    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        return (start_date, start_date.replace(month=12, day=31))

    raise ValueError(f"Unknown period '{period}'")
