"""Date and month parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from siteledger.domain.money import month_of, parse_month


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports "today", "yesterday", "tomorrow" and absolute dates such as
    "2024-01-15" or "15 Jan 2024".

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

    try:
        return date_parser.parse(date_str, dayfirst=False).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def parse_month_arg(month_str: str) -> str:
    """Parse a month argument into YYYY-MM.

    Accepts "this month", "last month", "next month" and explicit YYYY-MM.

    Raises:
        ValueError: If the month cannot be parsed
    """
    month_str = month_str.strip().lower()
    first_of_month = date.today().replace(day=1)

    relative_months = {
        "this month": first_of_month,
        "last month": first_of_month - relativedelta(months=1),
        "next month": first_of_month + relativedelta(months=1),
    }
    if month_str in relative_months:
        return month_of(relative_months[month_str])
    return parse_month(month_str)
