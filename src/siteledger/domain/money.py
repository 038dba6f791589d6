"""Monetary and calendar primitives shared by the ledger services."""

import calendar
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from siteledger.domain.errors import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

Number = Union[Decimal, int, float, str]


def to_amount(value: Number) -> Decimal:
    """Convert a number to a 2-decimal Decimal, rejecting non-finite values."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid amount '{value}'") from e
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount '{value}'")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_amount(value: Decimal) -> Decimal:
    """Round to whole currency units, halves away from zero."""
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def require_positive(value: Number, label: str = "Amount") -> Decimal:
    """Return value as an amount, raising unless it is greater than zero."""
    amount = to_amount(value)
    if amount <= ZERO:
        raise ValidationError(f"{label} must be greater than zero")
    return amount


def require_non_negative(value: Number, label: str = "Amount") -> Decimal:
    """Return value as an amount, raising if it is negative."""
    amount = to_amount(value)
    if amount < ZERO:
        raise ValidationError(f"{label} cannot be negative")
    return amount


def require_text(value: Optional[str], label: str) -> str:
    """Return stripped text, raising if it is missing or blank."""
    if value is None or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    """Strip text and collapse blank values to None."""
    if value is None:
        return None
    return value.strip() or None


def parse_month(month: Optional[str]) -> str:
    """Validate a YYYY-MM month string."""
    if month is None or not _MONTH_RE.match(month.strip()):
        raise ValidationError(f"Invalid month '{month}'. Expected YYYY-MM")
    return month.strip()


def month_of(day: Union[date, datetime]) -> str:
    """Return the YYYY-MM month containing a date."""
    return day.strftime("%Y-%m")


def days_in_month(month: str) -> int:
    """Number of calendar days in a YYYY-MM month."""
    year, month_num = (int(part) for part in month.split("-"))
    return calendar.monthrange(year, month_num)[1]


def month_start(month: str) -> date:
    """First calendar day of a month."""
    year, month_num = (int(part) for part in month.split("-"))
    return date(year, month_num, 1)


def month_end(month: str) -> date:
    """Last calendar day of a month."""
    year, month_num = (int(part) for part in month.split("-"))
    return date(year, month_num, days_in_month(month))


def months_between(first: str, last: str) -> list[str]:
    """Months from first through last, inclusive. Empty if first > last."""
    if first > last:
        return []
    year, month_num = (int(part) for part in first.split("-"))
    months = []
    current = first
    while current <= last:
        months.append(current)
        month_num += 1
        if month_num > 12:
            month_num = 1
            year += 1
        current = f"{year:04d}-{month_num:02d}"
    return months
