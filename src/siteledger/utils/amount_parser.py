"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a non-negative Decimal.

    Handles:
    - "1500"
    - "1,500.50"
    - "PKR 1,500" / "Rs. 1500" / "Rs 1500"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If the string is empty, not a number, negative, or not finite
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = re.sub(r"^(pkr|rs\.?)\s*", "", amount_str.strip(), flags=re.IGNORECASE)
    cleaned = cleaned.replace(",", "").strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e

    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")
    if amount < 0:
        raise ValueError(f"Amount '{amount_str}' cannot be negative")
    return amount
