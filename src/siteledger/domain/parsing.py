"""Coercion of enum inputs and page parameters shared by the services."""

from typing import Optional

from siteledger.domain.entities import PaymentMethod, TransactionType
from siteledger.domain.errors import ValidationError

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100


def parse_transaction_type(value) -> TransactionType:
    """Coerce a transaction type, raising ValidationError if unknown."""
    try:
        return TransactionType(value)
    except ValueError as e:
        raise ValidationError("Type must be inflow or outflow") from e


def parse_payment_method(value) -> PaymentMethod:
    """Coerce a payment method, raising ValidationError if unknown."""
    try:
        return PaymentMethod(value)
    except ValueError as e:
        raise ValidationError(f"Invalid payment method '{value}'. Expected Cash, Bank or Online") from e


def page_bounds(page: int, page_size: Optional[int]) -> tuple[int, int]:
    """Clamp a 1-based page and page size, returning (offset, limit)."""
    page = max(1, page)
    size = DEFAULT_PAGE_SIZE if page_size is None else page_size
    size = min(MAX_PAGE_SIZE, max(1, size))
    return (page - 1) * size, size
