"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class InvariantViolationError(DomainError):
    """Operation would break a ledger invariant (negative balance, overpay).

    ``max_allowed`` is set when the guard can tell the caller how much
    would still have been accepted.
    """

    def __init__(self, message: str, max_allowed: Optional[Decimal] = None):
        super().__init__(message)
        self.max_allowed = max_allowed


class ScopeViolationError(DomainError):
    """Actor is not permitted to operate on the target entity."""


class StoreError(RuntimeError):
    """Underlying store failed; nothing was committed and retry is safe."""


def not_found(kind: str, entity_id: int) -> str:
    """Return message for a missing entity."""
    return f"{kind} {entity_id} not found"


def format_amount(amount: Decimal) -> str:
    """Format an amount the way messages show it."""
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"


def insufficient_balance(action: str) -> str:
    """Return message when an outflow would overdraw the account."""
    return (
        f"Insufficient bank balance. Cannot {action} outflow that would make "
        "balance negative."
    )


def exceeds_payable(payable: Decimal, max_allowed: Decimal, scope: str = "this month") -> str:
    """Return message when a payment would overpay an employee month."""
    return (
        f"Total paid for {scope} would exceed payable ({format_amount(payable)}). "
        f"Maximum allowed: {format_amount(max_allowed)}."
    )


def overpay(kind: str, remaining: Decimal) -> str:
    """Return message when a payment would overpay a vendor, contractor or machine."""
    return (
        f"This payment would overpay the {kind}. Remaining balance is "
        f"{format_amount(remaining)}."
    )
