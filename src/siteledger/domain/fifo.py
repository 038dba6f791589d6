"""Oldest-debt-first allocation of vendor payments across purchase entries.

The vendor data model does not link a standalone payment to a purchase, so
the ledger view distributes the whole paid pool over the entries at read
time. Nothing here is persisted.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from siteledger.domain.entities import PurchaseEntry, VendorPayment
from siteledger.domain.money import ZERO


@dataclass(frozen=True)
class FifoAllocation:
    """Reconciled paid/remaining for one purchase entry."""

    allocated_paid: Decimal
    allocated_remaining: Decimal


def allocate_fifo(
    entries: Sequence[PurchaseEntry], payments: Iterable[VendorPayment]
) -> dict[int, FifoAllocation]:
    """Distribute a vendor's paid pool over its entries, oldest first.

    The pool is every entry's own ``paid_amount`` plus every standalone
    payment. Entries with the same date keep their input order.

    Args:
        entries: Purchase entries of one vendor, in natural order
        payments: Standalone payments of the same vendor

    Returns:
        Mapping of entry ID to its allocation, oldest entry first
    """
    pool = sum((e.paid_amount for e in entries), ZERO)
    pool += sum((p.amount for p in payments), ZERO)

    result: dict[int, FifoAllocation] = {}
    # sorted() is stable, so same-day entries stay in natural order
    for entry in sorted(entries, key=lambda e: e.date):
        allocated = min(entry.total_price, pool)
        pool -= allocated
        result[entry.id] = FifoAllocation(
            allocated_paid=allocated,
            allocated_remaining=entry.total_price - allocated,
        )
    return result
