"""Payment allocation for contractor and machine ledgers.

Allocations are a materialized view over one payee's entries and payments.
``build_allocations`` is the pure half; the persistence half
(``ContractorLedgerService.rebuild_allocations`` and
``MachineLedgerService.rebuild_allocations``) deletes the old rows and
inserts the result inside one unit of work.
"""

from decimal import Decimal
from operator import attrgetter
from typing import Any, Callable, Sequence

from siteledger.domain.entities import Allocation
from siteledger.domain.money import ZERO


def build_allocations(
    entries: Sequence[Any],
    payments: Sequence[Any],
    due: Callable[[Any], Decimal] = attrgetter("amount"),
) -> list[Allocation]:
    """Settle entries from payments, oldest entry and oldest payment first.

    Entries and payments are ordered by (date, id) so the result depends
    only on the stored data, never on load order.

    Args:
        entries: All entries of one contractor or machine
        payments: All payments of the same payee
        due: Returns the amount owed on an entry (``amount`` for contractor
            entries, ``total_cost`` for machine entries)

    Returns:
        Allocation rows in creation order
    """
    ordered_entries = sorted(entries, key=lambda e: (e.date, e.id))
    ordered_payments = sorted(payments, key=lambda p: (p.date, p.id))

    allocations: list[Allocation] = []
    if not ordered_entries:
        return allocations

    entry_index = 0
    entry_due: Decimal = due(ordered_entries[0])

    for payment in ordered_payments:
        payment_left = payment.amount
        while payment_left > ZERO and entry_index < len(ordered_entries):
            amount = min(payment_left, entry_due)
            if amount > ZERO:
                allocations.append(
                    Allocation(
                        entry_id=ordered_entries[entry_index].id,
                        payment_id=payment.id,
                        amount=amount,
                    )
                )
            payment_left -= amount
            entry_due -= amount
            if entry_due <= ZERO:
                entry_index += 1
                if entry_index < len(ordered_entries):
                    entry_due = due(ordered_entries[entry_index])
        if entry_index >= len(ordered_entries):
            break

    return allocations


def paid_by_entry(allocations: Sequence[Allocation]) -> dict[int, Decimal]:
    """Total allocated amount per entry ID."""
    totals: dict[int, Decimal] = {}
    for allocation in allocations:
        totals[allocation.entry_id] = totals.get(allocation.entry_id, ZERO) + allocation.amount
    return totals
