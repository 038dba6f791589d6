"""Tests for oldest-first payment allocation."""

from datetime import date
from decimal import Decimal
from operator import attrgetter

from siteledger.domain.allocation import build_allocations, paid_by_entry
from siteledger.domain.entities import (
    ContractorEntry,
    ContractorPayment,
    MachineEntry,
    MachinePayment,
    PaymentMethod,
)


def _entry(entry_id, day, amount):
    return ContractorEntry(
        id=entry_id, contractor_id=1, project_id=1, date=day, amount=Decimal(amount)
    )


def _payment(payment_id, day, amount):
    return ContractorPayment(
        id=payment_id,
        contractor_id=1,
        date=day,
        amount=Decimal(amount),
        payment_method=PaymentMethod.CASH,
    )


def test_payments_settle_oldest_entries_first():
    """One payment can span entries; later payments continue where it stopped."""
    entries = [_entry(1, date(2026, 4, 1), "100"), _entry(2, date(2026, 4, 10), "50")]
    payments = [_payment(1, date(2026, 4, 2), "120"), _payment(2, date(2026, 4, 15), "30")]

    allocations = build_allocations(entries, payments)

    assert [(a.entry_id, a.payment_id, a.amount) for a in allocations] == [
        (1, 1, Decimal("100")),
        (2, 1, Decimal("20")),
        (2, 2, Decimal("30")),
    ]


def test_result_is_independent_of_input_order():
    """Entries and payments are ordered by (date, id) before allocating."""
    entries = [_entry(1, date(2026, 4, 1), "100"), _entry(2, date(2026, 4, 10), "50")]
    payments = [_payment(1, date(2026, 4, 2), "120"), _payment(2, date(2026, 4, 15), "30")]

    forward = build_allocations(entries, payments)
    backward = build_allocations(list(reversed(entries)), list(reversed(payments)))

    assert forward == backward


def test_same_date_ties_break_on_id():
    """Same-day entries are settled lowest ID first."""
    day = date(2026, 4, 1)
    entries = [_entry(9, day, "50"), _entry(4, day, "50")]

    allocations = build_allocations(entries, [_payment(1, day, "50")])

    assert [(a.entry_id, a.amount) for a in allocations] == [(4, Decimal("50"))]


def test_allocations_never_exceed_entries():
    """Payments beyond what entries owe are left unallocated."""
    entries = [_entry(1, date(2026, 4, 1), "100")]
    payments = [_payment(1, date(2026, 4, 2), "80"), _payment(2, date(2026, 4, 3), "80")]

    allocations = build_allocations(entries, payments)

    assert sum(a.amount for a in allocations) == Decimal("100")
    assert paid_by_entry(allocations) == {1: Decimal("100")}


def test_no_entries_or_payments():
    """Nothing to allocate yields no rows."""
    assert build_allocations([], [_payment(1, date(2026, 4, 2), "80")]) == []
    assert build_allocations([_entry(1, date(2026, 4, 1), "100")], []) == []


def test_paid_by_entry_sums_rows():
    """paid_by_entry totals every row of an entry."""
    entries = [_entry(1, date(2026, 4, 1), "100")]
    payments = [_payment(1, date(2026, 4, 2), "30"), _payment(2, date(2026, 4, 3), "45")]

    assert paid_by_entry(build_allocations(entries, payments)) == {1: Decimal("75")}


def test_machine_entries_settle_by_total_cost():
    """Machine entries owe their total cost rather than an amount field."""
    entries = [
        MachineEntry(
            id=1, machine_id=1, project_id=1, date=date(2026, 4, 1),
            hours_worked=Decimal("2"), total_cost=Decimal("3000"),
        ),
        MachineEntry(
            id=2, machine_id=1, project_id=1, date=date(2026, 4, 2),
            hours_worked=Decimal("1"), total_cost=Decimal("1500"),
        ),
    ]
    payments = [
        MachinePayment(
            id=1, machine_id=1, date=date(2026, 4, 3), amount=Decimal("3600"),
            payment_method=PaymentMethod.BANK,
        )
    ]

    allocations = build_allocations(entries, payments, due=attrgetter("total_cost"))

    assert [(a.entry_id, a.amount) for a in allocations] == [(1, Decimal("3000")), (2, Decimal("600"))]
    assert paid_by_entry(allocations) == {1: Decimal("3000"), 2: Decimal("600")}
