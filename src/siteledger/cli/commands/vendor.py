"""Vendor purchase and payment commands."""

import click

from siteledger.cli.error_handling import handle_domain_error
from siteledger.cli.params import amount_option, date_option, get_actor
from siteledger.domain.directory import DirectoryService
from siteledger.domain.errors import StoreError
from siteledger.domain.money import ZERO
from siteledger.domain.vendor_ledger import VendorLedgerService


@click.group()
def vendor_group():
    """Manage vendors, purchases and vendor payments."""
    pass


@vendor_group.command("create")
@click.argument("project_id", type=int)
@click.argument("name")
@click.pass_context
def create_vendor(ctx, project_id: int, name: str):
    """Create a vendor in a project."""
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        vendor = service.create_vendor(project_id, name)
        click.echo(f"Created vendor '{vendor.name}' (ID: {vendor.id})")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@vendor_group.command("purchase")
@click.argument("item_id", type=int)
@click.argument("vendor_id", type=int)
@click.option("--quantity", required=True, help="Quantity purchased (at least 1)")
@click.option("--unit-price", required=True, help="Price per unit")
@click.option("--paid", default="0", show_default=True, help="Amount paid up front")
@click.option("--date", "date_str", default="today", show_default=True, help="Purchase date")
@click.option("--method", "payment_method", default="Cash", show_default=True, help="Cash, Bank or Online")
@click.option("--reference", "reference_id", help="Reference ID")
@click.option("--remarks", help="Remarks")
@click.pass_context
def add_purchase(
    ctx,
    item_id: int,
    vendor_id: int,
    quantity: str,
    unit_price: str,
    paid: str,
    date_str: str,
    payment_method: str,
    reference_id: str | None,
    remarks: str | None,
):
    """Record a purchase of stock from a vendor.

    Examples:
        siteledger vendor purchase 3 1 --quantity 100 --unit-price 1,250 --paid 50000
    """
    qty = amount_option(ctx, quantity, label="quantity")
    price = amount_option(ctx, unit_price, label="unit price")
    paid_amount = amount_option(ctx, paid, label="paid amount") or ZERO
    purchase_date = date_option(ctx, date_str)
    service = VendorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        entry = service.create_entry(
            item_id=item_id,
            vendor_id=vendor_id,
            date=purchase_date,
            quantity=qty,
            unit_price=price,
            paid_amount=paid_amount,
            payment_method=payment_method,
            reference_id=reference_id,
            remarks=remarks,
        )
        click.echo(f"Created ledger entry {entry.id} (total {entry.total_price:,.2f})")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@vendor_group.command("purchase-update")
@click.argument("entry_id", type=int)
@click.option("--vendor", "vendor_id", type=int, help="Move the entry to another vendor")
@click.option("--quantity", help="New quantity")
@click.option("--unit-price", help="New unit price")
@click.option("--paid", help="New paid amount")
@click.option("--date", "date_str", help="New date")
@click.option("--method", "payment_method", help="New payment method")
@click.option("--reference", "reference_id", help="New reference ID")
@click.option("--remarks", help="New remarks")
@click.pass_context
def update_purchase(
    ctx,
    entry_id: int,
    vendor_id: int | None,
    quantity: str | None,
    unit_price: str | None,
    paid: str | None,
    date_str: str | None,
    payment_method: str | None,
    reference_id: str | None,
    remarks: str | None,
):
    """Update a purchase entry."""
    service = VendorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.update_entry(
            entry_id,
            vendor_id=vendor_id,
            date=date_option(ctx, date_str),
            quantity=amount_option(ctx, quantity, label="quantity"),
            unit_price=amount_option(ctx, unit_price, label="unit price"),
            paid_amount=amount_option(ctx, paid, label="paid amount"),
            payment_method=payment_method,
            reference_id=reference_id,
            remarks=remarks,
        )
        click.echo(f"Updated ledger entry {entry_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@vendor_group.command("purchase-delete")
@click.argument("entry_id", type=int)
@click.pass_context
def delete_purchase(ctx, entry_id: int):
    """Delete a purchase entry."""
    service = VendorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_entry(entry_id)
        click.echo(f"Deleted ledger entry {entry_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@vendor_group.command("pay")
@click.argument("vendor_id", type=int)
@click.argument("amount")
@click.option("--date", "date_str", default="today", show_default=True, help="Payment date")
@click.option("--method", "payment_method", default="Cash", show_default=True, help="Cash, Bank or Online")
@click.option("--reference", "reference_id", help="Reference ID")
@click.option("--remarks", help="Remarks")
@click.pass_context
def pay_vendor(
    ctx,
    vendor_id: int,
    amount: str,
    date_str: str,
    payment_method: str,
    reference_id: str | None,
    remarks: str | None,
):
    """Record a payment to a vendor.

    The payment cannot exceed what the vendor is still owed.
    """
    parsed_amount = amount_option(ctx, amount)
    paid_on = date_option(ctx, date_str)
    service = VendorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        payment = service.create_payment(
            vendor_id,
            paid_on,
            parsed_amount,
            payment_method=payment_method,
            reference_id=reference_id,
            remarks=remarks,
        )
        click.echo(f"Created vendor payment {payment.id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@vendor_group.command("payment-update")
@click.argument("payment_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--date", "date_str", help="New date")
@click.option("--method", "payment_method", help="New payment method")
@click.option("--reference", "reference_id", help="New reference ID")
@click.option("--remarks", help="New remarks")
@click.pass_context
def update_vendor_payment(
    ctx,
    payment_id: int,
    amount: str | None,
    date_str: str | None,
    payment_method: str | None,
    reference_id: str | None,
    remarks: str | None,
):
    """Update a vendor payment."""
    service = VendorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.update_payment(
            payment_id,
            date=date_option(ctx, date_str),
            amount=amount_option(ctx, amount),
            payment_method=payment_method,
            reference_id=reference_id,
            remarks=remarks,
        )
        click.echo(f"Updated vendor payment {payment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@vendor_group.command("payment-delete")
@click.argument("payment_id", type=int)
@click.pass_context
def delete_vendor_payment(ctx, payment_id: int):
    """Delete a vendor payment."""
    service = VendorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_payment(payment_id)
        click.echo(f"Deleted vendor payment {payment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@vendor_group.command("ledger")
@click.argument("vendor_id", type=int)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, help="Rows per page")
@click.pass_context
def show_ledger(ctx, vendor_id: int, page: int, page_size: int | None):
    """Show a vendor's purchases and payments with FIFO remaining."""
    service = VendorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        ledger = service.get_vendor_ledger(vendor_id, page=page, page_size=page_size)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    for row in ledger.rows:
        if row.kind == "purchase":
            click.echo(
                f"{row.date} | Purchase {row.id:4d} | {row.item_name} x {row.quantity} | "
                f"Total: {row.total_price:,.2f} | Paid: {row.paid_amount:,.2f} | "
                f"Remaining: {row.remaining:,.2f}"
            )
        else:
            click.echo(f"{row.date} | Payment  {row.id:4d} | {row.amount:,.2f} ({row.payment_method.value})")

    click.echo("-" * 60)
    click.echo(f"Total billed: {ledger.total_billed:,.2f}")
    click.echo(f"Total paid:   {ledger.total_paid:,.2f}")
    click.echo(f"Remaining:    {ledger.remaining:,.2f}")


def register_commands(cli):
    """Register vendor commands with main CLI."""
    cli.add_command(vendor_group, name="vendor")
