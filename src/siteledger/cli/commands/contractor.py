"""Contractor entry and payment commands."""

import click

from siteledger.cli.error_handling import handle_domain_error
from siteledger.cli.params import amount_option, date_option, get_actor, month_option
from siteledger.domain.contractor_ledger import ContractorLedgerService
from siteledger.domain.directory import DirectoryService
from siteledger.domain.errors import StoreError


@click.group()
def contractor_group():
    """Manage contractors, their entries and payments."""
    pass


@contractor_group.command("create")
@click.argument("project_id", type=int)
@click.argument("name")
@click.pass_context
def create_contractor(ctx, project_id: int, name: str):
    """Create a contractor in a project."""
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        contractor = service.create_contractor(project_id, name)
        click.echo(f"Created contractor '{contractor.name}' (ID: {contractor.id})")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@contractor_group.command("list")
@click.option("--project", "project_id", type=int, help="Filter by project ID")
@click.pass_context
def list_contractors(ctx, project_id: int | None):
    """List contractors."""
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        contractors = service.list_contractors(project_id)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if not contractors:
        click.echo("No contractors found.")
        return

    for contractor in contractors:
        click.echo(f"ID: {contractor.id:3d} | {contractor.name:20s} | Project: {contractor.project_id}")


@contractor_group.command("entry")
@click.argument("contractor_id", type=int)
@click.argument("amount")
@click.option("--date", "date_str", default="today", show_default=True, help="Entry date")
@click.option("--remarks", help="Remarks")
@click.pass_context
def add_entry(ctx, contractor_id: int, amount: str, date_str: str, remarks: str | None):
    """Record work owed to a contractor.

    Examples:
        siteledger contractor entry 4 150000 --remarks "Slab casting"
    """
    parsed_amount = amount_option(ctx, amount)
    entry_date = date_option(ctx, date_str)
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        entry = service.create_entry(contractor_id, entry_date, parsed_amount, remarks=remarks)
        click.echo(f"Created contractor entry {entry.id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@contractor_group.command("entry-update")
@click.argument("entry_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--date", "date_str", help="New date")
@click.option("--remarks", help="New remarks")
@click.pass_context
def update_entry(ctx, entry_id: int, amount: str | None, date_str: str | None, remarks: str | None):
    """Update a contractor entry."""
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.update_entry(
            entry_id,
            date=date_option(ctx, date_str),
            amount=amount_option(ctx, amount),
            remarks=remarks,
        )
        click.echo(f"Updated contractor entry {entry_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@contractor_group.command("entry-delete")
@click.argument("entry_id", type=int)
@click.pass_context
def delete_entry(ctx, entry_id: int):
    """Delete a contractor entry that payments do not depend on."""
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_entry(entry_id)
        click.echo(f"Deleted contractor entry {entry_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@contractor_group.command("pay")
@click.argument("contractor_id", type=int)
@click.argument("amount")
@click.option("--date", "date_str", default="today", show_default=True, help="Payment date")
@click.option("--method", "payment_method", default="Cash", show_default=True, help="Cash, Bank or Online")
@click.option("--reference", "reference_id", help="Reference ID")
@click.pass_context
def pay_contractor(
    ctx,
    contractor_id: int,
    amount: str,
    date_str: str,
    payment_method: str,
    reference_id: str | None,
):
    """Record a payment to a contractor.

    Payments settle the contractor's oldest entries first.
    """
    parsed_amount = amount_option(ctx, amount)
    paid_on = date_option(ctx, date_str)
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        payment = service.create_payment(
            contractor_id,
            paid_on,
            parsed_amount,
            payment_method=payment_method,
            reference_id=reference_id,
        )
        click.echo(f"Created contractor payment {payment.id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@contractor_group.command("payment-update")
@click.argument("payment_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--date", "date_str", help="New date")
@click.option("--method", "payment_method", help="New payment method")
@click.option("--reference", "reference_id", help="New reference ID")
@click.pass_context
def update_payment(
    ctx,
    payment_id: int,
    amount: str | None,
    date_str: str | None,
    payment_method: str | None,
    reference_id: str | None,
):
    """Update a contractor payment."""
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.update_payment(
            payment_id,
            date=date_option(ctx, date_str),
            amount=amount_option(ctx, amount),
            payment_method=payment_method,
            reference_id=reference_id,
        )
        click.echo(f"Updated contractor payment {payment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@contractor_group.command("payment-delete")
@click.argument("payment_id", type=int)
@click.pass_context
def delete_payment(ctx, payment_id: int):
    """Delete a contractor payment."""
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_payment(payment_id)
        click.echo(f"Deleted contractor payment {payment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@contractor_group.command("totals")
@click.argument("contractor_id", type=int)
@click.pass_context
def show_totals(ctx, contractor_id: int):
    """Show what a contractor is owed across all months."""
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        totals = service.get_contractor_totals(contractor_id)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Total amount: {totals.total_amount:,.2f}")
    click.echo(f"Total paid:   {totals.total_paid:,.2f}")
    click.echo(f"Remaining:    {totals.remaining:,.2f}")


@contractor_group.command("ledger")
@click.argument("project_id", type=int)
@click.option("--month", default="this month", show_default=True, help="Month (YYYY-MM)")
@click.option("--contractor", "contractor_id", type=int, help="Only this contractor")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, help="Rows per page")
@click.pass_context
def show_ledger(
    ctx,
    project_id: int,
    month: str,
    contractor_id: int | None,
    page: int,
    page_size: int | None,
):
    """Show a project's contractor entries and payments for a month."""
    parsed_month = month_option(ctx, month)
    service = ContractorLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        ledger = service.get_contractor_ledger(
            project_id,
            parsed_month,
            contractor_id=contractor_id,
            page=page,
            page_size=page_size,
        )
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if not ledger.rows:
        click.echo(f"No contractor activity in {parsed_month}.")
    for row in ledger.rows:
        label = "Entry  " if row.kind == "entry" else "Payment"
        click.echo(f"{row.date} | {label} {row.id:4d} | {row.contractor_name} | {row.amount:,.2f}")

    click.echo("-" * 60)
    click.echo(f"Total amount: {ledger.total_amount:,.2f}")
    click.echo(f"Total paid:   {ledger.total_paid:,.2f}")
    click.echo(f"Remaining:    {ledger.remaining:,.2f}")


def register_commands(cli):
    """Register contractor commands with main CLI."""
    cli.add_command(contractor_group, name="contractor")
