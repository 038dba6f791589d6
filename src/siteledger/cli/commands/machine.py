"""Machinery hours and payment commands."""

import click

from siteledger.cli.error_handling import handle_domain_error
from siteledger.cli.params import amount_option, date_option, get_actor
from siteledger.domain.directory import DirectoryService
from siteledger.domain.entities import MachineOwnership
from siteledger.domain.errors import StoreError
from siteledger.domain.machine_ledger import MachineLedgerService


@click.group()
def machine_group():
    """Manage machines, their hours and payments."""
    pass


@machine_group.command("create")
@click.argument("project_id", type=int)
@click.argument("name")
@click.option("--rate", "hourly_rate", required=True, help="Hourly rate")
@click.option(
    "--ownership",
    type=click.Choice([o.value for o in MachineOwnership]),
    default=MachineOwnership.COMPANY_OWNED.value,
    show_default=True,
)
@click.pass_context
def create_machine(ctx, project_id: int, name: str, hourly_rate: str, ownership: str):
    """Create a machine in a project.

    Examples:
        siteledger machine create 1 Excavator --rate 2500 --ownership Rented
    """
    rate = amount_option(ctx, hourly_rate, label="rate")
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        machine = service.create_machine(project_id, name, rate, ownership=ownership)
        click.echo(f"Created machine '{machine.name}' (ID: {machine.id})")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@machine_group.command("list")
@click.option("--project", "project_id", type=int, help="Filter by project ID")
@click.pass_context
def list_machines(ctx, project_id: int | None):
    """List machines."""
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        machines = service.list_machines(project_id)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if not machines:
        click.echo("No machines found.")
        return

    for machine in machines:
        click.echo(
            f"ID: {machine.id:3d} | {machine.name:20s} | {machine.ownership.value:13s} | "
            f"Rate: {machine.hourly_rate:,.2f}/hr"
        )


@machine_group.command("entry")
@click.argument("machine_id", type=int)
@click.argument("hours")
@click.option("--date", "date_str", default="today", show_default=True, help="Entry date")
@click.option("--used-by", help="Who used the machine")
@click.option("--remarks", help="Remarks")
@click.pass_context
def add_entry(ctx, machine_id: int, hours: str, date_str: str, used_by: str | None, remarks: str | None):
    """Record hours a machine worked.

    Examples:
        siteledger machine entry 2 6.5 --used-by "Site crew"
    """
    parsed_hours = amount_option(ctx, hours, label="hours")
    entry_date = date_option(ctx, date_str)
    service = MachineLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        entry = service.create_entry(
            machine_id, entry_date, parsed_hours, used_by=used_by, remarks=remarks
        )
        click.echo(f"Created machine entry {entry.id} costing {entry.total_cost:,.2f}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@machine_group.command("entry-delete")
@click.argument("entry_id", type=int)
@click.pass_context
def delete_entry(ctx, entry_id: int):
    """Delete a machine entry that payments do not depend on."""
    service = MachineLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_entry(entry_id)
        click.echo(f"Deleted machine entry {entry_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@machine_group.command("pay")
@click.argument("machine_id", type=int)
@click.argument("amount")
@click.option("--date", "date_str", default="today", show_default=True, help="Payment date")
@click.option("--method", "payment_method", default="Cash", show_default=True, help="Cash, Bank or Online")
@click.option("--reference", "reference_id", help="Reference ID")
@click.pass_context
def pay_machine(
    ctx,
    machine_id: int,
    amount: str,
    date_str: str,
    payment_method: str,
    reference_id: str | None,
):
    """Record a payment against a machine's hours.

    Payments settle the oldest hours first.
    """
    parsed_amount = amount_option(ctx, amount)
    paid_on = date_option(ctx, date_str)
    service = MachineLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        payment = service.create_payment(
            machine_id,
            paid_on,
            parsed_amount,
            payment_method=payment_method,
            reference_id=reference_id,
        )
        click.echo(f"Created machine payment {payment.id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@machine_group.command("payment-delete")
@click.argument("payment_id", type=int)
@click.pass_context
def delete_payment(ctx, payment_id: int):
    """Delete a machine payment."""
    service = MachineLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_payment(payment_id)
        click.echo(f"Deleted machine payment {payment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@machine_group.command("totals")
@click.argument("machine_id", type=int)
@click.pass_context
def show_totals(ctx, machine_id: int):
    """Show a machine's hours, cost and remaining dues."""
    service = MachineLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        totals = service.get_machine_totals(machine_id)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Total hours: {totals.total_hours:,.2f}")
    click.echo(f"Total cost:  {totals.total_cost:,.2f}")
    click.echo(f"Total paid:  {totals.total_paid:,.2f}")
    click.echo(f"Remaining:   {totals.remaining:,.2f}")


@machine_group.command("ledger")
@click.argument("machine_id", type=int)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, help="Rows per page")
@click.pass_context
def show_ledger(ctx, machine_id: int, page: int, page_size: int | None):
    """Show a machine's hours entries and payments."""
    service = MachineLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        ledger = service.get_machine_ledger(machine_id, page=page, page_size=page_size)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if not ledger.rows:
        click.echo("No machine activity.")
    for row in ledger.rows:
        if row.kind == "entry":
            click.echo(
                f"{row.date} | Entry   {row.id:4d} | {row.hours_worked} hrs | {row.amount:,.2f} | "
                f"paid {row.paid:,.2f} | due {row.remaining:,.2f}"
            )
        else:
            click.echo(f"{row.date} | Payment {row.id:4d} | {row.amount:,.2f}")

    click.echo("-" * 60)
    click.echo(f"Total hours: {ledger.total_hours:,.2f}")
    click.echo(f"Total cost:  {ledger.total_cost:,.2f}")
    click.echo(f"Total paid:  {ledger.total_paid:,.2f}")
    click.echo(f"Remaining:   {ledger.remaining:,.2f}")


def register_commands(cli):
    """Register machine commands with main CLI."""
    cli.add_command(machine_group, name="machine")
