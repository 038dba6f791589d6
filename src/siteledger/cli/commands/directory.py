"""Project, project ledger and stock item commands."""

import click

from siteledger.cli.error_handling import handle_domain_error
from siteledger.cli.params import amount_option, date_option, get_actor
from siteledger.domain.directory import DirectoryService
from siteledger.domain.errors import StoreError
from siteledger.domain.project_ledger import BANK_OUTFLOW, ProjectLedgerService
from siteledger.domain.stock import StockService


@click.group()
def project_group():
    """Manage projects."""
    pass


@project_group.command("create")
@click.argument("name", metavar="PROJECT_NAME")
@click.pass_context
def create_project(ctx, name: str):
    """Create a new project.

    Examples:
        siteledger project create "Tower A"
    """
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        project = service.create_project(name)
        click.echo(f"Created project '{project.name}' (ID: {project.id})")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@project_group.command("list")
@click.pass_context
def list_projects(ctx):
    """List projects visible to the acting user."""
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    projects = service.list_projects()
    if not projects:
        click.echo("No projects found.")
        return

    click.echo("\nProjects:")
    click.echo("-" * 60)
    for project in projects:
        click.echo(f"ID: {project.id:3d} | {project.name:20s} | Balance: {project.balance:,.2f}")


def _signed(amount, subtract: bool):
    if amount is None:
        return None
    return -amount if subtract else amount


@project_group.command("adjust")
@click.argument("project_id", type=int)
@click.argument("amount")
@click.option("--subtract", is_flag=True, help="Subtract the amount instead of adding it")
@click.option("--date", "date_str", default="today", show_default=True, help="Adjustment date")
@click.option("--remarks", help="Remarks")
@click.pass_context
def adjust_balance(ctx, project_id: int, amount: str, subtract: bool, date_str: str, remarks: str | None):
    """Manually add to or subtract from a project's balance.

    Examples:
        siteledger project adjust 1 5000 --remarks "Opening funds"
        siteledger project adjust 1 1200 --subtract
    """
    parsed_amount = amount_option(ctx, amount)
    adjusted_on = date_option(ctx, date_str)
    service = ProjectLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        adjustment = service.create_adjustment(
            project_id, adjusted_on, _signed(parsed_amount, subtract), remarks=remarks
        )
        click.echo(f"Created adjustment {adjustment.id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@project_group.command("adjust-update")
@click.argument("project_id", type=int)
@click.argument("adjustment_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--subtract", is_flag=True, help="The new amount subtracts from the balance")
@click.option("--date", "date_str", help="New date")
@click.option("--remarks", help="New remarks")
@click.pass_context
def update_adjustment(
    ctx,
    project_id: int,
    adjustment_id: int,
    amount: str | None,
    subtract: bool,
    date_str: str | None,
    remarks: str | None,
):
    """Update a manual balance adjustment."""
    service = ProjectLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.update_adjustment(
            project_id,
            adjustment_id,
            date=date_option(ctx, date_str),
            amount=_signed(amount_option(ctx, amount), subtract),
            remarks=remarks,
        )
        click.echo(f"Updated adjustment {adjustment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@project_group.command("adjust-delete")
@click.argument("project_id", type=int)
@click.argument("adjustment_id", type=int)
@click.pass_context
def delete_adjustment(ctx, project_id: int, adjustment_id: int):
    """Delete a manual balance adjustment."""
    service = ProjectLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_adjustment(project_id, adjustment_id)
        click.echo(f"Deleted adjustment {adjustment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@project_group.command("ledger")
@click.argument("project_id", type=int)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, help="Rows per page")
@click.pass_context
def show_ledger(ctx, project_id: int, page: int, page_size: int | None):
    """Show bank funding and manual adjustments of a project."""
    service = ProjectLedgerService(ctx.obj["db"], get_actor(ctx))

    try:
        ledger = service.get_project_ledger(project_id, page=page, page_size=page_size)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Project: {ledger.project_name}")
    if not ledger.rows:
        click.echo("No funding recorded.")
    for row in ledger.rows:
        if row.kind == BANK_OUTFLOW:
            detail = f"Bank       | {row.source} -> {row.destination}"
        else:
            detail = f"Adjustment | {row.remarks or ''}"
        click.echo(f"{row.date} | {row.id:4d} | {detail} | {row.amount:,.2f}")

    click.echo("-" * 60)
    click.echo(f"{len(ledger.rows)} of {ledger.total} rows")
    click.echo(f"Balance: {ledger.balance:,.2f}")



@click.group()
def item_group():
    """Manage stock items."""
    pass


@item_group.command("create")
@click.argument("project_id", type=int)
@click.argument("name")
@click.option("--unit", default="unit", show_default=True, help="Unit of measure")
@click.pass_context
def create_item(ctx, project_id: int, name: str, unit: str):
    """Create a stock item in a project.

    Examples:
        siteledger item create 1 Cement --unit bag
    """
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        item = service.create_stock_item(project_id, name, unit)
        click.echo(f"Created item '{item.name}' (ID: {item.id})")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@item_group.command("show")
@click.argument("item_id", type=int)
@click.pass_context
def show_item(ctx, item_id: int):
    """Show current stock of an item."""
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        item = service.get_stock_item(item_id)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Item: {item.name} (ID: {item.id})")
    click.echo(f"Current stock: {item.current_stock} {item.unit}")
    click.echo(f"Total purchased: {item.total_purchased} {item.unit}")


@item_group.command("consume")
@click.argument("item_id", type=int)
@click.argument("quantity")
@click.option("--date", "date_str", help="Consumption date (default: today)")
@click.option("--remarks", help="Remarks")
@click.pass_context
def consume_item(ctx, item_id: int, quantity: str, date_str: str | None, remarks: str | None):
    """Record consumption of stock on site.

    Examples:
        siteledger item consume 3 10
    """
    qty = amount_option(ctx, quantity, label="quantity")
    consumed_on = date_option(ctx, date_str)
    service = StockService(ctx.obj["db"], get_actor(ctx))

    try:
        item = service.consume(item_id, qty, date=consumed_on, remarks=remarks)
        click.echo(f"Consumed {qty} {item.unit} of '{item.name}'; {item.current_stock} left")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register project and item commands with main CLI."""
    cli.add_command(project_group, name="project")
    cli.add_command(item_group, name="item")
