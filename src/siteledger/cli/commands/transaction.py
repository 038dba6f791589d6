"""Bank transaction commands."""

import click

from siteledger.cli.error_handling import handle_domain_error
from siteledger.cli.params import amount_option, date_option, get_actor
from siteledger.domain.bank_transaction import BankTransactionService
from siteledger.domain.errors import StoreError


def _print_transaction(txn) -> None:
    sign = "+" if txn.type.value == "inflow" else "-"
    project = f" | Project: {txn.project_name}" if txn.project_name else ""
    click.echo(
        f"ID: {txn.id:4d} | {txn.date} | {sign}{txn.amount:>12,.2f} | "
        f"{txn.source} -> {txn.destination} | {txn.mode.value}{project}"
    )


@click.group()
def transaction_group():
    """Manage bank transactions."""
    pass


@transaction_group.command("add")
@click.argument("account_id", type=int)
@click.option(
    "--type",
    "txn_type",
    type=click.Choice(["inflow", "outflow"]),
    required=True,
    help="Transaction direction",
)
@click.option("--amount", required=True, help="Amount (positive)")
@click.option("--source", required=True, help="Where the money came from")
@click.option("--destination", required=True, help="Where the money went")
@click.option("--date", "date_str", default="today", show_default=True, help="Transaction date")
@click.option("--mode", default="Bank", show_default=True, help="Cash, Bank or Online")
@click.option("--project", "project_id", type=int, help="Funded project (outflow only)")
@click.option("--reference", "reference_id", help="Reference ID")
@click.option("--remarks", help="Remarks")
@click.pass_context
def add_transaction(
    ctx,
    account_id: int,
    txn_type: str,
    amount: str,
    source: str,
    destination: str,
    date_str: str,
    mode: str,
    project_id: int | None,
    reference_id: str | None,
    remarks: str | None,
):
    """Record a bank transaction.

    Examples:
        siteledger txn add 1 --type inflow --amount 500000 --source Owner --destination Operations
        siteledger txn add 1 --type outflow --amount 100000 --source Operations --destination "Tower A" --project 2
    """
    parsed_amount = amount_option(ctx, amount)
    txn_date = date_option(ctx, date_str)
    service = BankTransactionService(ctx.obj["db"], get_actor(ctx))

    try:
        txn = service.create_transaction(
            account_id=account_id,
            date=txn_date,
            type=txn_type,
            amount=parsed_amount,
            source=source,
            destination=destination,
            mode=mode,
            project_id=project_id,
            reference_id=reference_id,
            remarks=remarks,
        )
        click.echo(f"Created transaction {txn.id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--date", "date_str", help="New date")
@click.option("--source", help="New source")
@click.option("--destination", help="New destination")
@click.option("--mode", help="New mode (Cash, Bank or Online)")
@click.option("--project", "project_id", type=int, help="New funded project")
@click.option("--clear-project", is_flag=True, help="Remove the funded project")
@click.option("--reference", "reference_id", help="New reference ID")
@click.option("--remarks", help="New remarks")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    amount: str | None,
    date_str: str | None,
    source: str | None,
    destination: str | None,
    mode: str | None,
    project_id: int | None,
    clear_project: bool,
    reference_id: str | None,
    remarks: str | None,
):
    """Update a bank transaction.

    The old effect on the account and project is reversed before the new
    one is applied, so balances stay consistent.
    """
    parsed_amount = amount_option(ctx, amount)
    txn_date = date_option(ctx, date_str)
    service = BankTransactionService(ctx.obj["db"], get_actor(ctx))

    try:
        service.update_transaction(
            transaction_id,
            date=txn_date,
            amount=parsed_amount,
            source=source,
            destination=destination,
            mode=mode,
            project_id=project_id,
            reference_id=reference_id,
            remarks=remarks,
            clear_project=clear_project,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int):
    """Delete a bank transaction and reverse its effect."""
    service = BankTransactionService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_transaction(transaction_id)
        click.echo(f"Deleted transaction {transaction_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--account", "account_id", type=int, help="Filter by account ID")
@click.option("--start-date", help="Start date (inclusive)")
@click.option("--end-date", help="End date (inclusive)")
@click.option("--search", help="Search source, destination, reference and remarks")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, help="Rows per page")
@click.pass_context
def list_transactions(
    ctx,
    account_id: int | None,
    start_date: str | None,
    end_date: str | None,
    search: str | None,
    page: int,
    page_size: int | None,
):
    """List bank transactions, newest first."""
    start = date_option(ctx, start_date)
    end = date_option(ctx, end_date)
    service = BankTransactionService(ctx.obj["db"], get_actor(ctx))

    try:
        result = service.list_transactions(
            account_id=account_id,
            start_date=start,
            end_date=end,
            search=search,
            page=page,
            page_size=page_size,
        )
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if not result.rows:
        click.echo("No transactions found.")
        return

    for txn in result.rows:
        _print_transaction(txn)
    click.echo(f"\n{len(result.rows)} of {result.total} transactions")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
