"""Bank account commands."""

import click

from siteledger.cli.error_handling import handle_domain_error
from siteledger.cli.params import amount_option, get_actor
from siteledger.domain.account import BankAccountService
from siteledger.domain.errors import StoreError
from siteledger.domain.money import ZERO


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.option("--opening-balance", default="0", show_default=True, help="Opening balance")
@click.pass_context
def create_account(ctx, name: str, bank: str | None, opening_balance: str):
    """Create a new bank account.

    Examples:
        siteledger account create "Operations" --bank "HBL"
        siteledger account create "Payroll" --opening-balance 250,000
    """
    opening = amount_option(ctx, opening_balance, label="opening balance") or ZERO
    service = BankAccountService(ctx.obj["db"], get_actor(ctx))

    # If bank not provided, use account name as bank name
    bank_name = bank if bank is not None else name

    try:
        account = service.create_account(name=name, bank_name=bank_name, opening_balance=opening)
        click.echo(f"Created account '{account.name}' (ID: {account.id})")
        if bank is None:
            click.echo(f"Bank name set to '{bank_name}'")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all bank accounts."""
    service = BankAccountService(ctx.obj["db"], get_actor(ctx))

    try:
        accounts = service.list_accounts()
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | Bank: {acc.bank_name} | "
            f"Balance: {acc.current_balance:,.2f}"
        )


@account_group.command("show")
@click.argument("account_id", type=int)
@click.pass_context
def show_account(ctx, account_id: int):
    """Show balance and running totals of a bank account."""
    service = BankAccountService(ctx.obj["db"], get_actor(ctx))

    try:
        acc = service.get_account(account_id)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Account: {acc.name} ({acc.bank_name})")
    click.echo(f"Opening balance: {acc.opening_balance:,.2f}")
    click.echo(f"Total inflow:    {acc.total_inflow:,.2f}")
    click.echo(f"Total outflow:   {acc.total_outflow:,.2f}")
    click.echo(f"Current balance: {acc.current_balance:,.2f}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
