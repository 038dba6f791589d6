"""Parsing of CLI option values shared by the commands."""

from datetime import date
from decimal import Decimal

import click

from siteledger.domain.entities import Actor
from siteledger.utils.amount_parser import parse_amount
from siteledger.utils.date_parser import parse_date, parse_month_arg


def amount_option(ctx: click.Context, value: str | None, label: str = "amount") -> Decimal | None:
    """Parse an amount option, exiting with an error message on bad input."""
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def date_option(ctx: click.Context, value: str | None) -> date | None:
    """Parse a date option, exiting with an error message on bad input."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def month_option(ctx: click.Context, value: str | None) -> str | None:
    """Parse a month option, exiting with an error message on bad input."""
    if value is None:
        return None
    try:
        return parse_month_arg(value)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def get_actor(ctx: click.Context) -> Actor:
    """Actor configured on the root command."""
    return ctx.obj["actor"]
