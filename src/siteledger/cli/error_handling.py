"""CLI error handling helpers."""

import click

from siteledger.domain.errors import DomainError, InvariantViolationError, StoreError, format_amount


def handle_domain_error(ctx: click.Context, error: DomainError | StoreError | ValueError) -> None:
    """Render a domain or store error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, InvariantViolationError) and error.max_allowed is not None:
        # Some messages already state the maximum
        if "Maximum allowed" not in str(error):
            click.echo(f"Maximum allowed: {format_amount(error.max_allowed)}", err=True)
    ctx.exit(1)
