"""Main CLI entry point."""

import click

from siteledger.database.factories import create_sqlite_database
from siteledger.domain.access import ROLES
from siteledger.domain.entities import Actor
from siteledger.logging_config import configure_logging

# Import and register all commands at module level
from siteledger.cli.commands import (
    account,
    audit,
    contractor,
    directory,
    machine,
    payroll,
    transaction,
    vendor,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SITELEDGER_DB_PATH environment variable)",
    envvar="SITELEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    envvar="SITELEDGER_LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level for messages written to stderr",
)
@click.option("--actor", default="cli", envvar="SITELEDGER_ACTOR", help="ID recorded on audit records")
@click.option(
    "--role",
    default="admin",
    envvar="SITELEDGER_ROLE",
    type=click.Choice(ROLES),
    help="Role of the acting user",
)
@click.option(
    "--project",
    "assigned_project_id",
    type=int,
    envvar="SITELEDGER_PROJECT",
    help="Assigned project ID (site managers only)",
)
@click.pass_context
def cli(
    ctx,
    db_path: str | None,
    log_level: str,
    actor: str,
    role: str,
    assigned_project_id: int | None,
):
    """Siteledger - construction site ledgers.

    Keep bank accounts, project funding, vendor purchases, contractor
    payments, machinery hours and employee payroll reconciled.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["actor"] = Actor(
            id=actor,
            email=f"{actor}@localhost",
            role=role,
            assigned_project_id=assigned_project_id,
        )


# Register all commands
directory.register_commands(cli)
account.register_commands(cli)
transaction.register_commands(cli)
vendor.register_commands(cli)
contractor.register_commands(cli)
machine.register_commands(cli)
payroll.register_commands(cli)
audit.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
