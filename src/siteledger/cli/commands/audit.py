"""Audit trail commands."""

import click

from siteledger.cli.params import get_actor
from siteledger.domain.audit import AuditService


@click.group()
def audit_group():
    """Inspect the audit trail."""
    pass


@audit_group.command("list")
@click.option("--module", help="Filter by module (e.g. bank_transactions)")
@click.option("--entity", "entity_id", type=int, help="Filter by entity ID")
@click.pass_context
def list_records(ctx, module: str | None, entity_id: int | None):
    """List audit records, oldest first."""
    service = AuditService(ctx.obj["db"], get_actor(ctx))

    records = service.list_records(module=module, entity_id=entity_id)
    if not records:
        click.echo("No audit records found.")
        return

    for record in records:
        click.echo(
            f"{record.created_at:%Y-%m-%d %H:%M:%S} | {record.actor_id} ({record.actor_role}) | "
            f"{record.action.value:6s} | {record.module} #{record.entity_id} | {record.description}"
        )


def register_commands(cli):
    """Register audit commands with main CLI."""
    cli.add_command(audit_group, name="audit")
