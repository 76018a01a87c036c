"""Command audit log commands."""

import click
from extdata.domain.command_processing import CommandProcessingService


@click.group()
def audit_group():
    """Inspect the command audit log."""
    pass


@audit_group.command("list")
@click.option("--entity", help="Only show commands on this entity or datatable")
@click.pass_context
def list_commands(ctx, entity: str | None) -> None:
    """List processed commands, newest first."""
    processor = CommandProcessingService(ctx.obj["db"], ctx.obj["user"])

    commands = processor.list_command_sources(entity_name=entity)
    if not commands:
        click.echo("No commands recorded.")
        return

    click.echo("\nCommands:")
    click.echo("-" * 80)
    for cmd in commands:
        target = cmd.entity_name
        if cmd.apptable_id is not None:
            target += f"/{cmd.apptable_id}"
        if cmd.datatable_id is not None:
            target += f"/{cmd.datatable_id}"
        line = f"ID: {cmd.id:4d} | {cmd.made_on:%Y-%m-%d %H:%M} | {cmd.maker:10s} | {cmd.action_name} {target}"
        if cmd.changes_as_json:
            line += f" | {cmd.changes_as_json}"
        click.echo(line)


def register_commands(cli):
    """Register audit commands with main CLI."""
    cli.add_command(audit_group, name="audit")
