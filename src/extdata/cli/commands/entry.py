"""Datatable entry commands."""

import json
from typing import Any

import click
from extdata.cli.error_handling import handle_domain_error
from extdata.domain.command_processing import CommandProcessingService
from extdata.domain.commands import CommandWrapperBuilder
from extdata.domain.datatable import DatatableService
from extdata.domain.errors import DomainError, ValidationError


def parse_payload(fields: tuple[str, ...], json_payload: str | None) -> dict[str, Any]:
    """Build a payload from FIELD=VALUE arguments and an optional JSON object.

    FIELD=VALUE arguments override keys of the JSON object. Their values are
    passed as strings and converted to the column type by the service.

    Raises:
        ValidationError: If an argument or the JSON is malformed
    """
    payload: dict[str, Any] = {}
    if json_payload:
        try:
            parsed = json.loads(json_payload)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Malformed JSON payload: {e.msg}") from e
        if not isinstance(parsed, dict):
            raise ValidationError("JSON payload must be an object")
        payload.update(parsed)

    for field in fields:
        name, sep, value = field.partition("=")
        if not sep or not name.strip():
            raise ValidationError(f"Expected FIELD=VALUE, got '{field}'")
        payload[name.strip()] = value
    return payload


def _format_value(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@click.group()
def entry_group():
    """Manage datatable entries."""
    pass


@entry_group.command("create")
@click.argument("datatable", metavar="DATATABLE")
@click.argument("parent_id", type=int, metavar="PARENT_ID")
@click.argument("fields", nargs=-1, metavar="[FIELD=VALUE]...")
@click.option("--json", "json_payload", help="Entry values as a JSON object")
@click.pass_context
def create_entry(ctx, datatable: str, parent_id: int, fields: tuple[str, ...], json_payload: str | None):
    """Create an entry for a parent entity.

    Examples:
        extdata entry create client_extra 5 favoriteColor=blue
        extdata entry create loan_notes 12 --json '{"note": "Called client", "amount": 12.5}'
    """
    processor = CommandProcessingService(ctx.obj["db"], ctx.obj["user"])

    try:
        payload = parse_payload(fields, json_payload)
        command = (
            CommandWrapperBuilder()
            .create_datatable_entry(datatable, parent_id)
            .with_json(payload)
            .build()
        )
        result = processor.process(command)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    message = f"Created entry in '{datatable}' for parent {parent_id}"
    if result.resource_id is not None:
        message += f" (row ID: {result.resource_id})"
    click.echo(message)


@entry_group.command("update")
@click.argument("datatable", metavar="DATATABLE")
@click.argument("parent_id", type=int, metavar="PARENT_ID")
@click.argument("fields", nargs=-1, metavar="[FIELD=VALUE]...")
@click.option("--row", "row_id", type=int, help="Row ID (one-to-many datatables)")
@click.option("--json", "json_payload", help="Entry values as a JSON object")
@click.pass_context
def update_entry(
    ctx, datatable: str, parent_id: int, fields: tuple[str, ...], row_id: int | None, json_payload: str | None
):
    """Update an entry. Only changed fields are written.

    Examples:
        extdata entry update client_extra 5 favoriteColor=red
        extdata entry update loan_notes 12 --row 3 note="Left message"
    """
    processor = CommandProcessingService(ctx.obj["db"], ctx.obj["user"])

    try:
        payload = parse_payload(fields, json_payload)
        command = (
            CommandWrapperBuilder()
            .update_datatable_entry(datatable, parent_id, row_id)
            .with_json(payload)
            .build()
        )
        result = processor.process(command)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not result.changes:
        click.echo("No changes.")
        return

    click.echo(f"Updated entry in '{datatable}' for parent {parent_id}:")
    for name, value in result.changes.items():
        click.echo(f"  {name}: {_format_value(value)}")


@entry_group.command("delete")
@click.argument("datatable", metavar="DATATABLE")
@click.argument("parent_id", type=int, metavar="PARENT_ID")
@click.option("--row", "row_id", type=int, help="Row ID; without it all entries of the parent are deleted")
@click.pass_context
def delete_entry(ctx, datatable: str, parent_id: int, row_id: int | None):
    """Delete entries of a parent entity.

    Examples:
        extdata entry delete client_extra 5
        extdata entry delete loan_notes 12 --row 3
    """
    processor = CommandProcessingService(ctx.obj["db"], ctx.obj["user"])

    target = f"entry {row_id}" if row_id is not None else "all entries"
    if not click.confirm(f"Are you sure you want to delete {target} in '{datatable}' for parent {parent_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        command = CommandWrapperBuilder().delete_datatable_entry(datatable, parent_id, row_id).build()
        processor.process(command)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Deleted {target} in '{datatable}' for parent {parent_id}")


@entry_group.command("show")
@click.argument("datatable", metavar="DATATABLE")
@click.argument("parent_id", type=int, metavar="PARENT_ID")
@click.option("--row", "row_id", type=int, help="Row ID (one-to-many datatables)")
@click.option("--order", help="Order by column, e.g. 'note desc'")
@click.pass_context
def show_entries(ctx, datatable: str, parent_id: int, row_id: int | None, order: str | None):
    """Show entries of a parent entity."""
    service = DatatableService(ctx.obj["db"])

    try:
        resultset = service.read_entries(datatable, parent_id, row_id=row_id, order=order)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not resultset.rows:
        click.echo("No entries found.")
        return

    click.echo(" | ".join(resultset.column_names))
    click.echo("-" * 60)
    for row in resultset.rows:
        click.echo(" | ".join(_format_value(row[name]) for name in resultset.column_names))


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
