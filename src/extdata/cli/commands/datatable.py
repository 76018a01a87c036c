"""Datatable registration commands."""

import click
from extdata.cli.error_handling import handle_domain_error
from extdata.domain.command_processing import CommandProcessingService
from extdata.domain.commands import CommandWrapperBuilder
from extdata.domain.datatable import DatatableService
from extdata.domain.errors import DomainError


@click.group()
def datatable_group():
    """Manage datatable registrations."""
    pass


@datatable_group.command("register")
@click.argument("name", metavar="DATATABLE")
@click.argument("parent_type", metavar="PARENT_TYPE")
@click.pass_context
def register_datatable(ctx, name: str, parent_type: str) -> None:
    """Register an existing table as a datatable.

    PARENT_TYPE is a business entity (CLIENT, GROUP, LOAN, OFFICE,
    SAVINGSACCOUNT, DEPOSITACCOUNT, SAVINGSPRODUCT, DEPOSITPRODUCT) or its
    application table name (e.g. m_client).

    Examples:
        extdata datatable register client_extra CLIENT
        extdata datatable register loan_notes m_loan
    """
    processor = CommandProcessingService(ctx.obj["db"], ctx.obj["user"])
    command = CommandWrapperBuilder().register_datatable(name, parent_type).build()

    try:
        result = processor.process(command)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    cardinality = "one-to-many" if result.changes["multiRow"] else "one-to-one"
    click.echo(f"Registered datatable '{name}' for {result.changes['apptable']} ({cardinality})")


@datatable_group.command("deregister")
@click.argument("name", metavar="DATATABLE")
@click.pass_context
def deregister_datatable(ctx, name: str) -> None:
    """Deregister a datatable.

    Only datatables without entries can be deregistered. The underlying
    table is left in place.

    Examples:
        extdata datatable deregister client_extra
    """
    processor = CommandProcessingService(ctx.obj["db"], ctx.obj["user"])
    command = CommandWrapperBuilder().deregister_datatable(name).build()

    try:
        processor.process(command)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Deregistered datatable '{name}'")


@datatable_group.command("list")
@click.option("--parent", "parent_type", help="Only show datatables of this parent type")
@click.pass_context
def list_datatables(ctx, parent_type: str | None) -> None:
    """List registered datatables."""
    service = DatatableService(ctx.obj["db"])

    try:
        datatables = service.list_datatables(parent_entity_type=parent_type)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not datatables:
        click.echo("No datatables registered.")
        return

    click.echo("\nDatatables:")
    click.echo("-" * 60)
    for dt in datatables:
        cardinality = "one-to-many" if dt.multi_row else "one-to-one"
        click.echo(f"{dt.datatable_name:30s} | {dt.parent_entity_type.name:15s} | {cardinality}")


@datatable_group.command("show")
@click.argument("name", metavar="DATATABLE")
@click.pass_context
def show_datatable(ctx, name: str) -> None:
    """Show the columns of a datatable."""
    service = DatatableService(ctx.obj["db"])

    try:
        dt = service.get_datatable(name)
        columns = service.get_columns(dt)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    cardinality = "one-to-many" if dt.multi_row else "one-to-one"
    click.echo(f"\nDatatable '{dt.datatable_name}' ({dt.parent_entity_type.name}, {cardinality})")
    click.echo("-" * 60)
    for column in columns.values():
        column_type = column.column_type
        if column.column_length is not None:
            column_type += f"({column.column_length})"
        flags = []
        if column.is_key:
            flags.append("key")
        if not column.is_nullable:
            flags.append("required")
        click.echo(f"{column.column_name:30s} | {column_type:15s} | {', '.join(flags)}")


def register_commands(cli):
    """Register datatable commands with main CLI."""
    cli.add_command(datatable_group, name="datatable")
