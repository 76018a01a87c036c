"""Main CLI entry point."""

import click
from extdata.database.factories import create_sqlite_database
from extdata.domain.command_processing import ALL_FUNCTIONS
from extdata.domain.entities import AppUser
from extdata.logging_config import setup_logging

# Import and register all commands at module level
from extdata.cli.commands import (
    audit,
    datatable,
    entry,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides EXTDATA_DB_PATH environment variable)",
    envvar="EXTDATA_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    envvar="EXTDATA_LOG_LEVEL",
    help="Log level (overrides EXTDATA_LOG_LEVEL environment variable)",
)
@click.option("--log-json", is_flag=True, help="Emit logs as JSON")
@click.option(
    "--user",
    default="cli",
    envvar="EXTDATA_USER",
    show_default=True,
    help="User name recorded in the command audit log",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None, log_json: bool, user: str):
    """extdata - Extension datatables for core banking entities.

    Attach admin-defined tables to clients, groups, loans and other
    entities, and create, update, view and delete their entries.
    """
    ctx.ensure_object(dict)

    if log_level is not None or log_json:
        setup_logging(level=log_level or "WARNING", json_format=log_json)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user"] = AppUser(username=user, permissions=frozenset({ALL_FUNCTIONS}))
        ctx.call_on_close(db.disconnect)


# Register all commands
datatable.register_commands(cli)
entry.register_commands(cli)
audit.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
