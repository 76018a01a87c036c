"""CLI error handling helpers."""

import logging

import click

from extdata.domain.errors import DomainError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Print a domain error to stderr and exit with status 1."""
    logger.debug("%s in '%s': %s", type(error).__name__, ctx.command_path, error)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
