"""CLI error handling helpers."""

import click

from pathxpress.domain.errors import DomainError, NotFoundError, ConflictError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    prefix = "Error"
    if isinstance(error, NotFoundError):
        prefix = "Not found"
    elif isinstance(error, ConflictError):
        prefix = "Conflict"
    click.echo(f"{prefix}: {error}", err=True)
    ctx.exit(1)
