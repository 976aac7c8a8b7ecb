"""CLI helpers for parsing option values."""

from datetime import date
from decimal import Decimal

import click

from pathxpress.utils.amount_parser import parse_amount
from pathxpress.utils.date_parser import parse_date


def amount_or_exit(ctx: click.Context, value: str | None, label: str) -> Decimal | None:
    """Parse an optional amount option, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def date_or_exit(ctx: click.Context, value: str | None, label: str) -> date | None:
    """Parse an optional date option, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)
