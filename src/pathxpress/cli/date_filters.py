"""CLI helpers for billing period resolution."""

from datetime import date

import click

from pathxpress.utils.date_parser import get_date_range, parse_date


def resolve_cli_period(
    ctx,
    *,
    period: str | None,
    start_date: str | None,
    end_date: str | None,
) -> tuple[date, date]:
    """Resolve a billing period from --period or explicit start/end dates."""
    if period and (start_date or end_date):
        click.echo(
            "Error: --period cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period:
        try:
            return get_date_range(period)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    if not start_date or not end_date:
        click.echo(
            "Error: Provide --period or both --start-date and --end-date.",
            err=True,
        )
        ctx.exit(1)

    try:
        start = parse_date(start_date)
    except ValueError as e:
        click.echo(f"Error: Invalid start date: {e}", err=True)
        ctx.exit(1)

    try:
        end = parse_date(end_date)
    except ValueError as e:
        click.echo(f"Error: Invalid end date: {e}", err=True)
        ctx.exit(1)

    if start > end:
        click.echo("Error: Start date must not be after end date.", err=True)
        ctx.exit(1)

    return start, end
