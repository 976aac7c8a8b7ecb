"""Cash-on-delivery commands."""

import click
from pathxpress.domain.client import ClientService
from pathxpress.domain.cod import CODService
from pathxpress.domain.entities import CODStatus
from pathxpress.domain.errors import DomainError
from pathxpress.cli.client_resolution import resolve_client_or_exit
from pathxpress.cli.error_handling import handle_domain_error
from pathxpress.cli.value_parsing import amount_or_exit
from pathxpress.utils.amount_parser import round_money

STATUSES = click.Choice([s.value for s in CODStatus])


@click.group()
def cod_group():
    """Track COD collections and fees."""
    pass


@cod_group.command("fee")
@click.argument("amount")
@click.option("--client", help="Client name or ID whose fee schedule applies")
@click.pass_context
def cod_fee(ctx, amount: str, client: str | None):
    """Calculate the COD fee for an amount.

    Examples:
        pathxpress cod fee 500
        pathxpress cod fee "AED 100" --client "Acme Trading"
    """
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client) if client else None
    try:
        fee = CODService(db).calculate_fee(amount_or_exit(ctx, amount, "amount"), client_id=client_id)
        click.echo(f"COD fee: {round_money(fee)}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@cod_group.command("list")
@click.option("--client", help="Client name or ID")
@click.option("--status", type=STATUSES, help="Only show records in this status")
@click.pass_context
def list_records(ctx, client: str | None, status: str | None):
    """List COD records, newest first."""
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client) if client else None
    records = CODService(db).list_records(
        client_id=client_id, status=CODStatus(status) if status else None
    )
    if not records:
        click.echo("No COD records found.")
        return

    click.echo("\nCOD records:")
    click.echo("-" * 75)
    for r in records:
        remittance = f" | remittance {r.remittance_id}" if r.remittance_id else ""
        click.echo(
            f"ID: {r.id:4d} | shipment {r.shipment_id:4d} | client {r.client_id:3d} | "
            f"{r.cod_amount:>10} {r.cod_currency} | {r.status.value}{remittance}"
        )


@cod_group.command("status")
@click.argument("record_id", type=int)
@click.argument("status", type=STATUSES)
@click.pass_context
def update_status(ctx, record_id: int, status: str):
    """Move a COD record to a new status.

    Examples:
        pathxpress cod status 12 collected
    """
    try:
        record = CODService(ctx.obj["db"]).update_status(record_id, CODStatus(status))
        click.echo(f"COD record {record.id} is now {record.status.value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@cod_group.command("summary")
@click.option("--client", help="Client name or ID (defaults to all clients)")
@click.pass_context
def summary(ctx, client: str | None):
    """Show pending, collected and remitted COD totals."""
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client) if client else None
    totals = CODService(db).get_summary(client_id=client_id)

    click.echo(f"Pending collection: {round_money(totals.pending):>12}")
    click.echo(f"Collected:          {round_money(totals.collected):>12}")
    click.echo(f"Remitted:           {round_money(totals.remitted):>12}")
    click.echo("-" * 33)
    click.echo(f"Total:              {round_money(totals.total):>12}")


def register_commands(cli):
    """Register COD commands with main CLI."""
    cli.add_command(cod_group, name="cod")
