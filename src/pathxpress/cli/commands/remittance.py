"""COD remittance commands."""

import click
from pathxpress.domain.client import ClientService
from pathxpress.domain.entities import RemittanceStatus
from pathxpress.domain.errors import DomainError
from pathxpress.domain.remittance import RemittanceService
from pathxpress.cli.client_resolution import resolve_client_or_exit
from pathxpress.cli.error_handling import handle_domain_error


@click.group()
def remittance_group():
    """Pay collected COD funds out to clients."""
    pass


@remittance_group.command("create")
@click.argument("client", metavar="CLIENT")
@click.argument("record_ids", type=int, nargs=-1, required=True)
@click.option("--method", "payment_method", help="Payment method (e.g. bank_transfer)")
@click.option("--reference", "payment_reference", help="Payment reference")
@click.option("--notes", help="Notes")
@click.pass_context
def create_remittance(
    ctx,
    client: str,
    record_ids: tuple[int, ...],
    payment_method: str | None,
    payment_reference: str | None,
    notes: str | None,
):
    """Batch collected COD records into a remittance.

    Examples:
        pathxpress remittance create "Acme Trading" 4 5 9 --method bank_transfer
    """
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client)

    try:
        remittance = RemittanceService(db).create_remittance(
            client_id,
            list(record_ids),
            payment_method=payment_method,
            payment_reference=payment_reference,
            notes=notes,
        )
        click.echo(f"Created remittance {remittance.remittance_number} (ID: {remittance.id})")
        click.echo(f"Gross: {remittance.gross_amount} {remittance.currency}")
        click.echo(f"Fee:   {remittance.fee_amount}")
        click.echo(f"Net:   {remittance.total_amount}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@remittance_group.command("list")
@click.option("--client", help="Client name or ID")
@click.pass_context
def list_remittances(ctx, client: str | None):
    """List remittances, newest first."""
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client) if client else None
    remittances = RemittanceService(db).list_remittances(client_id=client_id)
    if not remittances:
        click.echo("No remittances found.")
        return

    click.echo("\nRemittances:")
    click.echo("-" * 80)
    for r in remittances:
        click.echo(
            f"ID: {r.id:3d} | {r.remittance_number} | client {r.client_id:3d} | "
            f"{r.shipment_count:3d} records | net {r.total_amount:>10} {r.currency} | {r.status.value}"
        )


@remittance_group.command("show")
@click.argument("remittance_id", type=int)
@click.pass_context
def show_remittance(ctx, remittance_id: int):
    """Show a remittance with its items."""
    try:
        details = RemittanceService(ctx.obj["db"]).get_remittance_details(remittance_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    r = details.remittance
    click.echo(f"\nRemittance {r.remittance_number} ({r.status.value})")
    click.echo("-" * 50)
    for item in details.items:
        click.echo(f"COD record {item.cod_record_id:5d} | shipment {item.shipment_id:5d} | {item.amount:>10}")
    click.echo("-" * 50)
    click.echo(f"Gross: {r.gross_amount} {r.currency}")
    click.echo(f"Fee:   {r.fee_amount} ({r.fee_percentage}%)")
    click.echo(f"Net:   {r.total_amount}")


@remittance_group.command("status")
@click.argument("remittance_id", type=int)
@click.argument("status", type=click.Choice([s.value for s in RemittanceStatus]))
@click.pass_context
def update_status(ctx, remittance_id: int, status: str):
    """Advance a remittance; completing it marks its records remitted.

    Examples:
        pathxpress remittance status 2 processed
        pathxpress remittance status 2 completed
    """
    try:
        remittance = RemittanceService(ctx.obj["db"]).update_status(
            remittance_id, RemittanceStatus(status)
        )
        click.echo(f"Remittance {remittance.remittance_number} is now {remittance.status.value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register remittance commands with main CLI."""
    cli.add_command(remittance_group, name="remittance")
