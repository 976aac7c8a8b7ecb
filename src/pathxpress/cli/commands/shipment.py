"""Shipment commands."""

import click
from pathxpress.domain.client import ClientService
from pathxpress.domain.entities import OrderType, ServiceType, ShipmentStatus
from pathxpress.domain.errors import DomainError
from pathxpress.domain.shipment import ShipmentService
from pathxpress.cli.client_resolution import resolve_client_or_exit
from pathxpress.cli.error_handling import handle_domain_error
from pathxpress.cli.value_parsing import amount_or_exit

SERVICE_TYPES = click.Choice([s.value for s in ServiceType], case_sensitive=False)
ORDER_TYPES = click.Choice([o.value for o in OrderType])
STATUSES = click.Choice([s.value for s in ShipmentStatus])


@click.group()
def shipment_group():
    """Create shipments and track their status."""
    pass


@shipment_group.command("create")
@click.argument("client", metavar="CLIENT")
@click.option("--service-type", type=SERVICE_TYPES, default="DOM", show_default=True)
@click.option("--weight", required=True, help="Weight in kg")
@click.option("--length", help="Length in cm")
@click.option("--width", help="Width in cm")
@click.option("--height", help="Height in cm")
@click.option("--cod", "cod_amount", help="Amount to collect on delivery")
@click.option("--cod-currency", help="COD currency (defaults to client currency)")
@click.option("--charge", help="Pre-agreed shipping charge")
@click.option("--fod", is_flag=True, help="Fit on delivery requested")
@click.option("--order-type", type=ORDER_TYPES, default="standard", show_default=True)
@click.option("--no-return-charge", is_flag=True, help="Do not bill this return shipment")
@click.option("--city", help="Destination city")
@click.pass_context
def create_shipment(
    ctx,
    client: str,
    service_type: str,
    weight: str,
    length: str | None,
    width: str | None,
    height: str | None,
    cod_amount: str | None,
    cod_currency: str | None,
    charge: str | None,
    fod: bool,
    order_type: str,
    no_return_charge: bool,
    city: str | None,
):
    """Create a shipment and print its waybill number.

    CLIENT can be a company name or ID.

    Examples:
        pathxpress shipment create "Acme Trading" --weight 2.5 --city Dubai
        pathxpress shipment create 1 --service-type SDD --weight 7 --cod 250
    """
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client)
    service = ShipmentService(db)

    try:
        shipment = service.create_shipment(
            client_id=client_id,
            service_type=ServiceType(service_type.upper()),
            weight=amount_or_exit(ctx, weight, "weight"),
            length=amount_or_exit(ctx, length, "length"),
            width=amount_or_exit(ctx, width, "width"),
            height=amount_or_exit(ctx, height, "height"),
            cod_amount=amount_or_exit(ctx, cod_amount, "COD amount"),
            cod_currency=cod_currency,
            charge=amount_or_exit(ctx, charge, "charge"),
            fit_on_delivery=fod,
            order_type=OrderType(order_type),
            return_charged=not no_return_charge,
            city=city,
        )
        click.echo(f"Created shipment {shipment.waybill_number} (ID: {shipment.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@shipment_group.command("list")
@click.option("--client", help="Client name or ID")
@click.option("--status", type=STATUSES, help="Only show shipments in this status")
@click.pass_context
def list_shipments(ctx, client: str | None, status: str | None):
    """List shipments, newest first."""
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client) if client else None
    shipments = ShipmentService(db).list_shipments(
        client_id=client_id, status=ShipmentStatus(status) if status else None
    )
    if not shipments:
        click.echo("No shipments found.")
        return

    click.echo("\nShipments:")
    click.echo("-" * 80)
    for s in shipments:
        cod = f"COD {s.cod_amount} {s.cod_currency}" if s.cod_required else ""
        click.echo(
            f"{s.waybill_number} | {s.created_at:%Y-%m-%d} | client {s.client_id:3d} | "
            f"{s.service_type.value} | {s.weight}kg | {s.status.value:16s} {cod}"
        )


@shipment_group.command("status")
@click.argument("waybill")
@click.argument("status", type=STATUSES)
@click.pass_context
def update_status(ctx, waybill: str, status: str):
    """Move a shipment to a new status.

    Examples:
        pathxpress shipment status PX202500001 picked_up
    """
    service = ShipmentService(ctx.obj["db"])
    shipment = service.get_shipment_by_waybill(waybill)
    if shipment is None:
        click.echo(f"Not found: Shipment {waybill} not found", err=True)
        ctx.exit(1)

    try:
        updated = service.update_status(shipment.id, ShipmentStatus(status))
        click.echo(f"Shipment {updated.waybill_number} is now {updated.status.value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register shipment commands with main CLI."""
    cli.add_command(shipment_group, name="shipment")
