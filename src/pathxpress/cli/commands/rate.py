"""Rate calculation command."""

import click
from pathxpress.domain.client import ClientService
from pathxpress.domain.entities import CustomRateBasis, ServiceType
from pathxpress.domain.errors import DomainError
from pathxpress.domain.rates import RateService
from pathxpress.cli.client_resolution import resolve_client_or_exit
from pathxpress.cli.error_handling import handle_domain_error
from pathxpress.cli.value_parsing import amount_or_exit, date_or_exit
from pathxpress.utils.amount_parser import round_money


@click.command("rate")
@click.argument("client", metavar="CLIENT")
@click.option(
    "--service-type",
    type=click.Choice([s.value for s in ServiceType], case_sensitive=False),
    default="DOM",
    show_default=True,
)
@click.option("--weight", required=True, help="Weight in kg")
@click.option("--length", help="Length in cm")
@click.option("--width", help="Width in cm")
@click.option("--height", help="Height in cm")
@click.option("--as-of", help="Pricing date (defaults to today)")
@click.pass_context
def rate_command(
    ctx,
    client: str,
    service_type: str,
    weight: str,
    length: str | None,
    width: str | None,
    height: str | None,
    as_of: str | None,
):
    """Quote the shipping charge for a client.

    Examples:
        pathxpress rate "Acme Trading" --weight 7
        pathxpress rate 1 --service-type SDD --weight 3 --length 40 --width 30 --height 30
    """
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client)

    try:
        quote = RateService(db).calculate_rate(
            client_id,
            ServiceType(service_type.upper()),
            amount_or_exit(ctx, weight, "weight"),
            length=amount_or_exit(ctx, length, "length"),
            width=amount_or_exit(ctx, width, "width"),
            height=amount_or_exit(ctx, height, "height"),
            as_of=date_or_exit(ctx, as_of, "as-of date"),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if isinstance(quote.basis, CustomRateBasis):
        basis = "custom rates"
    elif quote.basis.kind == "manual_tier":
        basis = f"manual tier {quote.basis.tier.id}"
    else:
        basis = f"tier {quote.basis.tier.id} ({quote.basis.monthly_volume} shipments this month)"

    click.echo(f"Rate basis:        {basis}")
    if quote.volumetric_weight is not None:
        click.echo(f"Volumetric weight: {round_money(quote.volumetric_weight)} kg")
    click.echo(f"Chargeable weight: {round_money(quote.chargeable_weight)} kg")
    click.echo(f"Base rate:         {round_money(quote.base_rate)}")
    click.echo(f"Additional:        {round_money(quote.additional_charges)}")
    click.echo(f"Total:             {round_money(quote.total_rate)}")


def register_commands(cli):
    """Register rate command with main CLI."""
    cli.add_command(rate_command, name="rate")
