"""Rate tier commands."""

import click
from pathxpress.domain.entities import ServiceType
from pathxpress.domain.errors import DomainError
from pathxpress.domain.rates import RateService
from pathxpress.cli.error_handling import handle_domain_error
from pathxpress.cli.value_parsing import amount_or_exit

SERVICE_TYPES = click.Choice([s.value for s in ServiceType], case_sensitive=False)


@click.group()
def tier_group():
    """Manage rate tiers."""
    pass


@tier_group.command("seed")
@click.pass_context
def seed_tiers(ctx):
    """Create the standard DOM and SDD tiers on an empty database."""
    service = RateService(ctx.obj["db"])
    created = service.seed_default_tiers()
    if created:
        click.echo(f"Created {created} rate tiers")
    else:
        click.echo("Rate tiers already exist; nothing to seed.")


@tier_group.command("create")
@click.argument("service_type", type=SERVICE_TYPES)
@click.option("--min-volume", type=int, required=True, help="Lowest monthly volume of the bracket")
@click.option("--max-volume", type=int, help="Highest monthly volume (omit for unbounded)")
@click.option("--base-rate", required=True, help="Base rate")
@click.option("--per-kg", required=True, help="Rate per additional kg")
@click.option("--max-weight", help="Weight in kg covered by the base rate")
@click.pass_context
def create_tier(
    ctx,
    service_type: str,
    min_volume: int,
    max_volume: int | None,
    base_rate: str,
    per_kg: str,
    max_weight: str | None,
):
    """Create a rate tier.

    Examples:
        pathxpress tier create DOM --min-volume 0 --max-volume 399 --base-rate 14 --per-kg 1
    """
    service = RateService(ctx.obj["db"])
    try:
        tier_id = service.create_tier(
            service_type=ServiceType(service_type.upper()),
            min_volume=min_volume,
            max_volume=max_volume,
            base_rate=amount_or_exit(ctx, base_rate, "base rate"),
            additional_kg_rate=amount_or_exit(ctx, per_kg, "per kg rate"),
            max_weight=amount_or_exit(ctx, max_weight, "max weight"),
        )
        click.echo(f"Created rate tier {tier_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@tier_group.command("list")
@click.option("--service-type", type=SERVICE_TYPES, help="Only show one service type")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive tiers")
@click.pass_context
def list_tiers(ctx, service_type: str | None, include_inactive: bool):
    """List rate tiers."""
    service = RateService(ctx.obj["db"])
    tiers = service.list_tiers(
        service_type=ServiceType(service_type.upper()) if service_type else None,
        include_inactive=include_inactive,
    )
    if not tiers:
        click.echo("No rate tiers found.")
        return

    click.echo("\nRate tiers:")
    click.echo("-" * 75)
    for t in tiers:
        bracket = f"{t.min_volume}-{t.max_volume if t.max_volume is not None else '...'}"
        flag = "" if t.is_active else " (inactive)"
        click.echo(
            f"ID: {t.id:3d} | {t.service_type.value} | {bracket:10s} | "
            f"base {t.base_rate} | +{t.additional_kg_rate}/kg over {t.max_weight}kg{flag}"
        )


@tier_group.command("deactivate")
@click.argument("tier_id", type=int)
@click.pass_context
def deactivate_tier(ctx, tier_id: int):
    """Deactivate a rate tier."""
    service = RateService(ctx.obj["db"])
    try:
        service.set_tier_active(tier_id, False)
        click.echo(f"Deactivated rate tier {tier_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@tier_group.command("activate")
@click.argument("tier_id", type=int)
@click.pass_context
def activate_tier(ctx, tier_id: int):
    """Activate a rate tier."""
    service = RateService(ctx.obj["db"])
    try:
        service.set_tier_active(tier_id, True)
        click.echo(f"Activated rate tier {tier_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register tier commands with main CLI."""
    cli.add_command(tier_group, name="tier")
