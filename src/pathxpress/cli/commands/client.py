"""Client account commands."""

import click
from pathxpress.domain.client import ClientService
from pathxpress.domain.errors import DomainError
from pathxpress.cli.client_resolution import resolve_client_or_exit
from pathxpress.cli.error_handling import handle_domain_error
from pathxpress.cli.value_parsing import amount_or_exit


@click.group()
def client_group():
    """Manage client accounts."""
    pass


@client_group.command("create")
@click.argument("name", metavar="COMPANY_NAME")
@click.option("--email", help="Billing email")
@click.option("--currency", help="Billing currency (defaults to DEFAULT_CURRENCY)")
@click.option("--cod/--no-cod", default=False, help="Allow COD shipments")
@click.option("--fod/--no-fod", default=False, help="Offer fit-on-delivery")
@click.option("--fod-fee", help="Fit-on-delivery fee override")
@click.option("--return-fee", help="Flat fee billed for return shipments")
@click.pass_context
def create_client(
    ctx,
    name: str,
    email: str | None,
    currency: str | None,
    cod: bool,
    fod: bool,
    fod_fee: str | None,
    return_fee: str | None,
):
    """Create a new client account.

    Examples:
        pathxpress client create "Acme Trading" --email billing@acme.ae --cod
        pathxpress client create "Boutique" --fod --fod-fee 7.50
    """
    service = ClientService(ctx.obj["db"])
    fod_fee_amount = amount_or_exit(ctx, fod_fee, "FOD fee")
    return_fee_amount = amount_or_exit(ctx, return_fee, "return fee")

    try:
        client_id = service.create_client(
            company_name=name,
            billing_email=email,
            default_currency=currency,
            cod_allowed=cod,
            fod_allowed=fod,
            fod_fee=fod_fee_amount,
            return_fee=return_fee_amount,
        )
        click.echo(f"Created client '{name}' (ID: {client_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("list")
@click.pass_context
def list_clients(ctx):
    """List all client accounts."""
    service = ClientService(ctx.obj["db"])

    clients = service.list_clients()
    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\nClients:")
    click.echo("-" * 70)
    for c in clients:
        if c.custom_dom_base_rate is not None or c.custom_sdd_base_rate is not None:
            rates = "custom"
        elif c.manual_rate_tier_id is not None:
            rates = f"tier {c.manual_rate_tier_id}"
        else:
            rates = "auto"
        cod = "COD" if c.cod_allowed else "   "
        click.echo(f"ID: {c.id:3d} | {c.company_name:25s} | {c.default_currency} | {cod} | Rates: {rates}")


@client_group.command("show")
@click.argument("client", metavar="CLIENT")
@click.pass_context
def show_client(ctx, client: str):
    """Show a client's billing settings.

    CLIENT can be a company name or ID.
    """
    service = ClientService(ctx.obj["db"])
    client_id = resolve_client_or_exit(ctx, service, client)
    c = service.get_client(client_id)

    def show(value):
        return "-" if value is None else value

    click.echo(f"\n{c.company_name} (ID: {c.id})")
    click.echo("-" * 50)
    click.echo(f"Billing email:     {show(c.billing_email)}")
    click.echo(f"Currency:          {c.default_currency}")
    click.echo(f"Manual tier:       {show(c.manual_rate_tier_id)}")
    click.echo(f"DOM custom rate:   {show(c.custom_dom_base_rate)} + {show(c.custom_dom_per_kg)}/kg")
    click.echo(f"SDD custom rate:   {show(c.custom_sdd_base_rate)} + {show(c.custom_sdd_per_kg)}/kg")
    click.echo(f"Custom max weight: {show(c.custom_max_weight)}")
    click.echo(f"COD allowed:       {'yes' if c.cod_allowed else 'no'}")
    click.echo(
        f"COD fee:           {show(c.cod_fee_percent)}% "
        f"(min {show(c.cod_min_fee)}, max {show(c.cod_max_fee)})"
    )
    click.echo(f"FOD allowed:       {'yes' if c.fod_allowed else 'no'} (fee {show(c.fod_fee)})")
    click.echo(f"Return fee:        {show(c.return_fee)}")


@client_group.command("set-tier")
@click.argument("client", metavar="CLIENT")
@click.argument("tier_id", type=int)
@click.pass_context
def set_tier(ctx, client: str, tier_id: int):
    """Pin a client to a rate tier (clears custom rates).

    Examples:
        pathxpress client set-tier "Acme Trading" 3
    """
    service = ClientService(ctx.obj["db"])
    client_id = resolve_client_or_exit(ctx, service, client)
    try:
        service.assign_manual_tier(client_id, tier_id)
        click.echo(f"Client {client_id} now uses rate tier {tier_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("set-rates")
@click.argument("client", metavar="CLIENT")
@click.option("--dom-base", help="DOM base rate")
@click.option("--dom-per-kg", help="DOM rate per additional kg")
@click.option("--sdd-base", help="SDD base rate")
@click.option("--sdd-per-kg", help="SDD rate per additional kg")
@click.option("--max-weight", help="Weight in kg covered by the base rate")
@click.pass_context
def set_rates(
    ctx,
    client: str,
    dom_base: str | None,
    dom_per_kg: str | None,
    sdd_base: str | None,
    sdd_per_kg: str | None,
    max_weight: str | None,
):
    """Give a client custom rates (clears any manual tier).

    Examples:
        pathxpress client set-rates "Acme Trading" --dom-base 12 --dom-per-kg 1.5
    """
    service = ClientService(ctx.obj["db"])
    client_id = resolve_client_or_exit(ctx, service, client)
    try:
        service.set_custom_rates(
            client_id,
            dom_base_rate=amount_or_exit(ctx, dom_base, "DOM base rate"),
            dom_per_kg=amount_or_exit(ctx, dom_per_kg, "DOM per kg rate"),
            sdd_base_rate=amount_or_exit(ctx, sdd_base, "SDD base rate"),
            sdd_per_kg=amount_or_exit(ctx, sdd_per_kg, "SDD per kg rate"),
            max_weight=amount_or_exit(ctx, max_weight, "max weight"),
        )
        click.echo(f"Client {client_id} now uses custom rates")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("clear-rates")
@click.argument("client", metavar="CLIENT")
@click.pass_context
def clear_rates(ctx, client: str):
    """Return a client to automatic volume-based tiers."""
    service = ClientService(ctx.obj["db"])
    client_id = resolve_client_or_exit(ctx, service, client)
    try:
        service.clear_rates(client_id)
        click.echo(f"Client {client_id} now uses automatic rate tiers")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("cod-settings")
@click.argument("client", metavar="CLIENT")
@click.option("--allow/--disallow", "allowed", default=True, help="Allow COD shipments")
@click.option("--fee-percent", help="COD fee percent override")
@click.option("--min-fee", help="Minimum COD fee override")
@click.option("--max-fee", help="Maximum COD fee override")
@click.pass_context
def cod_settings(
    ctx,
    client: str,
    allowed: bool,
    fee_percent: str | None,
    min_fee: str | None,
    max_fee: str | None,
):
    """Set a client's COD permission and fee overrides.

    Omitted overrides fall back to the platform defaults.

    Examples:
        pathxpress client cod-settings "Acme Trading" --fee-percent 3.3 --min-fee 8 --max-fee 50
    """
    service = ClientService(ctx.obj["db"])
    client_id = resolve_client_or_exit(ctx, service, client)
    try:
        service.update_cod_settings(
            client_id,
            cod_allowed=allowed,
            fee_percent=amount_or_exit(ctx, fee_percent, "fee percent"),
            min_fee=amount_or_exit(ctx, min_fee, "minimum fee"),
            max_fee=amount_or_exit(ctx, max_fee, "maximum fee"),
        )
        click.echo(f"Updated COD settings for client {client_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("fod-settings")
@click.argument("client", metavar="CLIENT")
@click.option("--allow/--disallow", "allowed", default=True, help="Offer fit-on-delivery")
@click.option("--fod-fee", help="Fit-on-delivery fee override")
@click.option("--return-fee", help="Flat fee billed for return shipments")
@click.pass_context
def fod_settings(ctx, client: str, allowed: bool, fod_fee: str | None, return_fee: str | None):
    """Set a client's fit-on-delivery and return fees."""
    service = ClientService(ctx.obj["db"])
    client_id = resolve_client_or_exit(ctx, service, client)
    try:
        service.update_fod_settings(
            client_id,
            fod_allowed=allowed,
            fod_fee=amount_or_exit(ctx, fod_fee, "FOD fee"),
            return_fee=amount_or_exit(ctx, return_fee, "return fee"),
        )
        click.echo(f"Updated FOD settings for client {client_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register client commands with main CLI."""
    cli.add_command(client_group, name="client")
