"""Service configuration commands."""

import click
from pathxpress.domain.config import CONFIG_DESCRIPTIONS
from pathxpress.domain.errors import DomainError
from pathxpress.domain.settings import ConfigService
from pathxpress.cli.error_handling import handle_domain_error


@click.group()
def config_group():
    """View and change platform billing defaults."""
    pass


@config_group.command("list")
@click.pass_context
def list_config(ctx):
    """Show every setting with its effective value."""
    service = ConfigService(ctx.obj["db"])
    try:
        values = service.list_values()
    except DomainError as e:
        handle_domain_error(ctx, e)

    for key, value in values.items():
        click.echo(f"{key:24s} = {value or '(unset)':10s}  {CONFIG_DESCRIPTIONS.get(key, '')}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_config(ctx, key: str, value: str):
    """Change a setting.

    Examples:
        pathxpress config set COD_FEE_PERCENTAGE 3.5
        pathxpress config set COD_MAX_FEE ""
    """
    service = ConfigService(ctx.obj["db"])
    try:
        service.set_value(key, value)
        click.echo(f"Set {key.upper()} = {value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register config commands with main CLI."""
    cli.add_command(config_group, name="config")
