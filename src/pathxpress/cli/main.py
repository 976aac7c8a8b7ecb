"""Main CLI entry point."""

import logging

import click
from pathxpress.database.factories import create_sqlite_database

# Import and register all commands at module level
from pathxpress.cli.commands import (
    client,
    tier,
    config,
    shipment,
    rate,
    cod,
    invoice,
    remittance,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PATHXPRESS_DB_PATH environment variable)",
    envvar="PATHXPRESS_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """PathXpress - Courier billing and COD settlement.

    Price shipments against rate tiers, track cash-on-delivery collections,
    bill clients and pay out collected COD funds.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
client.register_commands(cli)
tier.register_commands(cli)
config.register_commands(cli)
shipment.register_commands(cli)
rate.register_commands(cli)
cod.register_commands(cli)
invoice.register_commands(cli)
remittance.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
