"""Main CLI entry point."""

import dataclasses
import logging

import click

from bizledger.config import load_settings
from bizledger.database.factories import create_sqlite_database
from bizledger.logging_config import setup_logging

# Import and register all commands at module level
from bizledger.cli.commands import (
    account,
    journal,
    parties,
    inventory,
    sale,
    purchase,
    cashbook,
    lead,
    opportunity,
    report,
)

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BIZLEDGER_DB_PATH environment variable)",
    envvar="BIZLEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides BIZLEDGER_LOG_LEVEL environment variable)",
    envvar="BIZLEDGER_LOG_LEVEL",
)
@click.option(
    "--currency",
    help="Currency for new accounts (overrides BIZLEDGER_CURRENCY environment variable)",
    envvar="BIZLEDGER_CURRENCY",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None, currency: str | None):
    """Bizledger - Small business ledger.

    Record sales, purchases, expenses and incomes, keep stock and customers,
    and read the books through double-entry reports.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_settings()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    overrides = {}
    if db_path:
        overrides["database_path"] = db_path
    if log_level:
        overrides["log_level"] = log_level.upper()
    if currency:
        overrides["currency"] = currency.upper()
    settings = dataclasses.replace(settings, **overrides)

    try:
        setup_logging(settings.log_level)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    ctx.obj["settings"] = settings

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=settings.resolve_database_path())
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)
        logger.debug("Using database %s", db.database_url)


# Register all commands
account.register_commands(cli)
journal.register_commands(cli)
parties.register_commands(cli)
inventory.register_commands(cli)
sale.register_commands(cli)
purchase.register_commands(cli)
cashbook.register_commands(cli)
lead.register_commands(cli)
opportunity.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
