"""Chart of accounts commands."""

import click

from bizledger.cli.account_resolution import resolve_account_or_exit
from bizledger.cli.error_handling import domain_errors
from bizledger.domain.account import AccountService
from bizledger.domain.entities import AccountType

ACCOUNT_TYPES = [t.value for t in AccountType]


@click.command("init-accounts")
@click.pass_context
@domain_errors
def init_accounts(ctx):
    """Create the default chart of accounts.

    Existing accounts are left alone, so running this twice is safe.
    """
    service = AccountService(ctx.obj["db"])
    created = service.ensure_default_chart(currency=ctx.obj["settings"].currency)
    if not created:
        click.echo("Default chart of accounts already present.")
        return
    for acc in created:
        click.echo(f"Created account '{acc.name}' ({acc.account_type.value})")


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    required=True,
    help="Account type",
)
@click.option("--currency", help="Currency code (defaults to the configured currency)")
@click.option("--description", help="Account description")
@click.pass_context
@domain_errors
def create_account(ctx, name: str, account_type: str, currency: str | None, description: str | None):
    """Create a new account.

    Examples:
        bizledger account create "Bank" --type Asset
        bizledger account create "Rent" --type Expense --description "Shop rent"
    """
    service = AccountService(ctx.obj["db"])
    acc = service.create(
        {
            "name": name,
            "account_type": AccountType(account_type.capitalize()),
            "currency": currency or ctx.obj["settings"].currency,
            "description": description,
        }
    )
    click.echo(f"Created account '{acc.name}' (ID: {acc.id})")


@account_group.command("list")
@click.option("--type", "account_type", type=click.Choice(ACCOUNT_TYPES, case_sensitive=False), help="Only this type")
@click.pass_context
def list_accounts(ctx, account_type: str | None):
    """List all accounts."""
    service = AccountService(ctx.obj["db"])
    accounts = service.list_accounts(
        account_type=AccountType(account_type.capitalize()) if account_type else None
    )
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(f"ID: {acc.id:3d} | {acc.name:25s} | {acc.account_type.value:9s} | {acc.currency}{status}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
@domain_errors
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID. Accounts with journal entries
    cannot be deleted.
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.require(account_id)

    if not yes and not click.confirm(f"Are you sure you want to delete account '{acc.name}' (ID: {account_id})?"):
        click.echo("Deletion cancelled.")
        return

    service.delete(account_id)
    click.echo(f"Deleted account '{acc.name}'")


@account_group.command("restore")
@click.argument("account_id", type=int)
@click.pass_context
@domain_errors
def restore_account(ctx, account_id: int) -> None:
    """Restore a deleted account by ID."""
    service = AccountService(ctx.obj["db"])
    acc = service.restore(account_id)
    click.echo(f"Restored account '{acc.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(init_accounts)
    cli.add_command(account_group, name="account")
