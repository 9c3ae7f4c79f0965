"""CLI helpers for account resolution."""

from __future__ import annotations

import click

from bizledger.domain.account import AccountService


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account name or ID to an account ID.

    Raises:
        ValueError: If no live account matches
    """
    if isinstance(account, int) or str(account).isdigit():
        account_id = int(account)
        if account_service.find_by_id(account_id) is None:
            raise ValueError(f"Account ID {account_id} not found")
        return account_id

    found = account_service.get_account_by_name(account)
    if found is None:
        raise ValueError(f"Account '{account}' not found")
    return found.id


def resolve_account_or_exit(ctx: click.Context, account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
