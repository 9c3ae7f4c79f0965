"""Journal entry commands."""

from datetime import date

import click

from bizledger.cli.account_resolution import resolve_account_or_exit
from bizledger.cli.date_filters import parse_date_option, period_options, resolve_cli_date_range
from bizledger.cli.error_handling import domain_errors
from bizledger.domain.journal import JournalService
from bizledger.utils.amount_parser import parse_amount


@click.group()
def journal_group():
    """Record and view journal entries."""
    pass


@journal_group.command("add")
@click.option("--debit", required=True, help="Debit account (name or ID)")
@click.option("--credit", required=True, help="Credit account (name or ID)")
@click.option("--amount", required=True, help="Amount (e.g. 100.00)")
@click.option("--date", "entry_date", help="Entry date (defaults to today)")
@click.option("--description", help="Description")
@click.option("--reference", help="External transaction reference")
@click.pass_context
@domain_errors
def add_entry(ctx, debit: str, credit: str, amount: str, entry_date: str | None, description: str | None, reference: str | None):
    """Post a manual journal entry.

    Examples:
        bizledger journal add --debit Cash --credit "Owner's Equity" --amount 5000
        bizledger journal add --debit Rent --credit Cash --amount 800 --date "last month"
    """
    service = JournalService(ctx.obj["db"])
    entry = service.create_journal_entry(
        {
            "date": parse_date_option(ctx, entry_date, "date") or date.today(),
            "debit_account_id": resolve_account_or_exit(ctx, service.accounts, debit),
            "credit_account_id": resolve_account_or_exit(ctx, service.accounts, credit),
            "amount": parse_amount(amount),
            "description": description,
            "transaction_reference": reference,
        }
    )
    click.echo(f"Posted journal entry {entry.id}: {entry.amount:,.2f} on {entry.date}")


@journal_group.command("list")
@click.option("--account", help="Only entries touching this account (name or ID)")
@period_options
@click.pass_context
@domain_errors
def list_entries(ctx, account: str | None, start_date: str | None, end_date: str | None, periods: tuple[str, ...]):
    """List journal entries in date order."""
    service = JournalService(ctx.obj["db"])
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, periods=periods)
    account_id = resolve_account_or_exit(ctx, service.accounts, account) if account else None

    entries = service.list_entries(start, end, account_id=account_id)
    if not entries:
        click.echo("No journal entries found.")
        return

    names = {acc.id: acc.name for acc in service.accounts.repository.list(with_deleted=True)}
    click.echo(f"\n{'ID':>5}  {'Date':10}  {'Ref':10}  {'Debit':20}  {'Credit':20}  {'Amount':>12}")
    click.echo("-" * 85)
    for e in entries:
        click.echo(
            f"{e.id:>5}  {e.date.isoformat():10}  {e.ref_type.value:10}  "
            f"{names.get(e.debit_account_id, '?'):20.20}  {names.get(e.credit_account_id, '?'):20.20}  "
            f"{e.amount:>12,.2f}"
        )


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(journal_group, name="journal")
