"""Expense and income commands."""

from datetime import date

import click

from bizledger.cli.account_resolution import resolve_account_or_exit
from bizledger.cli.date_filters import parse_date_option, period_options, resolve_cli_date_range
from bizledger.cli.error_handling import domain_errors
from bizledger.domain.cashbook import ExpenseService, IncomeService
from bizledger.utils.amount_parser import parse_amount


def build_group(kind: str, service_cls, default_account: str) -> click.Group:
    """Build the add/list command group for expenses or incomes."""
    type_field = f"{kind}_type"

    @click.group(help=f"Record and view {kind}s.")
    def group():
        pass

    @group.command("add")
    @click.argument("amount")
    @click.option("--date", "record_date", help="Date (defaults to today)")
    @click.option("--description", help="Description")
    @click.option("--type", "record_type", help=f"Free-text {kind} type, e.g. Rent")
    @click.option("--account", help=f"Account to post to instead of {default_account} (name or ID)")
    @click.pass_context
    @domain_errors
    def add(ctx, amount, record_date, description, record_type, account):
        service = service_cls(ctx.obj["db"])
        account_id = resolve_account_or_exit(ctx, service.journal.accounts, account) if account else None
        record = service.create(
            {
                "amount": parse_amount(amount),
                "date": parse_date_option(ctx, record_date, "date") or date.today(),
                "description": description,
                type_field: record_type,
                "account_id": account_id,
            }
        )
        click.echo(f"Recorded {kind} {record.id}: {record.amount:,.2f} on {record.date}")

    add.help = f"Record an {kind} and post it against Cash."

    @group.command("list")
    @period_options
    @click.pass_context
    @domain_errors
    def list_records(ctx, start_date, end_date, periods):
        service = service_cls(ctx.obj["db"])
        start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, periods=periods)
        records = service.by_date_range(start, end)
        if not records:
            click.echo(f"No {kind}s found.")
            return
        for r in records:
            click.echo(
                f"ID: {r.id:3d} | {r.date.isoformat()} | {getattr(r, type_field) or '-':15s} | "
                f"{r.amount:>10,.2f} | {r.description or ''}"
            )
        click.echo("-" * 60)
        for name, total in service.breakdown_by_type(start, end).items():
            click.echo(f"{name:32s} {total:>12,.2f}")
        click.echo(f"{'Total':32s} {service.total_by_date_range(start, end):>12,.2f}")

    list_records.help = f"List {kind}s in date order with totals by type."
    return group


expense_group = build_group("expense", ExpenseService, "Operating Expenses")
income_group = build_group("income", IncomeService, "Other Income")


def register_commands(cli):
    """Register expense and income commands with main CLI."""
    cli.add_command(expense_group, name="expense")
    cli.add_command(income_group, name="income")
