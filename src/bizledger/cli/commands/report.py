"""Report commands."""

from datetime import date

import click

from bizledger.cli.account_resolution import resolve_account_or_exit
from bizledger.cli.date_filters import parse_date_option, period_options, resolve_cli_date_range
from bizledger.cli.error_handling import domain_errors
from bizledger.domain.entities import AmountLine
from bizledger.domain.reporting import ReportingService
from bizledger.utils.date_parser import get_date_range


def _money(amount) -> str:
    return f"{amount:>14,.2f}"


def _period_label(start: date | None, end: date | None) -> str:
    if start is None and end is None:
        return "all time"
    return f"{start or 'beginning'} to {end or 'today'}"


def _echo_section(title: str, lines: tuple[AmountLine, ...], total) -> None:
    click.echo(f"\n{title}")
    for line in lines:
        click.echo(f"  {line.name:36s}{_money(line.amount)}")
    click.echo(f"  {'Total ' + title.lower():36s}{_money(total)}")


@click.group()
def report_group():
    """Financial and inventory reports."""
    pass


@report_group.command("trial-balance")
@click.option("--as-of", help="Include entries up to this date")
@click.pass_context
@domain_errors
def trial_balance(ctx, as_of):
    """Debit and credit totals per account."""
    report = ReportingService(ctx.obj["db"]).trial_balance(parse_date_option(ctx, as_of, "as-of date"))
    click.echo(f"\nTrial balance as of {report.as_of or date.today()}")
    click.echo(f"{'Account':30s} {'Type':10s} {'Debit':>14s} {'Credit':>14s}")
    click.echo("-" * 71)
    for line in report.lines:
        click.echo(
            f"{line.account.name:30.30s} {line.account.account_type.value:10s} "
            f"{_money(line.debit_total)} {_money(line.credit_total)}"
        )
    click.echo("-" * 71)
    click.echo(f"{'Total':41s} {_money(report.total_debits)} {_money(report.total_credits)}")
    if not report.is_balanced:
        click.echo("Warning: debits and credits do not balance", err=True)


@report_group.command("profit-loss")
@period_options
@click.pass_context
@domain_errors
def profit_loss(ctx, start_date, end_date, periods):
    """Revenue, costs and profit for a period (default: this month)."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, periods=periods, default_range=get_date_range("this-month")
    )
    report = ReportingService(ctx.obj["db"]).profit_and_loss(start, end)
    click.echo(f"\nProfit and loss, {_period_label(start, end)}")
    _echo_section("Revenue", report.revenue_lines, report.revenue)
    click.echo(f"\n{'Cost of goods sold':38s}{_money(report.cost_of_goods_sold)}")
    click.echo(f"{'Gross profit':38s}{_money(report.gross_profit)}")
    _echo_section("Operating expenses", report.operating_expense_lines, report.operating_expenses)
    click.echo(f"\n{'Net profit':38s}{_money(report.net_profit)}")
    click.echo(f"{'Profit margin':38s}{report.profit_margin:>13}%")


@report_group.command("balance-sheet")
@click.option("--as-of", help="Include entries up to this date")
@click.pass_context
@domain_errors
def balance_sheet(ctx, as_of):
    """Assets, liabilities and equity."""
    report = ReportingService(ctx.obj["db"]).balance_sheet(parse_date_option(ctx, as_of, "as-of date"))
    click.echo(f"\nBalance sheet as of {report.as_of or date.today()}")
    _echo_section("Assets", report.assets, report.total_assets)
    _echo_section("Liabilities", report.liabilities, report.total_liabilities)
    equity = report.equity + (AmountLine("Current earnings", report.current_earnings),)
    _echo_section("Equity", equity, report.total_equity)
    if not report.is_balanced:
        click.echo("Warning: assets do not equal liabilities plus equity", err=True)


@report_group.command("cash-flow")
@period_options
@click.pass_context
@domain_errors
def cash_flow(ctx, start_date, end_date, periods):
    """Cash movements for a period (default: this month)."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, periods=periods, default_range=get_date_range("this-month")
    )
    report = ReportingService(ctx.obj["db"]).cash_flow(start, end)
    click.echo(f"\nCash flow, {_period_label(start, end)}")
    rows = [
        ("Opening balance", report.opening_balance),
        ("Operating activities", report.operating_activities),
        ("Investing activities", report.investing_activities),
        ("Financing activities", report.financing_activities),
        ("Inflows", report.inflows),
        ("Outflows", report.outflows),
        ("Net cash flow", report.net_cash_flow),
        ("Closing balance", report.closing_balance),
    ]
    for label, amount in rows:
        click.echo(f"{label:38s}{_money(amount)}")


@report_group.command("ledger")
@click.argument("account", metavar="ACCOUNT")
@period_options
@click.pass_context
@domain_errors
def ledger(ctx, account, start_date, end_date, periods):
    """Entries of one account with a running balance."""
    service = ReportingService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service.accounts, account)
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, periods=periods)
    report = service.general_ledger(account_id, start, end)
    click.echo(f"\nLedger for {report.account.name}, {_period_label(start, end)}")
    click.echo(f"{'Opening balance':60s}{_money(report.opening_balance)}")
    for line in report.lines:
        click.echo(
            f"{line.entry.date.isoformat()} {(line.entry.description or line.entry.ref_type.value):20.20s} "
            f"{_money(line.debit)}{_money(line.credit)}{_money(line.running_balance)}"
        )
    click.echo(f"{'Closing balance':60s}{_money(report.closing_balance)}")


@report_group.command("inventory")
@click.pass_context
@domain_errors
def inventory(ctx):
    """Stock value and stock levels."""
    threshold = ctx.obj["settings"].low_stock_threshold
    report = ReportingService(ctx.obj["db"]).inventory_report(threshold)
    click.echo(f"\n{'Products':38s}{report.total_products:>14d}")
    click.echo(f"{'Stock value':38s}{_money(report.total_stock_value)}")
    click.echo(f"{f'Low stock (<= {threshold})':38s}{report.low_stock_items:>14d}")
    click.echo(f"{'Out of stock':38s}{report.out_of_stock_items:>14d}")


@report_group.command("sales")
@period_options
@click.pass_context
@domain_errors
def sales(ctx, start_date, end_date, periods):
    """Sales totals, top products and customers (default: this month)."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, periods=periods, default_range=get_date_range("this-month")
    )
    report = ReportingService(ctx.obj["db"]).sales_report(start, end)
    click.echo(f"\nSales, {_period_label(start, end)}")
    click.echo(f"{'Sales':38s}{report.total_sales:>14d}")
    click.echo(f"{'Revenue':38s}{_money(report.total_revenue)}")
    click.echo(f"{'Average order':38s}{_money(report.average_order_value)}")
    for title, ranked in (("Top products", report.top_products), ("Top customers", report.top_customers)):
        if ranked:
            click.echo(f"\n{title}")
            for item in ranked:
                click.echo(f"  {item.name:28s}{item.count:>6d}{_money(item.amount)}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
