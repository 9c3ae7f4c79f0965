"""CLI helpers for date options and period flags."""

import functools
from datetime import date

import click

from bizledger.utils.date_parser import get_date_range, parse_date

PERIOD_FLAGS = ["this-month", "this-quarter", "this-year", "last-month", "last-quarter", "last-year"]


def period_options(func):
    """Add --start-date/--end-date and one flag per period to a command.

    The command receives ``start_date``, ``end_date`` and ``periods``, the
    tuple of period names whose flags were given.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        periods = tuple(p for p in PERIOD_FLAGS if kwargs.pop(p.replace("-", "_"), False))
        return func(*args, periods=periods, **kwargs)

    for period in reversed(PERIOD_FLAGS):
        wrapper = click.option(f"--{period}", is_flag=True, help=f"Limit to {period.replace('-', ' ')}")(wrapper)
    wrapper = click.option("--end-date", help="End date (e.g. 2024-01-31, today)")(wrapper)
    wrapper = click.option("--start-date", help="Start date (e.g. 2024-01-01, 'last month')")(wrapper)
    return wrapper


def parse_date_option(ctx: click.Context, value: str | None, label: str) -> date | None:
    """Parse an optional date option or exit with a CLI error."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    periods: tuple[str, ...] = (),
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve a date range from one period flag or explicit dates."""
    if len(periods) > 1:
        click.echo(
            f"Error: Only one period option (--{', --'.join(PERIOD_FLAGS)}) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if periods and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --last-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if periods:
        return get_date_range(periods[0])

    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")
    if start is None and end is None and default_range is not None:
        return default_range
    return start, end
