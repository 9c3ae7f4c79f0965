"""Shared paging options for list commands."""

import click

from bizledger.domain.entities import Page


def paging_options(func):
    """Add --page, --limit, --search, --sort-by and --order options.

    ``limit`` defaults to the configured page size when not given.
    """
    func = click.option(
        "--order",
        "sort_order",
        type=click.Choice(["asc", "desc"], case_sensitive=False),
        default="asc",
        show_default=True,
        help="Sort direction when --sort-by is given",
    )(func)
    func = click.option("--sort-by", help="Field to sort by (default: newest first)")(func)
    func = click.option("--search", "query", help="Case-insensitive text search")(func)
    func = click.option("--limit", type=int, help="Rows per page")(func)
    func = click.option("--page", type=int, default=1, show_default=True, help="Page number")(func)
    return func


def page_kwargs(ctx: click.Context, page: int, limit: int | None, query: str | None, sort_by: str | None, sort_order: str) -> dict:
    """Build BaseService.find_all keyword arguments from paging options."""
    return {
        "page": page,
        "limit": limit or ctx.obj["settings"].page_size,
        "query": query,
        "sort_by": sort_by,
        "sort_order": sort_order.upper(),
    }


def echo_page_footer(result: Page) -> None:
    click.echo(f"\nPage {result.page} of {max(result.total_pages, 1)} ({result.total} total)")
