"""CLI error handling helpers."""

import functools

import click

from bizledger.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def domain_errors(func):
    """Decorator for commands: report DomainError/ValueError as ``Error: ...`` and exit 1.

    The wrapped command must take the click context as its first argument.
    """

    @functools.wraps(func)
    def wrapper(ctx, *args, **kwargs):
        try:
            return func(ctx, *args, **kwargs)
        except ValueError as e:
            handle_domain_error(ctx, e)

    return wrapper
