"""CRM opportunity commands."""

import click

from bizledger.cli.date_filters import parse_date_option
from bizledger.cli.error_handling import domain_errors
from bizledger.cli.paging import echo_page_footer, page_kwargs, paging_options
from bizledger.domain.entities import OpportunityStage
from bizledger.domain.opportunity import FORECAST_PERIODS, OpportunityService
from bizledger.utils.amount_parser import parse_amount


def _stage(value: str) -> OpportunityStage:
    return next(stage for stage in OpportunityStage if stage.value.lower() == value.lower())


def _echo_opportunity(o) -> None:
    expected = o.expected_close_date.isoformat() if o.expected_close_date else "-"
    click.echo(
        f"ID: {o.id:3d} | {o.name:25s} | {o.stage.value:13s} | "
        f"Value: {o.value:>10,.2f} | {o.probability:3d}% | Close: {expected}"
    )


@click.group()
def opportunity_group():
    """Manage the sales pipeline."""
    pass


@opportunity_group.command("add")
@click.argument("name")
@click.option("--customer", "customer_id", type=int, help="Customer ID")
@click.option("--lead", "lead_id", type=int, help="Lead ID")
@click.option("--value", default="0", help="Deal value")
@click.option("--probability", type=int, default=0, show_default=True, help="Win probability in percent")
@click.option("--close-date", help="Expected close date")
@click.option("--source", help="Where the opportunity came from")
@click.option("--description", help="Description")
@click.pass_context
@domain_errors
def add_opportunity(ctx, name, customer_id, lead_id, value, probability, close_date, source, description):
    """Add an opportunity at the Prospecting stage."""
    opportunity = OpportunityService(ctx.obj["db"]).create(
        {
            "name": name,
            "customer_id": customer_id,
            "lead_id": lead_id,
            "value": parse_amount(value),
            "probability": probability,
            "expected_close_date": parse_date_option(ctx, close_date, "close date"),
            "source": source,
            "description": description,
        }
    )
    click.echo(f"Created opportunity '{opportunity.name}' (ID: {opportunity.id})")


@opportunity_group.command("list")
@click.option(
    "--stage", type=click.Choice([s.value for s in OpportunityStage], case_sensitive=False), help="Only this stage"
)
@paging_options
@click.pass_context
@domain_errors
def list_opportunities(ctx, stage, page, limit, query, sort_by, sort_order):
    """List opportunities, newest first."""
    filters = {"stage": _stage(stage)} if stage else {}
    result = OpportunityService(ctx.obj["db"]).find_all(
        **page_kwargs(ctx, page, limit, query, sort_by, sort_order), **filters
    )
    if not result.data:
        click.echo("No opportunities found.")
        return
    for o in result.data:
        _echo_opportunity(o)
    echo_page_footer(result)


@opportunity_group.command("advance")
@click.argument("opportunity_id", type=int)
@click.pass_context
@domain_errors
def advance(ctx, opportunity_id):
    """Move an opportunity to the next stage."""
    opportunity = OpportunityService(ctx.obj["db"]).move_to_next_stage(opportunity_id)
    click.echo(f"Opportunity {opportunity.id} is now {opportunity.stage.value}")


@opportunity_group.command("back")
@click.argument("opportunity_id", type=int)
@click.pass_context
@domain_errors
def back(ctx, opportunity_id):
    """Move an opportunity back one stage."""
    opportunity = OpportunityService(ctx.obj["db"]).move_to_previous_stage(opportunity_id)
    click.echo(f"Opportunity {opportunity.id} is now {opportunity.stage.value}")


@opportunity_group.command("probability")
@click.argument("opportunity_id", type=int)
@click.argument("probability", type=int)
@click.pass_context
@domain_errors
def set_probability(ctx, opportunity_id, probability):
    """Set the win probability (0-100)."""
    opportunity = OpportunityService(ctx.obj["db"]).update_probability(opportunity_id, probability)
    click.echo(f"Opportunity {opportunity.id} is now at {opportunity.probability}%")


@opportunity_group.command("won")
@click.argument("opportunity_id", type=int)
@click.option("--date", "close_date", help="Close date (defaults to today)")
@click.pass_context
@domain_errors
def won(ctx, opportunity_id, close_date):
    """Close an opportunity as won."""
    opportunity = OpportunityService(ctx.obj["db"]).mark_as_won(
        opportunity_id, parse_date_option(ctx, close_date, "date")
    )
    click.echo(f"Opportunity {opportunity.id} won ({opportunity.value:,.2f})")


@opportunity_group.command("lost")
@click.argument("opportunity_id", type=int)
@click.option("--reason", help="Why the deal was lost")
@click.option("--date", "close_date", help="Close date (defaults to today)")
@click.pass_context
@domain_errors
def lost(ctx, opportunity_id, reason, close_date):
    """Close an opportunity as lost."""
    opportunity = OpportunityService(ctx.obj["db"]).mark_as_lost(
        opportunity_id, reason, parse_date_option(ctx, close_date, "date")
    )
    click.echo(f"Opportunity {opportunity.id} lost")


@opportunity_group.command("forecast")
@click.option(
    "--by", "period", type=click.Choice(FORECAST_PERIODS), default="month", show_default=True, help="Grouping period"
)
@click.pass_context
@domain_errors
def forecast(ctx, period):
    """Show the open pipeline by expected close period."""
    periods = OpportunityService(ctx.obj["db"]).sales_forecast(period)
    if not periods:
        click.echo("No open opportunities with a close date.")
        return
    for p in periods:
        click.echo(
            f"{p.period:8s} | Deals: {p.count:3d} | Value: {p.forecasted_revenue:>12,.2f} | "
            f"Weighted: {p.weighted_revenue:>12,.2f} | Avg: {p.average_deal_size:>10,.2f}"
        )


@opportunity_group.command("closing")
@click.option("--days", type=int, default=30, show_default=True, help="Look this many days ahead")
@click.pass_context
@domain_errors
def closing(ctx, days):
    """List open opportunities expected to close soon."""
    opportunities = OpportunityService(ctx.obj["db"]).closing_soon(days)
    if not opportunities:
        click.echo(f"No opportunities closing in the next {days} days.")
        return
    for o in opportunities:
        _echo_opportunity(o)


@opportunity_group.command("stats")
@click.pass_context
@domain_errors
def stats(ctx):
    """Show pipeline totals, win rate and weighted forecast."""
    analytics = OpportunityService(ctx.obj["db"]).analytics()
    click.echo(f"Opportunities: {analytics.total_opportunities} (total value {analytics.total_value:,.2f})")
    click.echo(f"Win rate: {analytics.win_rate}% ({analytics.won_count} won, {analytics.lost_count} lost)")
    click.echo(f"Forecasted revenue: {analytics.forecasted_revenue:,.2f}")
    for stage, total in analytics.by_stage.items():
        click.echo(f"  {stage:13s} {total.count:3d}  {total.value:>12,.2f}")


def register_commands(cli):
    """Register opportunity commands with main CLI."""
    cli.add_command(opportunity_group, name="opportunity")
