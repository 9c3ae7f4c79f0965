"""CRM lead commands."""

import click

from bizledger.cli.error_handling import domain_errors
from bizledger.cli.paging import echo_page_footer, page_kwargs, paging_options
from bizledger.domain.entities import CustomerType, LeadStatus
from bizledger.domain.lead import LeadService
from bizledger.utils.amount_parser import parse_amount


@click.group()
def lead_group():
    """Manage sales leads."""
    pass


@lead_group.command("add")
@click.argument("name")
@click.option("--email", help="Email address")
@click.option("--phone", help="Phone number")
@click.option("--company", help="Company")
@click.option("--source", help="Where the lead came from, e.g. Website")
@click.option("--value", "estimated_value", help="Estimated deal value")
@click.pass_context
@domain_errors
def add_lead(ctx, name, email, phone, company, source, estimated_value):
    """Add a lead."""
    lead = LeadService(ctx.obj["db"]).create(
        {
            "name": name,
            "email": email,
            "phone": phone,
            "company": company,
            "source": source,
            "estimated_value": parse_amount(estimated_value) if estimated_value else None,
        }
    )
    click.echo(f"Created lead '{lead.name}' (ID: {lead.id})")


@lead_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in LeadStatus], case_sensitive=False), help="Only this status")
@paging_options
@click.pass_context
@domain_errors
def list_leads(ctx, status, page, limit, query, sort_by, sort_order):
    """List leads, newest first."""
    filters = {"status": LeadStatus(status.capitalize())} if status else {}
    result = LeadService(ctx.obj["db"]).find_all(**page_kwargs(ctx, page, limit, query, sort_by, sort_order), **filters)
    if not result.data:
        click.echo("No leads found.")
        return
    for lead in result.data:
        click.echo(f"ID: {lead.id:3d} | {lead.name:25s} | {lead.source or '-':12s} | {lead.status.value}")
    echo_page_footer(result)


@lead_group.command("status")
@click.argument("lead_id", type=int)
@click.argument("status", type=click.Choice([s.value for s in LeadStatus], case_sensitive=False))
@click.pass_context
@domain_errors
def set_status(ctx, lead_id, status):
    """Change the status of a lead."""
    lead = LeadService(ctx.obj["db"]).update_status(lead_id, LeadStatus(status.capitalize()))
    click.echo(f"Lead {lead.id} is now {lead.status.value}")


@lead_group.command("convert")
@click.argument("lead_id", type=int)
@click.option(
    "--type",
    "customer_type",
    type=click.Choice([t.value for t in CustomerType], case_sensitive=False),
    default=CustomerType.RETAILER.value,
    show_default=True,
)
@click.option("--address", help="Customer address")
@click.pass_context
@domain_errors
def convert_lead(ctx, lead_id, customer_type, address):
    """Turn a lead into a customer."""
    lead, customer = LeadService(ctx.obj["db"]).convert_to_customer(
        lead_id, {"customer_type": CustomerType(customer_type.capitalize()), "address": address}
    )
    click.echo(f"Converted lead {lead.id} into customer '{customer.name}' (ID: {customer.id})")


def register_commands(cli):
    """Register lead commands with main CLI."""
    cli.add_command(lead_group, name="lead")
