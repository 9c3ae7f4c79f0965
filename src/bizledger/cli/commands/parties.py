"""Customer and supplier commands."""

import click

from bizledger.cli.error_handling import domain_errors
from bizledger.cli.paging import echo_page_footer, page_kwargs, paging_options
from bizledger.domain.entities import CustomerType, SupplierType
from bizledger.domain.parties import CustomerService, SupplierService


@click.group()
def customer_group():
    """Manage customers."""
    pass


@customer_group.command("add")
@click.argument("name")
@click.option("--email", help="Email address (unique)")
@click.option("--phone", help="Phone number (unique)")
@click.option("--company", "company_name", help="Company name")
@click.option("--address", help="Postal address")
@click.option(
    "--type",
    "customer_type",
    type=click.Choice([t.value for t in CustomerType], case_sensitive=False),
    default=CustomerType.RETAILER.value,
    show_default=True,
)
@click.pass_context
@domain_errors
def add_customer(ctx, name, email, phone, company_name, address, customer_type):
    """Add a customer."""
    customer = CustomerService(ctx.obj["db"]).create(
        {
            "name": name,
            "email": email,
            "phone": phone,
            "company_name": company_name,
            "address": address,
            "customer_type": CustomerType(customer_type.capitalize()),
        }
    )
    click.echo(f"Created customer '{customer.name}' (ID: {customer.id})")


@customer_group.command("list")
@paging_options
@click.pass_context
@domain_errors
def list_customers(ctx, page, limit, query, sort_by, sort_order):
    """List customers, newest first."""
    result = CustomerService(ctx.obj["db"]).find_all(**page_kwargs(ctx, page, limit, query, sort_by, sort_order))
    if not result.data:
        click.echo("No customers found.")
        return
    for c in result.data:
        click.echo(f"ID: {c.id:3d} | {c.name:25s} | {c.email or '-':25s} | {c.phone or '-'}")
    echo_page_footer(result)


@click.group()
def supplier_group():
    """Manage suppliers."""
    pass


@supplier_group.command("add")
@click.argument("name")
@click.option("--email", help="Email address (unique)")
@click.option("--phone", help="Phone number (unique)")
@click.option("--contact", "contact_person", help="Contact person")
@click.option("--website", help="Website")
@click.option(
    "--type",
    "supplier_type",
    type=click.Choice([t.value for t in SupplierType], case_sensitive=False),
    default=SupplierType.DISTRIBUTOR.value,
    show_default=True,
)
@click.pass_context
@domain_errors
def add_supplier(ctx, name, email, phone, contact_person, website, supplier_type):
    """Add a supplier."""
    supplier = SupplierService(ctx.obj["db"]).create(
        {
            "name": name,
            "email": email,
            "phone": phone,
            "contact_person": contact_person,
            "website": website,
            "supplier_type": SupplierType(supplier_type.capitalize()),
        }
    )
    click.echo(f"Created supplier '{supplier.name}' (ID: {supplier.id})")


@supplier_group.command("list")
@paging_options
@click.pass_context
@domain_errors
def list_suppliers(ctx, page, limit, query, sort_by, sort_order):
    """List suppliers, newest first."""
    result = SupplierService(ctx.obj["db"]).find_all(**page_kwargs(ctx, page, limit, query, sort_by, sort_order))
    if not result.data:
        click.echo("No suppliers found.")
        return
    for s in result.data:
        click.echo(f"ID: {s.id:3d} | {s.name:25s} | {s.contact_person or '-':20s} | {s.phone or '-'}")
    echo_page_footer(result)


def register_commands(cli):
    """Register customer and supplier commands with main CLI."""
    cli.add_command(customer_group, name="customer")
    cli.add_command(supplier_group, name="supplier")
