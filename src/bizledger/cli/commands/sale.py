"""Sale commands."""

from datetime import date

import click

from bizledger.cli.date_filters import parse_date_option
from bizledger.cli.error_handling import domain_errors
from bizledger.cli.paging import echo_page_footer, page_kwargs, paging_options
from bizledger.domain.returns import SaleReturnService
from bizledger.domain.sale import SaleService
from bizledger.utils.amount_parser import parse_amount


def parse_sale_item(text: str) -> dict:
    """Parse ``PRODUCT_ID:STOCK_ID:QUANTITY:UNIT_PRICE``.

    Raises:
        ValueError: If the item text is malformed
    """
    parts = text.split(":")
    if len(parts) != 4:
        raise ValueError(f"Invalid item '{text}': expected PRODUCT_ID:STOCK_ID:QUANTITY:UNIT_PRICE")
    product_id, stock_id, quantity, unit_price = parts
    try:
        return {
            "product_id": int(product_id),
            "stock_id": int(stock_id),
            "quantity": int(quantity),
            "unit_price": parse_amount(unit_price),
        }
    except ValueError as e:
        raise ValueError(f"Invalid item '{text}': {e}") from None


def parse_return_item(text: str) -> dict:
    """Parse ``PRODUCT_ID:QUANTITY``.

    Raises:
        ValueError: If the item text is malformed
    """
    parts = text.split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid item '{text}': expected PRODUCT_ID:QUANTITY")
    try:
        return {"product_id": int(parts[0]), "quantity": int(parts[1])}
    except ValueError as e:
        raise ValueError(f"Invalid item '{text}': {e}") from None


@click.group()
def sale_group():
    """Record and view sales."""
    pass


@sale_group.command("add")
@click.option("--item", "items", multiple=True, required=True, help="PRODUCT_ID:STOCK_ID:QUANTITY:UNIT_PRICE (repeatable)")
@click.option("--customer", "customer_id", type=int, help="Customer ID")
@click.option("--date", "sale_date", help="Sale date (defaults to today)")
@click.option("--discount", default="0", help="Discount amount")
@click.option("--tax", default="0", help="Tax amount")
@click.option("--delivery", default="0", help="Delivery charge")
@click.option("--due", default="0", help="Amount still owed by the customer")
@click.option("--invoice", "invoice_number", help="Invoice number")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def add_sale(ctx, items, customer_id, sale_date, discount, tax, delivery, due, invoice_number, notes):
    """Record a sale and post it to the ledger.

    Examples:
        bizledger sale add --item 1:1:2:25.00 --customer 3
        bizledger sale add --item 1:1:1:25 --item 2:4:3:9.99 --due 20 --invoice INV-7
    """
    sale = SaleService(ctx.obj["db"]).create(
        {
            "sale_date": parse_date_option(ctx, sale_date, "date") or date.today(),
            "customer_id": customer_id,
            "items": [parse_sale_item(text) for text in items],
            "discount": parse_amount(discount),
            "tax_amount": parse_amount(tax),
            "delivery_charge": parse_amount(delivery),
            "due_amount": parse_amount(due),
            "invoice_number": invoice_number,
            "notes": notes,
        }
    )
    click.echo(
        f"Recorded sale {sale.id}: total {sale.total_amount:,.2f}, "
        f"due {sale.due_amount:,.2f} ({sale.status.value})"
    )


@sale_group.command("list")
@paging_options
@click.pass_context
@domain_errors
def list_sales(ctx, page, limit, query, sort_by, sort_order):
    """List sales, newest first. --search matches invoice number and customer name."""
    result = SaleService(ctx.obj["db"]).find_all(**page_kwargs(ctx, page, limit, query, sort_by, sort_order))
    if not result.data:
        click.echo("No sales found.")
        return
    for s in result.data:
        click.echo(
            f"ID: {s.id:3d} | {s.sale_date.isoformat()} | {s.invoice_number or '-':12s} | "
            f"Total: {s.total_amount:>10,.2f} | Due: {s.due_amount:>10,.2f} | {s.status.value}"
        )
    echo_page_footer(result)


@sale_group.command("delete")
@click.argument("sale_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
@domain_errors
def delete_sale(ctx, sale_id: int, yes: bool):
    """Delete a sale, returning its stock and voiding its journal entries."""
    service = SaleService(ctx.obj["db"])
    service.require(sale_id)
    if not yes and not click.confirm(f"Are you sure you want to delete sale {sale_id}?"):
        click.echo("Deletion cancelled.")
        return
    service.delete(sale_id)
    click.echo(f"Deleted sale {sale_id}")


@sale_group.command("return")
@click.argument("sale_id", type=int)
@click.option("--item", "items", multiple=True, required=True, help="PRODUCT_ID:QUANTITY (repeatable)")
@click.option("--date", "return_date", help="Return date (defaults to today)")
@click.option("--refund", help="Amount paid back to the customer (defaults to the returned value)")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def return_sale(ctx, sale_id, items, return_date, refund, notes):
    """Record goods a customer brought back from a sale.

    Whatever is not refunded is credited against what the customer owes.

    Examples:
        bizledger sale return 4 --item 1:2
        bizledger sale return 4 --item 1:1 --refund 0
    """
    sale_return = SaleReturnService(ctx.obj["db"]).create(
        {
            "sale_id": sale_id,
            "return_date": parse_date_option(ctx, return_date, "date") or date.today(),
            "items": [parse_return_item(text) for text in items],
            "refund_amount": parse_amount(refund) if refund else None,
            "notes": notes,
        }
    )
    click.echo(
        f"Recorded return {sale_return.id} of sale {sale_id}: value {sale_return.total_amount:,.2f}, "
        f"refunded {sale_return.refund_amount:,.2f}"
    )


@sale_group.command("returns")
@click.argument("sale_id", type=int)
@click.pass_context
@domain_errors
def list_sale_returns(ctx, sale_id):
    """List the returns recorded against a sale."""
    returns = SaleReturnService(ctx.obj["db"]).returns_for_sale(sale_id)
    if not returns:
        click.echo(f"No returns for sale {sale_id}.")
        return
    for r in returns:
        units = sum(item.quantity for item in r.items)
        click.echo(
            f"ID: {r.id:3d} | {r.return_date.isoformat()} | Units: {units:4d} | "
            f"Value: {r.total_amount:>10,.2f} | Refunded: {r.refund_amount:>10,.2f}"
        )


def register_commands(cli):
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")
