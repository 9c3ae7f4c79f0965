"""Purchase commands."""

from datetime import date

import click

from bizledger.cli.commands.sale import parse_return_item
from bizledger.cli.date_filters import parse_date_option
from bizledger.cli.error_handling import domain_errors
from bizledger.cli.paging import echo_page_footer, page_kwargs, paging_options
from bizledger.domain.purchase import PurchaseService
from bizledger.domain.returns import PurchaseReturnService
from bizledger.utils.amount_parser import parse_amount


def parse_purchase_item(text: str) -> dict:
    """Parse ``PRODUCT_ID:QUANTITY:UNIT_COST[:WAREHOUSE]``.

    Raises:
        ValueError: If the item text is malformed
    """
    parts = text.split(":", 3)
    if len(parts) not in (3, 4):
        raise ValueError(f"Invalid item '{text}': expected PRODUCT_ID:QUANTITY:UNIT_COST[:WAREHOUSE]")
    try:
        item = {
            "product_id": int(parts[0]),
            "quantity": int(parts[1]),
            "unit_cost": parse_amount(parts[2]),
        }
    except ValueError as e:
        raise ValueError(f"Invalid item '{text}': {e}") from None
    if len(parts) == 4 and parts[3]:
        item["warehouse"] = parts[3]
    return item


@click.group()
def purchase_group():
    """Record and view purchases."""
    pass


@purchase_group.command("add")
@click.option("--item", "items", multiple=True, required=True, help="PRODUCT_ID:QUANTITY:UNIT_COST[:WAREHOUSE] (repeatable)")
@click.option("--supplier", "supplier_id", type=int, help="Supplier ID")
@click.option("--date", "purchase_date", help="Purchase date (defaults to today)")
@click.option("--discount", default="0", help="Discount amount")
@click.option("--tax", default="0", help="Tax amount")
@click.option("--shipping", default="0", help="Shipping charge")
@click.option("--due", default="0", help="Amount still owed to the supplier")
@click.option("--invoice", "invoice_number", help="Supplier invoice number")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def add_purchase(ctx, items, supplier_id, purchase_date, discount, tax, shipping, due, invoice_number, notes):
    """Record a purchase, add its units to stock and post it to the ledger.

    Examples:
        bizledger purchase add --item 1:50:4.20 --supplier 2
        bizledger purchase add --item 1:10:4.00:Main --due 40
    """
    purchase = PurchaseService(ctx.obj["db"]).create(
        {
            "purchase_date": parse_date_option(ctx, purchase_date, "date") or date.today(),
            "supplier_id": supplier_id,
            "items": [parse_purchase_item(text) for text in items],
            "discount": parse_amount(discount),
            "tax_amount": parse_amount(tax),
            "shipping_charge": parse_amount(shipping),
            "due_amount": parse_amount(due),
            "invoice_number": invoice_number,
            "notes": notes,
        }
    )
    click.echo(
        f"Recorded purchase {purchase.id}: total {purchase.total_amount:,.2f}, "
        f"due {purchase.due_amount:,.2f} ({purchase.status.value})"
    )


@purchase_group.command("list")
@paging_options
@click.pass_context
@domain_errors
def list_purchases(ctx, page, limit, query, sort_by, sort_order):
    """List purchases, newest first. --search matches invoice number and supplier name."""
    result = PurchaseService(ctx.obj["db"]).find_all(**page_kwargs(ctx, page, limit, query, sort_by, sort_order))
    if not result.data:
        click.echo("No purchases found.")
        return
    for p in result.data:
        click.echo(
            f"ID: {p.id:3d} | {p.purchase_date.isoformat()} | {p.invoice_number or '-':12s} | "
            f"Total: {p.total_amount:>10,.2f} | Due: {p.due_amount:>10,.2f} | {p.status.value}"
        )
    echo_page_footer(result)


@purchase_group.command("delete")
@click.argument("purchase_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
@domain_errors
def delete_purchase(ctx, purchase_id: int, yes: bool):
    """Delete a purchase, removing its units from stock and voiding its entries."""
    service = PurchaseService(ctx.obj["db"])
    service.require(purchase_id)
    if not yes and not click.confirm(f"Are you sure you want to delete purchase {purchase_id}?"):
        click.echo("Deletion cancelled.")
        return
    service.delete(purchase_id)
    click.echo(f"Deleted purchase {purchase_id}")


@purchase_group.command("return")
@click.argument("purchase_id", type=int)
@click.option("--item", "items", multiple=True, required=True, help="PRODUCT_ID:QUANTITY (repeatable)")
@click.option("--date", "return_date", help="Return date (defaults to today)")
@click.option("--refund", help="Amount the supplier pays back (defaults to the returned value)")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def return_purchase(ctx, purchase_id, items, return_date, refund, notes):
    """Send goods from a purchase back to the supplier.

    Whatever is not refunded is taken off what is owed to the supplier.

    Examples:
        bizledger purchase return 2 --item 1:5
        bizledger purchase return 2 --item 1:5 --refund 0
    """
    purchase_return = PurchaseReturnService(ctx.obj["db"]).create(
        {
            "purchase_id": purchase_id,
            "return_date": parse_date_option(ctx, return_date, "date") or date.today(),
            "items": [parse_return_item(text) for text in items],
            "refund_amount": parse_amount(refund) if refund else None,
            "notes": notes,
        }
    )
    click.echo(
        f"Recorded return {purchase_return.id} of purchase {purchase_id}: "
        f"value {purchase_return.total_amount:,.2f}, refunded {purchase_return.refund_amount:,.2f}"
    )


@purchase_group.command("returns")
@click.argument("purchase_id", type=int)
@click.pass_context
@domain_errors
def list_purchase_returns(ctx, purchase_id):
    """List the returns recorded against a purchase."""
    returns = PurchaseReturnService(ctx.obj["db"]).returns_for_purchase(purchase_id)
    if not returns:
        click.echo(f"No returns for purchase {purchase_id}.")
        return
    for r in returns:
        units = sum(item.quantity for item in r.items)
        click.echo(
            f"ID: {r.id:3d} | {r.return_date.isoformat()} | Units: {units:4d} | "
            f"Value: {r.total_amount:>10,.2f} | Refunded: {r.refund_amount:>10,.2f}"
        )


def register_commands(cli):
    """Register purchase commands with main CLI."""
    cli.add_command(purchase_group, name="purchase")
