"""Product and stock commands."""

from datetime import date

import click

from bizledger.cli.date_filters import parse_date_option
from bizledger.cli.error_handling import domain_errors
from bizledger.cli.paging import echo_page_footer, page_kwargs, paging_options
from bizledger.domain.adjustment import StockAdjustmentService
from bizledger.domain.entities import AdjustmentType, UnitType
from bizledger.domain.inventory import ProductService, StockService
from bizledger.utils.amount_parser import parse_amount


@click.group()
def product_group():
    """Manage products."""
    pass


@product_group.command("add")
@click.argument("name")
@click.option("--sku", help="Stock keeping unit (unique)")
@click.option("--purchase-price", default="0", show_default=True, help="Default purchase price")
@click.option("--sale-price", default="0", show_default=True, help="Default sale price")
@click.option(
    "--unit",
    "unit_type",
    type=click.Choice([t.value for t in UnitType], case_sensitive=False),
    default=UnitType.PIECE.value,
    show_default=True,
)
@click.pass_context
@domain_errors
def add_product(ctx, name, sku, purchase_price, sale_price, unit_type):
    """Add a product to the catalogue."""
    product = ProductService(ctx.obj["db"]).create(
        {
            "name": name,
            "sku": sku,
            "purchase_price": parse_amount(purchase_price),
            "sale_price": parse_amount(sale_price),
            "unit_type": UnitType(unit_type.capitalize()),
        }
    )
    click.echo(f"Created product '{product.name}' (ID: {product.id})")


@product_group.command("list")
@paging_options
@click.pass_context
@domain_errors
def list_products(ctx, page, limit, query, sort_by, sort_order):
    """List products with stock on hand."""
    db = ctx.obj["db"]
    result = ProductService(db).find_all(**page_kwargs(ctx, page, limit, query, sort_by, sort_order))
    if not result.data:
        click.echo("No products found.")
        return
    stock = StockService(db)
    for p in result.data:
        click.echo(
            f"ID: {p.id:3d} | {p.name:25s} | SKU: {p.sku or '-':10s} | "
            f"Price: {p.sale_price:>10,.2f} | On hand: {stock.available_quantity(p.id)}"
        )
    echo_page_footer(result)


@click.group()
def stock_group():
    """Manage stock lots."""
    pass


@stock_group.command("add")
@click.argument("product_id", type=int)
@click.argument("quantity", type=int)
@click.option("--unit-cost", required=True, help="Cost per unit")
@click.option("--warehouse", help="Warehouse name")
@click.option("--barcode", help="Barcode (unique)")
@click.pass_context
@domain_errors
def add_stock(ctx, product_id, quantity, unit_cost, warehouse, barcode):
    """Add an opening stock lot for a product.

    This does not post to the ledger; record a purchase for bought stock.
    """
    lot = StockService(ctx.obj["db"]).create(
        {
            "product_id": product_id,
            "quantity": quantity,
            "unit_cost": parse_amount(unit_cost),
            "warehouse": warehouse,
            "barcode": barcode,
        }
    )
    click.echo(f"Created stock lot {lot.id}: {lot.quantity} units at {lot.unit_cost:,.2f}")


@stock_group.command("list")
@click.option("--low", is_flag=True, help="Only lots at or below the low stock threshold")
@paging_options
@click.pass_context
@domain_errors
def list_stock(ctx, low, page, limit, query, sort_by, sort_order):
    """List stock lots."""
    service = StockService(ctx.obj["db"])
    if low:
        lots = service.low_stock(ctx.obj["settings"].low_stock_threshold)
        result = None
    else:
        result = service.find_all(**page_kwargs(ctx, page, limit, query, sort_by, sort_order))
        lots = result.data
    if not lots:
        click.echo("No stock found.")
        return
    for lot in lots:
        click.echo(
            f"ID: {lot.id:3d} | Product: {lot.product_id:3d} | Qty: {lot.quantity:6d} | "
            f"Cost: {lot.unit_cost:>10,.2f} | {lot.warehouse or '-'}"
        )
    if result is not None:
        echo_page_footer(result)


@stock_group.command("adjust")
@click.argument("stock_id", type=int)
@click.argument("direction", type=click.Choice([t.value for t in AdjustmentType], case_sensitive=False))
@click.argument("quantity", type=int)
@click.option("--reason", help="Why the stock changed, e.g. Damaged or Count")
@click.option("--date", "adjustment_date", help="Adjustment date (defaults to today)")
@click.option("--notes", help="Notes")
@click.pass_context
@domain_errors
def adjust_stock(ctx, stock_id, direction, quantity, reason, adjustment_date, notes):
    """Correct the units in a lot and post the value of the change.

    Examples:
        bizledger stock adjust 1 decrease 2 --reason Damaged
        bizledger stock adjust 1 increase 5 --reason Count
    """
    adjustment = StockAdjustmentService(ctx.obj["db"]).create(
        {
            "stock_id": stock_id,
            "adjustment_type": AdjustmentType(direction.capitalize()),
            "quantity": quantity,
            "adjustment_date": parse_date_option(ctx, adjustment_date, "date") or date.today(),
            "reason": reason,
            "notes": notes,
        }
    )
    lot = StockService(ctx.obj["db"]).require(stock_id)
    click.echo(
        f"Adjusted stock lot {stock_id} by {adjustment.quantity_change:+d} "
        f"(value {adjustment.value:,.2f}); {lot.quantity} units now"
    )


def register_commands(cli):
    """Register product and stock commands with main CLI."""
    cli.add_command(product_group, name="product")
    cli.add_command(stock_group, name="stock")
