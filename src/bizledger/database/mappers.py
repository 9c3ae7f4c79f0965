"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic, so the domain entities stay stable
when the database schema changes.
"""

from typing import Any, Callable

from bizledger.domain import entities as domain
from bizledger.database import models as orm


def account_to_domain(row: orm.Account) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=row.id,
        name=row.name,
        account_type=row.account_type,
        currency=row.currency,
        is_active=row.is_active,
        description=row.description,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


def journal_entry_to_domain(row: orm.JournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model to domain JournalEntry entity."""
    return domain.JournalEntry(
        id=row.id,
        date=row.date,
        ref_type=row.ref_type,
        ref_id=row.ref_id,
        debit_account_id=row.debit_account_id,
        credit_account_id=row.credit_account_id,
        amount=row.amount,
        description=row.description,
        transaction_reference=row.transaction_reference,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def customer_to_domain(row: orm.Customer) -> domain.Customer:
    return domain.Customer(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        address=row.address,
        company_name=row.company_name,
        customer_type=row.customer_type,
        tax_id=row.tax_id,
        status=row.status,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def supplier_to_domain(row: orm.Supplier) -> domain.Supplier:
    return domain.Supplier(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        address=row.address,
        website=row.website,
        contact_person=row.contact_person,
        supplier_type=row.supplier_type,
        tax_id=row.tax_id,
        status=row.status,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def product_to_domain(row: orm.Product) -> domain.Product:
    return domain.Product(
        id=row.id,
        name=row.name,
        sku=row.sku,
        description=row.description,
        purchase_price=row.purchase_price,
        sale_price=row.sale_price,
        unit_type=row.unit_type,
        status=row.status,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def stock_to_domain(row: orm.Stock) -> domain.Stock:
    return domain.Stock(
        id=row.id,
        product_id=row.product_id,
        quantity=row.quantity,
        unit_cost=row.unit_cost,
        warehouse=row.warehouse,
        barcode=row.barcode,
        status=row.status,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def sale_item_to_domain(row: orm.SaleItem) -> domain.SaleItem:
    return domain.SaleItem(
        id=row.id,
        sale_id=row.sale_id,
        product_id=row.product_id,
        stock_id=row.stock_id,
        quantity=row.quantity,
        unit_price=row.unit_price,
        total_price=row.total_price,
        unit_cost=row.unit_cost,
    )


def sale_to_domain(row: orm.Sale) -> domain.Sale:
    """Convert a Sale with its line items."""
    return domain.Sale(
        id=row.id,
        sale_date=row.sale_date,
        customer_id=row.customer_id,
        sub_total=row.sub_total,
        discount=row.discount,
        tax_amount=row.tax_amount,
        delivery_charge=row.delivery_charge,
        total_amount=row.total_amount,
        due_amount=row.due_amount,
        invoice_number=row.invoice_number,
        status=row.status,
        notes=row.notes,
        created_at=row.created_at,
        items=tuple(sale_item_to_domain(item) for item in row.items),
        deleted_at=row.deleted_at,
    )


def sale_return_item_to_domain(row: orm.SaleReturnItem) -> domain.SaleReturnItem:
    return domain.SaleReturnItem(
        id=row.id,
        sale_return_id=row.sale_return_id,
        sale_item_id=row.sale_item_id,
        product_id=row.product_id,
        stock_id=row.stock_id,
        quantity=row.quantity,
        unit_price=row.unit_price,
        total_price=row.total_price,
        unit_cost=row.unit_cost,
    )


def sale_return_to_domain(row: orm.SaleReturn) -> domain.SaleReturn:
    return domain.SaleReturn(
        id=row.id,
        return_date=row.return_date,
        sale_id=row.sale_id,
        total_amount=row.total_amount,
        refund_amount=row.refund_amount,
        notes=row.notes,
        created_at=row.created_at,
        items=tuple(sale_return_item_to_domain(item) for item in row.items),
        deleted_at=row.deleted_at,
    )


def purchase_item_to_domain(row: orm.PurchaseItem) -> domain.PurchaseItem:
    return domain.PurchaseItem(
        id=row.id,
        purchase_id=row.purchase_id,
        product_id=row.product_id,
        stock_id=row.stock_id,
        quantity=row.quantity,
        unit_cost=row.unit_cost,
        total_cost=row.total_cost,
    )


def purchase_to_domain(row: orm.Purchase) -> domain.Purchase:
    """Convert a Purchase with its line items."""
    return domain.Purchase(
        id=row.id,
        purchase_date=row.purchase_date,
        supplier_id=row.supplier_id,
        sub_total=row.sub_total,
        discount=row.discount,
        tax_amount=row.tax_amount,
        shipping_charge=row.shipping_charge,
        total_amount=row.total_amount,
        due_amount=row.due_amount,
        invoice_number=row.invoice_number,
        status=row.status,
        notes=row.notes,
        created_at=row.created_at,
        items=tuple(purchase_item_to_domain(item) for item in row.items),
        deleted_at=row.deleted_at,
    )


def purchase_return_item_to_domain(row: orm.PurchaseReturnItem) -> domain.PurchaseReturnItem:
    return domain.PurchaseReturnItem(
        id=row.id,
        purchase_return_id=row.purchase_return_id,
        purchase_item_id=row.purchase_item_id,
        product_id=row.product_id,
        stock_id=row.stock_id,
        quantity=row.quantity,
        unit_cost=row.unit_cost,
        total_cost=row.total_cost,
    )


def purchase_return_to_domain(row: orm.PurchaseReturn) -> domain.PurchaseReturn:
    return domain.PurchaseReturn(
        id=row.id,
        return_date=row.return_date,
        purchase_id=row.purchase_id,
        total_amount=row.total_amount,
        refund_amount=row.refund_amount,
        notes=row.notes,
        created_at=row.created_at,
        items=tuple(purchase_return_item_to_domain(item) for item in row.items),
        deleted_at=row.deleted_at,
    )


def stock_adjustment_to_domain(row: orm.StockAdjustment) -> domain.StockAdjustment:
    return domain.StockAdjustment(
        id=row.id,
        stock_id=row.stock_id,
        product_id=row.product_id,
        adjustment_type=row.adjustment_type,
        quantity=row.quantity,
        adjustment_date=row.adjustment_date,
        unit_cost=row.unit_cost,
        reason=row.reason,
        notes=row.notes,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def expense_to_domain(row: orm.Expense) -> domain.Expense:
    return domain.Expense(
        id=row.id,
        amount=row.amount,
        date=row.date,
        description=row.description,
        expense_type=row.expense_type,
        account_id=row.account_id,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def income_to_domain(row: orm.Income) -> domain.Income:
    return domain.Income(
        id=row.id,
        amount=row.amount,
        date=row.date,
        description=row.description,
        income_type=row.income_type,
        account_id=row.account_id,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def lead_to_domain(row: orm.Lead) -> domain.Lead:
    return domain.Lead(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        company=row.company,
        source=row.source,
        status=row.status,
        notes=row.notes,
        estimated_value=row.estimated_value,
        expected_close_date=row.expected_close_date,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


def opportunity_to_domain(row: orm.Opportunity) -> domain.Opportunity:
    return domain.Opportunity(
        id=row.id,
        name=row.name,
        description=row.description,
        customer_id=row.customer_id,
        lead_id=row.lead_id,
        stage=row.stage,
        value=row.value,
        probability=row.probability,
        expected_close_date=row.expected_close_date,
        actual_close_date=row.actual_close_date,
        source=row.source,
        notes=row.notes,
        created_at=row.created_at,
        deleted_at=row.deleted_at,
    )


# resource name -> (ORM model, entity display name, mapper)
RESOURCES: dict[str, tuple[type, str, Callable[[Any], Any]]] = {
    "account": (orm.Account, "Account", account_to_domain),
    "journal_entry": (orm.JournalEntry, "Journal entry", journal_entry_to_domain),
    "customer": (orm.Customer, "Customer", customer_to_domain),
    "supplier": (orm.Supplier, "Supplier", supplier_to_domain),
    "product": (orm.Product, "Product", product_to_domain),
    "stock": (orm.Stock, "Stock", stock_to_domain),
    "sale": (orm.Sale, "Sale", sale_to_domain),
    "sale_item": (orm.SaleItem, "Sale item", sale_item_to_domain),
    "sale_return": (orm.SaleReturn, "Sale return", sale_return_to_domain),
    "sale_return_item": (orm.SaleReturnItem, "Sale return item", sale_return_item_to_domain),
    "purchase": (orm.Purchase, "Purchase", purchase_to_domain),
    "purchase_item": (orm.PurchaseItem, "Purchase item", purchase_item_to_domain),
    "purchase_return": (orm.PurchaseReturn, "Purchase return", purchase_return_to_domain),
    "purchase_return_item": (orm.PurchaseReturnItem, "Purchase return item", purchase_return_item_to_domain),
    "stock_adjustment": (orm.StockAdjustment, "Stock adjustment", stock_adjustment_to_domain),
    "expense": (orm.Expense, "Expense", expense_to_domain),
    "income": (orm.Income, "Income", income_to_domain),
    "lead": (orm.Lead, "Lead", lead_to_domain),
    "opportunity": (orm.Opportunity, "Opportunity", opportunity_to_domain),
}
