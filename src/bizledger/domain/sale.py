"""Sale domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import SaleCreate, SaleItemCreate, SaleUpdate
from bizledger.domain.entities import ZERO, PaymentStatus, RefType, Sale
from bizledger.domain.errors import DependencyError, NotFoundError, ValidationError, entity_not_found
from bizledger.domain.inventory import StockService
from bizledger.domain.journal import JournalService

logger = logging.getLogger(__name__)

SALE_REFS = (RefType.SALE, RefType.SALE_COGS)


def payment_status(total_amount: Decimal, due_amount: Decimal) -> PaymentStatus:
    """Derive the settlement status from what is still owed."""
    if due_amount <= 0:
        return PaymentStatus.PAID
    if due_amount >= total_amount:
        return PaymentStatus.PENDING
    return PaymentStatus.PARTIAL


def order_total(
    sub_total: Decimal,
    discount: Decimal,
    tax_amount: Decimal,
    extra_charge: Decimal,
    due_amount: Decimal,
) -> Decimal:
    """Return the order total, checking discount and due amount against it.

    Raises:
        ValidationError: If the discount exceeds the order value or the due
            amount exceeds the total
    """
    total = sub_total - discount + tax_amount + extra_charge
    if total < 0:
        raise ValidationError(f"Discount {discount} exceeds the order value {sub_total + tax_amount + extra_charge}")
    if due_amount > total:
        raise ValidationError(f"Due amount {due_amount} exceeds the total amount {total}")
    return total


class SaleService(BaseService[Sale]):
    """Service for sales, their stock movements and their journal postings."""

    resource = "sale"
    create_schema = SaleCreate
    update_schema = SaleUpdate
    searchable_fields = ("invoice_number", "notes", "customer.name")

    def __init__(self, db: Database):
        super().__init__(db)
        self.items = db.get_repository("sale_item")
        self.returns = db.get_repository("sale_return")
        self.customers = db.get_repository("customer")
        self.stock = StockService(db)
        self.journal = JournalService(db)

    def _check_customer(self, customer_id: Optional[int]) -> None:
        if customer_id is not None and not self.customers.exists(customer_id):
            raise NotFoundError(entity_not_found("Customer", customer_id))

    def _check_no_returns(self, sale_id: int, action: str, with_deleted: bool = False) -> None:
        returns = self.returns.list(with_deleted=with_deleted, sale_id=sale_id)
        if returns:
            ids = ", ".join(str(r.id) for r in returns)
            raise DependencyError(f"Cannot {action} sale {sale_id}: it has returns ({ids})")

    def _take_items(self, items: Sequence[SaleItemCreate]) -> list[dict[str, Any]]:
        """Take stock for each line and build item rows (without sale_id)."""
        rows = []
        for item in items:
            lot = self.stock.take(item.stock_id, item.product_id, item.quantity)
            total_price = item.total_price
            if total_price is None:
                total_price = item.unit_price * item.quantity
            rows.append(
                {
                    "product_id": item.product_id,
                    "stock_id": item.stock_id,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": total_price,
                    "unit_cost": lot.unit_cost,
                }
            )
        return rows

    def _give_back_items(self, sale: Sale) -> None:
        for item in sale.items:
            self.stock.give_back(item.stock_id, item.quantity)

    def _reload(self, sale_id: int, with_deleted: bool = False) -> Sale:
        self.db.expire_all()
        sale = self.repository.get(sale_id, with_deleted=with_deleted)
        if sale is None:
            raise NotFoundError(entity_not_found(self.entity_name, sale_id))
        return sale

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> Sale:
        """Record a sale.

        Takes stock for every line, stores the sale with its items and posts
        revenue and cost of goods sold, all in one transaction.

        Raises:
            ValidationError: On invalid input or insufficient stock
            NotFoundError: If the customer, a product or a stock lot is missing
        """
        dto = validate(SaleCreate, data)
        with self.db.transaction():
            self._check_customer(dto.customer_id)
            item_rows = self._take_items(dto.items)
            sub_total = sum((row["total_price"] for row in item_rows), ZERO)
            total = order_total(sub_total, dto.discount, dto.tax_amount, dto.delivery_charge, dto.due_amount)

            sale = self.repository.create(
                {
                    "sale_date": dto.sale_date,
                    "customer_id": dto.customer_id,
                    "sub_total": sub_total,
                    "discount": dto.discount,
                    "tax_amount": dto.tax_amount,
                    "delivery_charge": dto.delivery_charge,
                    "total_amount": total,
                    "due_amount": dto.due_amount,
                    "invoice_number": dto.invoice_number,
                    "status": dto.status or payment_status(total, dto.due_amount),
                    "notes": dto.notes,
                }
            )
            self.items.bulk_create([{**row, "sale_id": sale.id} for row in item_rows])
            sale = self._reload(sale.id)
            self.journal.record_sale(sale)

        logger.info("Recorded sale %s total=%s due=%s", sale.id, sale.total_amount, sale.due_amount)
        return sale

    def update(self, sale_id: int, data: Union[BaseModel, dict[str, Any]]) -> Sale:
        """Update a sale and repost its journal entries.

        Supplying ``items`` replaces every line: stock of the old lines is
        returned before the new lines take theirs.
        """
        dto = validate(SaleUpdate, data)
        values = dto.model_dump(exclude_unset=True, exclude={"items"})
        with self.db.transaction():
            sale = self.require(sale_id)
            self._check_customer(values.get("customer_id"))

            if dto.items is not None:
                self._check_no_returns(sale_id, "change the items of")
                self._give_back_items(sale)
                for item in sale.items:
                    self.items.hard_delete(item.id)
                item_rows = self._take_items(dto.items)
                self.items.bulk_create([{**row, "sale_id": sale_id} for row in item_rows])
                sub_total = sum((row["total_price"] for row in item_rows), ZERO)
            else:
                sub_total = sale.sub_total

            discount = values.get("discount", sale.discount)
            tax_amount = values.get("tax_amount", sale.tax_amount)
            delivery_charge = values.get("delivery_charge", sale.delivery_charge)
            due_amount = values.get("due_amount", sale.due_amount)
            total = order_total(sub_total, discount, tax_amount, delivery_charge, due_amount)

            values.update(sub_total=sub_total, total_amount=total)
            if "status" not in values:
                values["status"] = payment_status(total, due_amount)
            self.repository.update(sale_id, values)

            sale = self._reload(sale_id)
            self.journal.record_sale(sale)
        logger.info("Updated sale %s", sale_id)
        return sale

    def delete(self, sale_id: int) -> None:
        """Soft delete a sale, return its stock and void its journal entries.

        Raises:
            DependencyError: If live returns were recorded against it
        """
        with self.db.transaction():
            sale = self.require(sale_id)
            self._check_no_returns(sale_id, "delete")
            self._give_back_items(sale)
            self.repository.delete(sale_id)
            self.journal.void_reference(SALE_REFS, sale_id)

    def restore(self, sale_id: int) -> Sale:
        """Bring back a deleted sale, taking its stock again.

        Raises:
            ValidationError: If the stock has since been used elsewhere
        """
        with self.db.transaction():
            sale = self._reload(sale_id, with_deleted=True)
            if sale.deleted_at is None:
                return sale
            for item in sale.items:
                self.stock.take(item.stock_id, item.product_id, item.quantity)
            self.repository.restore(sale_id)
            self.journal.restore_reference(SALE_REFS, sale_id)
            sale = self._reload(sale_id)
        return sale

    def hard_delete(self, sale_id: int) -> None:
        """Remove a sale, its items and its journal entries for good."""
        with self.db.transaction():
            sale = self._reload(sale_id, with_deleted=True)
            self._check_no_returns(sale_id, "purge", with_deleted=True)
            if sale.deleted_at is None:
                self._give_back_items(sale)
            self.journal.remove_postings(SALE_REFS, sale_id, with_deleted=True)
            self.repository.hard_delete(sale_id)

    def sales_by_date_range(self, start_date: Optional[date], end_date: Optional[date]) -> list[Sale]:
        return self.repository.list(between=("sale_date", start_date, end_date), order_by=["sale_date"])
