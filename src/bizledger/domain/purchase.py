"""Purchase domain service."""

import logging
from datetime import date
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import PurchaseCreate, PurchaseItemCreate, PurchaseUpdate
from bizledger.domain.entities import ZERO, Purchase, RefType
from bizledger.domain.errors import DependencyError, NotFoundError, entity_not_found
from bizledger.domain.inventory import StockService
from bizledger.domain.journal import JournalService
from bizledger.domain.sale import order_total, payment_status

logger = logging.getLogger(__name__)


class PurchaseService(BaseService[Purchase]):
    """Service for purchases, the stock they bring in and their postings."""

    resource = "purchase"
    create_schema = PurchaseCreate
    update_schema = PurchaseUpdate
    searchable_fields = ("invoice_number", "notes", "supplier.name")

    def __init__(self, db: Database):
        super().__init__(db)
        self.items = db.get_repository("purchase_item")
        self.returns = db.get_repository("purchase_return")
        self.suppliers = db.get_repository("supplier")
        self.stock = StockService(db)
        self.journal = JournalService(db)

    def _check_supplier(self, supplier_id: Optional[int]) -> None:
        if supplier_id is not None and not self.suppliers.exists(supplier_id):
            raise NotFoundError(entity_not_found("Supplier", supplier_id))

    def _check_no_returns(self, purchase_id: int, action: str, with_deleted: bool = False) -> None:
        returns = self.returns.list(with_deleted=with_deleted, purchase_id=purchase_id)
        if returns:
            ids = ", ".join(str(r.id) for r in returns)
            raise DependencyError(f"Cannot {action} purchase {purchase_id}: it has returns ({ids})")

    def _receive_items(self, items: Sequence[PurchaseItemCreate]) -> list[dict[str, Any]]:
        rows = []
        for item in items:
            lot = self.stock.receive(item.product_id, item.quantity, item.unit_cost, item.warehouse)
            total_cost = item.total_cost
            if total_cost is None:
                total_cost = item.unit_cost * item.quantity
            rows.append(
                {
                    "product_id": item.product_id,
                    "stock_id": lot.id,
                    "quantity": item.quantity,
                    "unit_cost": item.unit_cost,
                    "total_cost": total_cost,
                }
            )
        return rows

    def _release_items(self, purchase: Purchase) -> None:
        for item in purchase.items:
            self.stock.release(item.stock_id, item.quantity, item.unit_cost)

    def _reload(self, purchase_id: int, with_deleted: bool = False) -> Purchase:
        self.db.expire_all()
        purchase = self.repository.get(purchase_id, with_deleted=with_deleted)
        if purchase is None:
            raise NotFoundError(entity_not_found(self.entity_name, purchase_id))
        return purchase

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> Purchase:
        """Record a purchase, add its units to stock and post it."""
        dto = validate(PurchaseCreate, data)
        with self.db.transaction():
            self._check_supplier(dto.supplier_id)
            item_rows = self._receive_items(dto.items)
            sub_total = sum((row["total_cost"] for row in item_rows), ZERO)
            total = order_total(sub_total, dto.discount, dto.tax_amount, dto.shipping_charge, dto.due_amount)

            purchase = self.repository.create(
                {
                    "purchase_date": dto.purchase_date,
                    "supplier_id": dto.supplier_id,
                    "sub_total": sub_total,
                    "discount": dto.discount,
                    "tax_amount": dto.tax_amount,
                    "shipping_charge": dto.shipping_charge,
                    "total_amount": total,
                    "due_amount": dto.due_amount,
                    "invoice_number": dto.invoice_number,
                    "status": dto.status or payment_status(total, dto.due_amount),
                    "notes": dto.notes,
                }
            )
            self.items.bulk_create([{**row, "purchase_id": purchase.id} for row in item_rows])
            purchase = self._reload(purchase.id)
            self.journal.record_purchase(purchase)

        logger.info(
            "Recorded purchase %s total=%s due=%s", purchase.id, purchase.total_amount, purchase.due_amount
        )
        return purchase

    def update(self, purchase_id: int, data: Union[BaseModel, dict[str, Any]]) -> Purchase:
        """Update a purchase and repost it.

        Supplying ``items`` replaces every line; the old lines' units leave
        stock first, which fails with DependencyError if they were sold.
        """
        dto = validate(PurchaseUpdate, data)
        values = dto.model_dump(exclude_unset=True, exclude={"items"})
        with self.db.transaction():
            purchase = self.require(purchase_id)
            self._check_supplier(values.get("supplier_id"))

            if dto.items is not None:
                self._check_no_returns(purchase_id, "change the items of")
                self._release_items(purchase)
                for item in purchase.items:
                    self.items.hard_delete(item.id)
                item_rows = self._receive_items(dto.items)
                self.items.bulk_create([{**row, "purchase_id": purchase_id} for row in item_rows])
                sub_total = sum((row["total_cost"] for row in item_rows), ZERO)
            else:
                sub_total = purchase.sub_total

            discount = values.get("discount", purchase.discount)
            tax_amount = values.get("tax_amount", purchase.tax_amount)
            shipping_charge = values.get("shipping_charge", purchase.shipping_charge)
            due_amount = values.get("due_amount", purchase.due_amount)
            total = order_total(sub_total, discount, tax_amount, shipping_charge, due_amount)

            values.update(sub_total=sub_total, total_amount=total)
            if "status" not in values:
                values["status"] = payment_status(total, due_amount)
            self.repository.update(purchase_id, values)

            purchase = self._reload(purchase_id)
            self.journal.record_purchase(purchase)
        logger.info("Updated purchase %s", purchase_id)
        return purchase

    def delete(self, purchase_id: int) -> None:
        """Soft delete a purchase, take its units out of stock and void its postings."""
        with self.db.transaction():
            purchase = self.require(purchase_id)
            self._check_no_returns(purchase_id, "delete")
            self._release_items(purchase)
            self.repository.delete(purchase_id)
            self.journal.void_reference(RefType.PURCHASE, purchase_id)

    def restore(self, purchase_id: int) -> Purchase:
        with self.db.transaction():
            purchase = self._reload(purchase_id, with_deleted=True)
            if purchase.deleted_at is None:
                return purchase
            for item in purchase.items:
                self.stock.give_back(item.stock_id, item.quantity, item.unit_cost)
            self.repository.restore(purchase_id)
            self.journal.restore_reference(RefType.PURCHASE, purchase_id)
            purchase = self._reload(purchase_id)
        return purchase

    def hard_delete(self, purchase_id: int) -> None:
        with self.db.transaction():
            purchase = self._reload(purchase_id, with_deleted=True)
            self._check_no_returns(purchase_id, "purge", with_deleted=True)
            if purchase.deleted_at is None:
                self._release_items(purchase)
            self.journal.remove_postings(RefType.PURCHASE, purchase_id, with_deleted=True)
            self.repository.hard_delete(purchase_id)

    def purchases_by_date_range(self, start_date: Optional[date], end_date: Optional[date]) -> list[Purchase]:
        return self.repository.list(
            between=("purchase_date", start_date, end_date), order_by=["purchase_date"]
        )
