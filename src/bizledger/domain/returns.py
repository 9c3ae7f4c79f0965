"""Sale and purchase return domain services.

A return is recorded against one live order. Requested units are matched
against the order's lines of the same product, in line order, and may not
exceed what those lines hold minus what live returns already took back.
Returns are immutable once recorded: delete one and record it again.
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import PurchaseReturnCreate, ReturnItemCreate, SaleReturnCreate
from bizledger.domain.entities import ZERO, PurchaseReturn, RefType, SaleReturn
from bizledger.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    entity_not_found,
)
from bizledger.domain.inventory import CENT, StockService
from bizledger.domain.journal import JournalService

logger = logging.getLogger(__name__)


def allocate_return(
    order_label: str,
    lines: Sequence[Any],
    requested: Sequence[ReturnItemCreate],
    returned: Counter,
) -> list[tuple[Any, int]]:
    """Match requested units to order lines.

    Args:
        order_label: Order name used in error messages, e.g. "sale 4"
        lines: The order's lines
        requested: Product and quantity pairs being returned
        returned: Units per line id already returned; updated in place

    Returns:
        (line, quantity) pairs covering every requested unit

    Raises:
        ValidationError: If a product is not on the order or more units are
            requested than are left to return
    """
    allocations = []
    for item in requested:
        matching = [line for line in lines if line.product_id == item.product_id]
        if not matching:
            raise ValidationError(f"Product {item.product_id} is not part of {order_label}")
        available = sum(line.quantity - returned[line.id] for line in matching)
        if item.quantity > available:
            raise ValidationError(
                f"Cannot return {item.quantity} units of product {item.product_id}: "
                f"only {available} left to return on {order_label}"
            )
        remaining = item.quantity
        for line in matching:
            take = min(line.quantity - returned[line.id], remaining)
            if take <= 0:
                continue
            returned[line.id] += take
            remaining -= take
            allocations.append((line, take))
            if remaining == 0:
                break
    return allocations


def _share(total: Decimal, part: int, whole: int) -> Decimal:
    return (total * part / whole).quantize(CENT)


def _refund(refund_amount, total: Decimal) -> Decimal:
    if refund_amount is None:
        return total
    if refund_amount > total:
        raise ValidationError(f"Refund amount {refund_amount} exceeds the returned value {total}")
    return refund_amount


class SaleReturnService(BaseService[SaleReturn]):
    """Service for goods customers bring back."""

    resource = "sale_return"
    create_schema = SaleReturnCreate
    searchable_fields = ("notes",)

    def __init__(self, db: Database):
        super().__init__(db)
        self.items = db.get_repository("sale_return_item")
        self.sales = db.get_repository("sale")
        self.stock = StockService(db)
        self.journal = JournalService(db)

    def _reload(self, return_id: int, with_deleted: bool = False) -> SaleReturn:
        self.db.expire_all()
        sale_return = self.repository.get(return_id, with_deleted=with_deleted)
        if sale_return is None:
            raise NotFoundError(entity_not_found(self.entity_name, return_id))
        return sale_return

    def _returned(self, sale_id: int, exclude_id: Optional[int] = None) -> Counter:
        returned = Counter()
        for sale_return in self.repository.list(sale_id=sale_id):
            if sale_return.id == exclude_id:
                continue
            for item in sale_return.items:
                returned[item.sale_item_id] += item.quantity
        return returned

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> SaleReturn:
        """Record a sale return.

        Units go back to the lots they were sold from at the cost they left
        with, and the return is posted in one group.

        Raises:
            ValidationError: On invalid input, too many units or a refund
                above the returned value
            NotFoundError: If the sale does not exist
        """
        dto = validate(SaleReturnCreate, data)
        with self.db.transaction():
            sale = self.sales.get(dto.sale_id)
            if sale is None:
                raise NotFoundError(entity_not_found("Sale", dto.sale_id))
            allocations = allocate_return(f"sale {sale.id}", sale.items, dto.items, self._returned(sale.id))

            rows = [
                {
                    "sale_item_id": line.id,
                    "product_id": line.product_id,
                    "stock_id": line.stock_id,
                    "quantity": quantity,
                    "unit_price": line.unit_price,
                    "total_price": _share(line.total_price, quantity, line.quantity),
                    "unit_cost": line.unit_cost,
                }
                for line, quantity in allocations
            ]
            total = sum((row["total_price"] for row in rows), ZERO)
            sale_return = self.repository.create(
                {
                    "return_date": dto.return_date,
                    "sale_id": sale.id,
                    "total_amount": total,
                    "refund_amount": _refund(dto.refund_amount, total),
                    "notes": dto.notes,
                }
            )
            self.items.bulk_create([{**row, "sale_return_id": sale_return.id} for row in rows])
            for row in rows:
                self.stock.give_back(row["stock_id"], row["quantity"], row["unit_cost"])
            sale_return = self._reload(sale_return.id)
            self.journal.record_sale_return(sale_return)

        logger.info(
            "Recorded return %s of sale %s: %s, refunded %s",
            sale_return.id,
            sale_return.sale_id,
            sale_return.total_amount,
            sale_return.refund_amount,
        )
        return sale_return

    def update(self, return_id: int, data: Union[BaseModel, dict[str, Any]]) -> SaleReturn:
        raise ConflictError(f"{self.entity_name} {return_id} cannot be changed; delete it and record a new one")

    def delete(self, return_id: int) -> None:
        """Soft delete a return, take its units out of stock again and void its postings.

        Raises:
            DependencyError: If the returned units were sold again
        """
        with self.db.transaction():
            sale_return = self.require(return_id)
            for item in sale_return.items:
                self.stock.release(item.stock_id, item.quantity, item.unit_cost)
            self.repository.delete(return_id)
            self.journal.void_reference(RefType.SALE_RETURN, return_id)

    def restore(self, return_id: int) -> SaleReturn:
        """Bring back a deleted return if its sale still has those units to give back.

        Raises:
            DependencyError: If the sale is gone or no longer holds the lines
                the return was matched against
        """
        with self.db.transaction():
            sale_return = self._reload(return_id, with_deleted=True)
            if sale_return.deleted_at is None:
                return sale_return
            sale = self.sales.get(sale_return.sale_id)
            if sale is None:
                raise DependencyError(
                    f"Cannot restore sale return {return_id}: sale {sale_return.sale_id} is deleted"
                )
            lines = {line.id: line for line in sale.items}
            returned = self._returned(sale.id, exclude_id=return_id)
            for item in sale_return.items:
                line = lines.get(item.sale_item_id)
                if line is None or returned[line.id] + item.quantity > line.quantity:
                    raise DependencyError(
                        f"Cannot restore sale return {return_id}: sale {sale.id} no longer has those units to return"
                    )
                returned[line.id] += item.quantity
            for item in sale_return.items:
                self.stock.give_back(item.stock_id, item.quantity, item.unit_cost)
            self.repository.restore(return_id)
            self.journal.restore_reference(RefType.SALE_RETURN, return_id)
            sale_return = self._reload(return_id)
        return sale_return

    def hard_delete(self, return_id: int) -> None:
        with self.db.transaction():
            sale_return = self._reload(return_id, with_deleted=True)
            if sale_return.deleted_at is None:
                for item in sale_return.items:
                    self.stock.release(item.stock_id, item.quantity, item.unit_cost)
            self.journal.remove_postings(RefType.SALE_RETURN, return_id, with_deleted=True)
            self.repository.hard_delete(return_id)

    def returns_for_sale(self, sale_id: int) -> list[SaleReturn]:
        return self.repository.list(sale_id=sale_id, order_by=["return_date"])


class PurchaseReturnService(BaseService[PurchaseReturn]):
    """Service for goods sent back to suppliers."""

    resource = "purchase_return"
    create_schema = PurchaseReturnCreate
    searchable_fields = ("notes",)

    def __init__(self, db: Database):
        super().__init__(db)
        self.items = db.get_repository("purchase_return_item")
        self.purchases = db.get_repository("purchase")
        self.stock = StockService(db)
        self.journal = JournalService(db)

    def _reload(self, return_id: int, with_deleted: bool = False) -> PurchaseReturn:
        self.db.expire_all()
        purchase_return = self.repository.get(return_id, with_deleted=with_deleted)
        if purchase_return is None:
            raise NotFoundError(entity_not_found(self.entity_name, return_id))
        return purchase_return

    def _returned(self, purchase_id: int, exclude_id: Optional[int] = None) -> Counter:
        returned = Counter()
        for purchase_return in self.repository.list(purchase_id=purchase_id):
            if purchase_return.id == exclude_id:
                continue
            for item in purchase_return.items:
                returned[item.purchase_item_id] += item.quantity
        return returned

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> PurchaseReturn:
        """Record a purchase return.

        The units leave the lots the purchase filled, taking their purchase
        cost out of the lot's average, and the return is posted.

        Raises:
            ValidationError: On invalid input, too many units or a refund
                above the returned value
            NotFoundError: If the purchase does not exist
            DependencyError: If the units have already been sold
        """
        dto = validate(PurchaseReturnCreate, data)
        with self.db.transaction():
            purchase = self.purchases.get(dto.purchase_id)
            if purchase is None:
                raise NotFoundError(entity_not_found("Purchase", dto.purchase_id))
            allocations = allocate_return(
                f"purchase {purchase.id}", purchase.items, dto.items, self._returned(purchase.id)
            )

            rows = [
                {
                    "purchase_item_id": line.id,
                    "product_id": line.product_id,
                    "stock_id": line.stock_id,
                    "quantity": quantity,
                    "unit_cost": line.unit_cost,
                    "total_cost": _share(line.total_cost, quantity, line.quantity),
                }
                for line, quantity in allocations
            ]
            total = sum((row["total_cost"] for row in rows), ZERO)
            refund = _refund(dto.refund_amount, total)
            for row in rows:
                self.stock.release(row["stock_id"], row["quantity"], row["unit_cost"])
            purchase_return = self.repository.create(
                {
                    "return_date": dto.return_date,
                    "purchase_id": purchase.id,
                    "total_amount": total,
                    "refund_amount": refund,
                    "notes": dto.notes,
                }
            )
            self.items.bulk_create([{**row, "purchase_return_id": purchase_return.id} for row in rows])
            purchase_return = self._reload(purchase_return.id)
            self.journal.record_purchase_return(purchase_return)

        logger.info(
            "Recorded return %s of purchase %s: %s, refunded %s",
            purchase_return.id,
            purchase_return.purchase_id,
            purchase_return.total_amount,
            purchase_return.refund_amount,
        )
        return purchase_return

    def update(self, return_id: int, data: Union[BaseModel, dict[str, Any]]) -> PurchaseReturn:
        raise ConflictError(f"{self.entity_name} {return_id} cannot be changed; delete it and record a new one")

    def delete(self, return_id: int) -> None:
        """Soft delete a return, put its units back into stock and void its postings."""
        with self.db.transaction():
            purchase_return = self.require(return_id)
            for item in purchase_return.items:
                self.stock.give_back(item.stock_id, item.quantity, item.unit_cost)
            self.repository.delete(return_id)
            self.journal.void_reference(RefType.PURCHASE_RETURN, return_id)

    def restore(self, return_id: int) -> PurchaseReturn:
        """Bring back a deleted return, sending its units out of stock again.

        Raises:
            DependencyError: If the purchase is gone, no longer holds those
                lines, or the units were sold in the meantime
        """
        with self.db.transaction():
            purchase_return = self._reload(return_id, with_deleted=True)
            if purchase_return.deleted_at is None:
                return purchase_return
            purchase = self.purchases.get(purchase_return.purchase_id)
            if purchase is None:
                raise DependencyError(
                    f"Cannot restore purchase return {return_id}: purchase {purchase_return.purchase_id} is deleted"
                )
            lines = {line.id: line for line in purchase.items}
            returned = self._returned(purchase.id, exclude_id=return_id)
            for item in purchase_return.items:
                line = lines.get(item.purchase_item_id)
                if line is None or returned[line.id] + item.quantity > line.quantity:
                    raise DependencyError(
                        f"Cannot restore purchase return {return_id}: "
                        f"purchase {purchase.id} no longer has those units to return"
                    )
                returned[line.id] += item.quantity
            for item in purchase_return.items:
                self.stock.release(item.stock_id, item.quantity, item.unit_cost)
            self.repository.restore(return_id)
            self.journal.restore_reference(RefType.PURCHASE_RETURN, return_id)
            purchase_return = self._reload(return_id)
        return purchase_return

    def hard_delete(self, return_id: int) -> None:
        with self.db.transaction():
            purchase_return = self._reload(return_id, with_deleted=True)
            if purchase_return.deleted_at is None:
                for item in purchase_return.items:
                    self.stock.give_back(item.stock_id, item.quantity, item.unit_cost)
            self.journal.remove_postings(RefType.PURCHASE_RETURN, return_id, with_deleted=True)
            self.repository.hard_delete(return_id)

    def returns_for_purchase(self, purchase_id: int) -> list[PurchaseReturn]:
        return self.repository.list(purchase_id=purchase_id, order_by=["return_date"])
