"""Product and stock domain services."""

import logging
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel

from bizledger.config import DEFAULT_LOW_STOCK_THRESHOLD
from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import ProductCreate, ProductUpdate, StockCreate, StockUpdate
from bizledger.domain.entities import ZERO, Product, Stock
from bizledger.domain.errors import (
    DependencyError,
    NotFoundError,
    ValidationError,
    entity_not_found,
    insufficient_stock,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class ProductService(BaseService[Product]):
    """Service for managing the product catalogue."""

    resource = "product"
    create_schema = ProductCreate
    update_schema = ProductUpdate
    searchable_fields = ("name", "sku", "description")
    unique_fields = ("sku",)

    def __init__(self, db: Database):
        super().__init__(db)
        self.stocks = db.get_repository("stock")

    def delete(self, product_id: int) -> None:
        """Soft delete a product that has no stock on hand.

        Raises:
            DependencyError: If any live stock lot still holds units
        """
        self.require(product_id)
        on_hand = sum(lot.quantity for lot in self.stocks.list(product_id=product_id))
        if on_hand > 0:
            raise DependencyError(
                f"Cannot delete product {product_id}: {on_hand} units still in stock"
            )
        super().delete(product_id)


class StockService(BaseService[Stock]):
    """Service for stock lots and quantity movements."""

    resource = "stock"
    create_schema = StockCreate
    update_schema = StockUpdate
    searchable_fields = ("warehouse", "barcode", "product.name")
    unique_fields = ("barcode",)

    def __init__(self, db: Database):
        super().__init__(db)
        self.products = db.get_repository("product")
        self.sale_items = db.get_repository("sale_item")
        self.sales = db.get_repository("sale")

    def _require_product(self, product_id: int) -> Product:
        product = self.products.get(product_id)
        if product is None:
            raise NotFoundError(entity_not_found("Product", product_id))
        return product

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> Stock:
        """Create a stock lot for an existing product."""
        dto = validate(StockCreate, data)
        self._require_product(dto.product_id)
        return super().create(dto)

    def stock_for_product(self, product_id: int) -> list[Stock]:
        return self.repository.list(product_id=product_id)

    def available_quantity(self, product_id: int) -> int:
        return sum(lot.quantity for lot in self.stock_for_product(product_id))

    def take(self, stock_id: int, product_id: int, quantity: int) -> Stock:
        """Remove units from a lot for a sale.

        Raises:
            NotFoundError: If the lot or product does not exist
            ValidationError: If the lot belongs to another product or holds
                fewer units than requested
        """
        product = self._require_product(product_id)
        lot = self.require(stock_id)
        if lot.product_id != product_id:
            raise ValidationError(f"Stock {stock_id} does not belong to product {product.name}")
        if lot.quantity < quantity:
            raise ValidationError(insufficient_stock(product.name, lot.quantity, quantity))
        return self.repository.update(stock_id, {"quantity": lot.quantity - quantity})

    def give_back(self, stock_id: int, quantity: int, unit_cost: Optional[Decimal] = None) -> Stock:
        """Return units to a lot, e.g. when a sale is cancelled.

        A deleted lot is restored first so the units have somewhere to go.
        With ``unit_cost`` the units are averaged into the lot's cost the way
        ``receive`` does it.
        """
        lot = self.repository.get(stock_id, with_deleted=True)
        if lot is None:
            raise NotFoundError(entity_not_found(self.entity_name, stock_id))
        if lot.deleted_at is not None:
            self.repository.restore(stock_id)
            logger.info("Restored stock %s to take back %d units", stock_id, quantity)
        new_quantity = lot.quantity + quantity
        values: dict[str, Any] = {"quantity": new_quantity}
        if unit_cost is not None and new_quantity > 0:
            average = (lot.unit_cost * lot.quantity + unit_cost * quantity) / new_quantity
            values["unit_cost"] = average.quantize(CENT)
        return self.repository.update(stock_id, values)

    def delete(self, stock_id: int) -> None:
        """Soft delete an empty lot that no live sale was served from.

        Raises:
            DependencyError: If the lot still holds units or a live sale took
                units from it
        """
        lot = self.require(stock_id)
        if lot.quantity > 0:
            raise DependencyError(f"Cannot delete stock {stock_id}: {lot.quantity} units still in it")
        sale_ids = sorted({item.sale_id for item in self.sale_items.list(stock_id=stock_id)})
        live = [str(sale_id) for sale_id in sale_ids if self.sales.exists(sale_id)]
        if live:
            raise DependencyError(
                f"Cannot delete stock {stock_id}: sold from by sale {', '.join(live)}"
            )
        super().delete(stock_id)

    def receive(
        self, product_id: int, quantity: int, unit_cost: Decimal, warehouse: Optional[str] = None
    ) -> Stock:
        """Add purchased units to the product's lot for a warehouse.

        The lot is created if missing; otherwise its unit cost becomes the
        weighted average of what it held and what arrives.
        """
        self._require_product(product_id)
        lots = self.repository.list(product_id=product_id, warehouse=warehouse)
        if not lots:
            return self.repository.create(
                {
                    "product_id": product_id,
                    "quantity": quantity,
                    "unit_cost": unit_cost,
                    "warehouse": warehouse,
                }
            )

        lot = lots[0]
        new_quantity = lot.quantity + quantity
        if new_quantity > 0:
            average = (lot.unit_cost * lot.quantity + unit_cost * quantity) / new_quantity
        else:
            average = unit_cost
        return self.repository.update(
            lot.id, {"quantity": new_quantity, "unit_cost": average.quantize(CENT)}
        )

    def release(self, stock_id: int, quantity: int, unit_cost: Optional[Decimal] = None) -> Stock:
        """Remove units a purchase had added.

        When ``unit_cost`` is given, those units are also taken back out of
        the lot's weighted-average cost, undoing what ``receive`` mixed in.

        Raises:
            DependencyError: If some of those units were already sold
        """
        lot = self.require(stock_id)
        if lot.quantity < quantity:
            raise DependencyError(
                f"Cannot reverse {quantity} units of stock {stock_id}: only {lot.quantity} left"
            )
        remaining = lot.quantity - quantity
        values: dict[str, Any] = {"quantity": remaining}
        if unit_cost is not None and remaining > 0:
            cost = (lot.unit_cost * lot.quantity - unit_cost * quantity) / remaining
            values["unit_cost"] = max(cost, ZERO).quantize(CENT)
        return self.repository.update(stock_id, values)

    def low_stock(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[Stock]:
        """Live lots at or below the threshold."""
        return [lot for lot in self.repository.list(order_by=["quantity"]) if lot.quantity <= threshold]
