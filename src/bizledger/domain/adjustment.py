"""Stock adjustment domain service."""

import logging
from datetime import date
from typing import Any, Optional, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import StockAdjustmentCreate
from bizledger.domain.entities import AdjustmentType, RefType, StockAdjustment
from bizledger.domain.errors import ConflictError, NotFoundError, entity_not_found
from bizledger.domain.inventory import StockService
from bizledger.domain.journal import JournalService

logger = logging.getLogger(__name__)


class StockAdjustmentService(BaseService[StockAdjustment]):
    """Service for manual corrections of stock lots, e.g. after a count.

    The change is valued at the lot's unit cost at the time and posted
    between Inventory and Inventory Adjustments.
    """

    resource = "stock_adjustment"
    create_schema = StockAdjustmentCreate
    searchable_fields = ("reason", "notes")

    def __init__(self, db: Database):
        super().__init__(db)
        self.stock = StockService(db)
        self.journal = JournalService(db)

    def _apply(self, adjustment: StockAdjustment) -> None:
        if adjustment.adjustment_type == AdjustmentType.INCREASE:
            self.stock.give_back(adjustment.stock_id, adjustment.quantity)
        else:
            self.stock.take(adjustment.stock_id, adjustment.product_id, adjustment.quantity)

    def _undo(self, adjustment: StockAdjustment) -> None:
        if adjustment.adjustment_type == AdjustmentType.INCREASE:
            self.stock.release(adjustment.stock_id, adjustment.quantity)
        else:
            self.stock.give_back(adjustment.stock_id, adjustment.quantity)

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> StockAdjustment:
        """Adjust a lot and post the value of the change.

        Raises:
            ValidationError: On invalid input, or a decrease larger than what
                the lot holds
            NotFoundError: If the lot does not exist
        """
        dto = validate(StockAdjustmentCreate, data)
        with self.db.transaction():
            lot = self.stock.require(dto.stock_id)
            adjustment = self.repository.create(
                {**dto.model_dump(), "product_id": lot.product_id, "unit_cost": lot.unit_cost}
            )
            self._apply(adjustment)
            self.journal.record_adjustment(adjustment)
        logger.info(
            "Adjusted stock %s by %+d (%s)", adjustment.stock_id, adjustment.quantity_change, adjustment.reason
        )
        return adjustment

    def update(self, adjustment_id: int, data: Union[BaseModel, dict[str, Any]]) -> StockAdjustment:
        raise ConflictError(f"{self.entity_name} {adjustment_id} cannot be changed; delete it and record a new one")

    def delete(self, adjustment_id: int) -> None:
        """Soft delete an adjustment, reversing its stock change and voiding its posting.

        Raises:
            DependencyError: If units an increase added have since been used
        """
        with self.db.transaction():
            adjustment = self.require(adjustment_id)
            self._undo(adjustment)
            self.repository.delete(adjustment_id)
            self.journal.void_reference(RefType.ADJUSTMENT, adjustment_id)

    def restore(self, adjustment_id: int) -> StockAdjustment:
        with self.db.transaction():
            adjustment = self.repository.get(adjustment_id, with_deleted=True)
            if adjustment is None:
                raise NotFoundError(entity_not_found(self.entity_name, adjustment_id))
            if adjustment.deleted_at is None:
                return adjustment
            self._apply(adjustment)
            adjustment = self.repository.restore(adjustment_id)
            self.journal.restore_reference(RefType.ADJUSTMENT, adjustment_id)
        return adjustment

    def hard_delete(self, adjustment_id: int) -> None:
        with self.db.transaction():
            adjustment = self.repository.get(adjustment_id, with_deleted=True)
            if adjustment is None:
                raise NotFoundError(entity_not_found(self.entity_name, adjustment_id))
            if adjustment.deleted_at is None:
                self._undo(adjustment)
            self.journal.remove_postings(RefType.ADJUSTMENT, adjustment_id, with_deleted=True)
            self.repository.hard_delete(adjustment_id)

    def adjustments_for_stock(
        self, stock_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[StockAdjustment]:
        return self.repository.list(
            between=("adjustment_date", start_date, end_date), order_by=["adjustment_date"], stock_id=stock_id
        )
