"""Tests for stock adjustments."""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.domain.entities import AdjustmentType, RefType
from bizledger.domain.errors import ConflictError, DependencyError, ValidationError


def adjust(service, lot, adjustment_type, quantity, reason=None):
    return service.create(
        {
            "stock_id": lot.id,
            "adjustment_type": adjustment_type,
            "quantity": quantity,
            "adjustment_date": date(2024, 4, 1),
            "reason": reason,
        }
    )


def test_decrease_writes_off_at_lot_cost(adjustment_service, stock_service, journal_service, sample_stock, chart):
    adjustment = adjust(adjustment_service, sample_stock, AdjustmentType.DECREASE, 3, "Damaged")

    assert adjustment.product_id == sample_stock.product_id
    assert adjustment.quantity_change == -3
    assert adjustment.value == Decimal("12.00")
    assert stock_service.require(sample_stock.id).quantity == 17

    [entry] = journal_service.entries_for_reference(RefType.ADJUSTMENT, adjustment.id)
    assert (entry.debit_account_id, entry.credit_account_id, entry.amount) == (
        chart["Inventory Adjustments"].id,
        chart["Inventory"].id,
        Decimal("12.00"),
    )


def test_increase_adds_units_at_lot_cost(adjustment_service, stock_service, journal_service, sample_stock, chart):
    adjustment = adjust(adjustment_service, sample_stock, AdjustmentType.INCREASE, 5, "Count")

    lot = stock_service.require(sample_stock.id)
    assert lot.quantity == 25
    assert lot.unit_cost == Decimal("4.00")

    [entry] = journal_service.entries_for_reference(RefType.ADJUSTMENT, adjustment.id)
    assert (entry.debit_account_id, entry.credit_account_id, entry.amount) == (
        chart["Inventory"].id,
        chart["Inventory Adjustments"].id,
        Decimal("20.00"),
    )


def test_write_off_shows_as_expense(adjustment_service, reporting_service, sample_stock, chart):
    adjust(adjustment_service, sample_stock, AdjustmentType.DECREASE, 3)

    report = reporting_service.profit_and_loss()

    assert {line.name: line.amount for line in report.operating_expense_lines} == {
        "Inventory Adjustments": Decimal("12.00")
    }
    assert reporting_service.balance_sheet().is_balanced


def test_decrease_beyond_lot(adjustment_service, stock_service, sample_stock, chart):
    with pytest.raises(ValidationError, match="Insufficient stock for product Widget: 20 available, 25 requested"):
        adjust(adjustment_service, sample_stock, AdjustmentType.DECREASE, 25)

    assert adjustment_service.count() == 0
    assert stock_service.require(sample_stock.id).quantity == 20


def test_quantity_must_be_positive(adjustment_service, sample_stock, chart):
    with pytest.raises(ValidationError, match="quantity"):
        adjust(adjustment_service, sample_stock, AdjustmentType.INCREASE, 0)


def test_zero_cost_lot_posts_nothing(adjustment_service, stock_service, journal_service, sample_product, chart):
    lot = stock_service.create({"product_id": sample_product.id, "quantity": 4, "unit_cost": Decimal("0")})

    adjustment = adjust(adjustment_service, lot, AdjustmentType.DECREASE, 1)

    assert stock_service.require(lot.id).quantity == 3
    assert journal_service.entries_for_reference(RefType.ADJUSTMENT, adjustment.id) == []


def test_delete_and_restore(adjustment_service, stock_service, journal_service, sample_stock, chart):
    adjustment = adjust(adjustment_service, sample_stock, AdjustmentType.DECREASE, 3)

    adjustment_service.delete(adjustment.id)

    assert stock_service.require(sample_stock.id).quantity == 20
    assert journal_service.entries_for_reference(RefType.ADJUSTMENT, adjustment.id) == []

    adjustment_service.restore(adjustment.id)

    assert stock_service.require(sample_stock.id).quantity == 17
    assert len(journal_service.entries_for_reference(RefType.ADJUSTMENT, adjustment.id)) == 1


def test_delete_increase_after_units_sold(adjustment_service, sale_service, sample_stock, sample_product, chart):
    adjustment = adjust(adjustment_service, sample_stock, AdjustmentType.INCREASE, 5)
    sale_service.create(
        {
            "sale_date": date(2024, 4, 2),
            "items": [
                {"product_id": sample_product.id, "stock_id": sample_stock.id, "quantity": 22, "unit_price": "10"}
            ],
        }
    )

    with pytest.raises(DependencyError, match="only 3 left"):
        adjustment_service.delete(adjustment.id)


def test_adjustment_cannot_be_changed(adjustment_service, sample_stock, chart):
    adjustment = adjust(adjustment_service, sample_stock, AdjustmentType.INCREASE, 1)

    with pytest.raises(ConflictError, match="cannot be changed"):
        adjustment_service.update(adjustment.id, {"quantity": 2})


def test_adjustments_for_stock(adjustment_service, sample_stock, chart):
    adjust(adjustment_service, sample_stock, AdjustmentType.INCREASE, 1)
    adjust(adjustment_service, sample_stock, AdjustmentType.DECREASE, 2)

    changes = [a.quantity_change for a in adjustment_service.adjustments_for_stock(sample_stock.id)]

    assert changes == [1, -2]
