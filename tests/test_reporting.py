"""Tests for ledger and business reports."""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.domain.entities import AccountType
from bizledger.domain.errors import ValidationError
from bizledger.domain.reporting import natural_balance

MARCH = (date(2024, 3, 1), date(2024, 3, 31))


@pytest.fixture
def books(
    chart,
    journal_service,
    purchase_service,
    sale_service,
    expense_service,
    income_service,
    sample_product,
    sample_supplier,
    sample_customer,
):
    """A small set of books.

    Owner invests 1000 in January. In March: buy 10 widgets at 7.00 for cash,
    sell 3 at 10.00 with 5.00 left due, pay a 12.00 expense and receive a
    4.00 income.
    """
    journal_service.create_journal_entry(
        {
            "date": date(2024, 1, 1),
            "debit_account_id": chart["Cash"].id,
            "credit_account_id": chart["Owner's Equity"].id,
            "amount": Decimal("1000.00"),
            "description": "Owner investment",
        }
    )
    purchase = purchase_service.create(
        {
            "purchase_date": date(2024, 3, 1),
            "supplier_id": sample_supplier.id,
            "items": [{"product_id": sample_product.id, "quantity": 10, "unit_cost": Decimal("7.00")}],
        }
    )
    sale = sale_service.create(
        {
            "sale_date": date(2024, 3, 10),
            "customer_id": sample_customer.id,
            "items": [
                {
                    "product_id": sample_product.id,
                    "stock_id": purchase.items[0].stock_id,
                    "quantity": 3,
                    "unit_price": Decimal("10.00"),
                }
            ],
            "due_amount": Decimal("5.00"),
        }
    )
    expense_service.create({"amount": "12.00", "date": date(2024, 3, 15), "expense_type": "Supplies"})
    income_service.create({"amount": "4.00", "date": date(2024, 3, 20), "income_type": "Interest"})
    return {"chart": chart, "purchase": purchase, "sale": sale}


@pytest.mark.parametrize(
    "account_type,expected",
    [
        (AccountType.ASSET, Decimal("70")),
        (AccountType.EXPENSE, Decimal("70")),
        (AccountType.LIABILITY, Decimal("-70")),
        (AccountType.REVENUE, Decimal("-70")),
    ],
)
def test_natural_balance(account_type, expected):
    assert natural_balance(account_type, Decimal("100"), Decimal("30")) == expected


def test_trial_balance_balances(reporting_service, books):
    report = reporting_service.trial_balance()

    assert report.is_balanced
    assert report.total_debits == Decimal("1137.00")
    assert report.total_credits == Decimal("1137.00")


def test_trial_balance_as_of(reporting_service, books):
    """Test that entries after the as-of date are left out."""
    report = reporting_service.trial_balance(as_of=date(2024, 2, 1))

    assert report.total_debits == Decimal("1000.00")
    assert report.is_balanced


def test_profit_and_loss(reporting_service, books):
    report = reporting_service.profit_and_loss(*MARCH)

    assert {line.name: line.amount for line in report.revenue_lines} == {
        "Other Income": Decimal("4.00"),
        "Sales Revenue": Decimal("30.00"),
    }
    assert report.revenue == Decimal("34.00")
    assert report.cost_of_goods_sold == Decimal("21.00")
    assert report.gross_profit == Decimal("13.00")
    assert [line.name for line in report.operating_expense_lines] == ["Operating Expenses"]
    assert report.operating_expenses == Decimal("12.00")
    assert report.net_profit == Decimal("1.00")
    assert report.profit_margin == Decimal("2.94")


def test_profit_and_loss_empty_period(reporting_service, books):
    report = reporting_service.profit_and_loss(date(2023, 1, 1), date(2023, 12, 31))

    assert report.revenue == 0
    assert report.net_profit == 0
    assert report.profit_margin == 0


def test_reports_reject_reversed_period(reporting_service, books):
    with pytest.raises(ValidationError, match="after end date"):
        reporting_service.profit_and_loss(date(2024, 3, 31), date(2024, 3, 1))


def test_balance_sheet_balances(reporting_service, books):
    report = reporting_service.balance_sheet()

    assets = {line.name: line.amount for line in report.assets}
    assert assets == {
        "Accounts Receivable": Decimal("5.00"),
        "Cash": Decimal("947.00"),
        "Inventory": Decimal("49.00"),
    }
    assert report.total_assets == Decimal("1001.00")
    assert report.total_liabilities == 0
    assert report.current_earnings == Decimal("1.00")
    assert report.total_equity == Decimal("1001.00")
    assert report.is_balanced


def test_balance_sheet_with_payable(reporting_service, purchase_service, sample_product, books):
    """Test that credit purchases show up as liabilities and keep the sheet balanced."""
    purchase_service.create(
        {
            "purchase_date": date(2024, 3, 25),
            "items": [{"product_id": sample_product.id, "quantity": 5, "unit_cost": Decimal("6.00")}],
            "due_amount": Decimal("30.00"),
        }
    )

    report = reporting_service.balance_sheet()

    assert [(line.name, line.amount) for line in report.liabilities] == [("Accounts Payable", Decimal("30.00"))]
    assert report.is_balanced


def test_cash_flow(reporting_service, books):
    """Test that the closing balance equals opening plus net flow."""
    report = reporting_service.cash_flow(*MARCH)

    assert report.opening_balance == Decimal("1000.00")
    assert report.inflows == Decimal("29.00")
    assert report.outflows == Decimal("82.00")
    assert report.net_cash_flow == Decimal("-53.00")
    assert report.operating_activities == Decimal("-53.00")
    assert report.financing_activities == 0
    assert report.closing_balance == Decimal("947.00")


def test_cash_flow_all_time_financing(reporting_service, books):
    report = reporting_service.cash_flow()

    assert report.opening_balance == 0
    assert report.financing_activities == Decimal("1000.00")
    assert report.closing_balance == reporting_service.account_balance(books["chart"]["Cash"].id)


def test_general_ledger_running_balance(reporting_service, books):
    cash = books["chart"]["Cash"]

    ledger = reporting_service.general_ledger(cash.id, *MARCH)

    assert ledger.opening_balance == Decimal("1000.00")
    assert [line.running_balance for line in ledger.lines] == [
        Decimal("930.00"),
        Decimal("955.00"),
        Decimal("943.00"),
        Decimal("947.00"),
    ]
    assert ledger.closing_balance == Decimal("947.00")


def test_account_balance(reporting_service, books):
    chart = books["chart"]

    assert reporting_service.account_balance(chart["Sales Revenue"].id) == Decimal("30.00")
    assert reporting_service.account_balance(chart["Cash"].id, as_of=date(2024, 2, 1)) == Decimal("1000.00")


def test_deleted_sale_leaves_reports(reporting_service, sale_service, books):
    """Test that voided postings drop out of every report."""
    sale_service.delete(books["sale"].id)

    report = reporting_service.profit_and_loss(*MARCH)

    assert report.cost_of_goods_sold == 0
    assert {line.name for line in report.revenue_lines} == {"Other Income"}
    assert reporting_service.trial_balance().is_balanced
    assert reporting_service.balance_sheet().is_balanced


def test_sales_report(reporting_service, books, sample_product, sample_customer):
    report = reporting_service.sales_report(*MARCH)

    assert report.total_sales == 1
    assert report.total_revenue == Decimal("30.00")
    assert report.average_order_value == Decimal("30.00")
    assert [(p.id, p.name, p.count, p.amount) for p in report.top_products] == [
        (sample_product.id, "Widget", 3, Decimal("30.00"))
    ]
    assert [c.name for c in report.top_customers] == ["Acme Traders"]
    assert [(d.date, d.count) for d in report.trend] == [(date(2024, 3, 10), 1)]


def test_purchase_report(reporting_service, books):
    report = reporting_service.purchase_report(*MARCH)

    assert report.total_purchases == 1
    assert report.total_amount == Decimal("70.00")
    assert [s.name for s in report.top_suppliers] == ["Wholesale Co"]


def test_inventory_report(reporting_service, product_service, sample_product, books):
    """Test stock value and low/out of stock counts per product."""
    product_service.create({"name": "Gadget"})

    report = reporting_service.inventory_report(low_stock_threshold=10)

    assert report.total_products == 2
    assert report.total_stock_value == Decimal("49.00")
    assert report.quantities[sample_product.id] == 7
    assert report.low_stock_items == 2
    assert report.out_of_stock_items == 1
