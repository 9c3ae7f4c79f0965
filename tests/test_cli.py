"""Tests for CLI commands."""

from decimal import Decimal

import pytest

from bizledger.cli.commands.purchase import parse_purchase_item
from bizledger.cli.commands.sale import parse_return_item, parse_sale_item
from bizledger.cli.main import cli


def run(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


@pytest.fixture
def shop(cli_runner, temp_db):
    """Chart of accounts, one product with 20 units at 4.00 and one customer."""
    for args in (
        ["init-accounts"],
        ["product", "add", "Widget", "--sku", "WID-1", "--sale-price", "10"],
        ["stock", "add", "1", "20", "--unit-cost", "4.00", "--warehouse", "Main"],
        ["customer", "add", "Acme Traders", "--email", "buyer@acme.test"],
    ):
        result = run(cli_runner, temp_db, *args)
        assert result.exit_code == 0, result.output


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Small business ledger" in result.output


def test_init_accounts(cli_runner, temp_db):
    """Test creating the default chart and running it again."""
    result = run(cli_runner, temp_db, "init-accounts")

    assert result.exit_code == 0
    assert "Created account 'Cash' (Asset)" in result.output
    assert "Created account 'Sales Revenue' (Revenue)" in result.output

    result = run(cli_runner, temp_db, "init-accounts")

    assert result.exit_code == 0
    assert "Default chart of accounts already present." in result.output


def test_account_create_and_list(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "account", "create", "Bank", "--type", "asset", "--description", "Main bank")

    assert result.exit_code == 0
    assert "Created account 'Bank' (ID: 1)" in result.output

    result = run(cli_runner, temp_db, "account", "list", "--type", "Asset")

    assert result.exit_code == 0
    assert "Bank" in result.output
    assert "USD" in result.output


def test_account_create_uses_configured_currency(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "--currency", "eur", "account", "create", "Bank", "--type", "Asset")
    assert result.exit_code == 0

    result = run(cli_runner, temp_db, "account", "list")
    assert "EUR" in result.output


def test_account_create_duplicate(cli_runner, temp_db):
    """Test creating duplicate account name fails."""
    run(cli_runner, temp_db, "account", "create", "Bank", "--type", "Asset")

    result = run(cli_runner, temp_db, "account", "create", "Bank", "--type", "Asset")

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "already exists" in result.output


def test_account_list_empty(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 0
    assert "No accounts found." in result.output


def test_account_delete_blocked(cli_runner, temp_db):
    """Test that an account with entries cannot be deleted."""
    run(cli_runner, temp_db, "init-accounts")
    run(cli_runner, temp_db, "journal", "add", "--debit", "Cash", "--credit", "Owner's Equity", "--amount", "500")

    result = run(cli_runner, temp_db, "account", "delete", "Cash", "--yes")

    assert result.exit_code == 1
    assert "Cannot delete account" in result.output


def test_account_delete_and_restore(cli_runner, temp_db):
    run(cli_runner, temp_db, "account", "create", "Spare", "--type", "Asset")

    result = run(cli_runner, temp_db, "account", "delete", "Spare", "--yes")
    assert result.exit_code == 0
    assert "Deleted account 'Spare'" in result.output

    result = run(cli_runner, temp_db, "account", "restore", "1")
    assert result.exit_code == 0
    assert "Restored account 'Spare'" in result.output


def test_account_delete_unknown(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "account", "delete", "Nope", "--yes")

    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_journal_add_and_list(cli_runner, temp_db):
    run(cli_runner, temp_db, "init-accounts")

    result = run(
        cli_runner,
        temp_db,
        "journal",
        "add",
        "--debit",
        "Cash",
        "--credit",
        "Owner's Equity",
        "--amount",
        "$1,500.00",
        "--date",
        "2024-01-02",
    )

    assert result.exit_code == 0
    assert "Posted journal entry 1: 1,500.00 on 2024-01-02" in result.output

    result = run(cli_runner, temp_db, "journal", "list", "--account", "Cash", "--start-date", "2024-01-01")

    assert result.exit_code == 0
    assert "Owner's Equity" in result.output
    assert "1,500.00" in result.output


def test_journal_add_same_account(cli_runner, temp_db):
    run(cli_runner, temp_db, "init-accounts")

    result = run(cli_runner, temp_db, "journal", "add", "--debit", "Cash", "--credit", "Cash", "--amount", "5")

    assert result.exit_code == 1
    assert "must differ" in result.output


def test_journal_add_invalid_date(cli_runner, temp_db):
    run(cli_runner, temp_db, "init-accounts")

    result = run(
        cli_runner, temp_db, "journal", "add", "--debit", "Cash", "--credit", "Other Income", "--amount", "5", "--date", "whenever"
    )

    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_sale_flow(cli_runner, temp_db, shop):
    """Test recording a sale and reading it back through reports."""
    result = run(
        cli_runner, temp_db, "sale", "add", "--item", "1:1:2:10", "--customer", "1", "--date", "2024-03-10", "--invoice", "INV-1"
    )

    assert result.exit_code == 0, result.output
    assert "Recorded sale 1: total 20.00, due 0.00 (Paid)" in result.output

    result = run(cli_runner, temp_db, "sale", "list", "--search", "acme")
    assert result.exit_code == 0
    assert "INV-1" in result.output
    assert "(1 total)" in result.output

    result = run(cli_runner, temp_db, "stock", "list")
    assert "Qty:     18" in result.output

    result = run(cli_runner, temp_db, "report", "profit-loss", "--start-date", "2024-03-01", "--end-date", "2024-03-31")
    assert result.exit_code == 0
    assert "Sales Revenue" in result.output
    assert "12.00" in result.output

    result = run(cli_runner, temp_db, "report", "trial-balance")
    assert result.exit_code == 0
    assert "do not balance" not in result.output

    result = run(cli_runner, temp_db, "report", "balance-sheet")
    assert result.exit_code == 0
    assert "Current earnings" in result.output
    assert "do not equal" not in result.output

    result = run(cli_runner, temp_db, "report", "ledger", "Cash")
    assert result.exit_code == 0
    assert "Closing balance" in result.output
    assert "20.00" in result.output


def test_sale_insufficient_stock(cli_runner, temp_db, shop):
    result = run(cli_runner, temp_db, "sale", "add", "--item", "1:1:25:10")

    assert result.exit_code == 1
    assert "Insufficient stock for product Widget: 20 available, 25 requested" in result.output


def test_sale_bad_item(cli_runner, temp_db, shop):
    result = run(cli_runner, temp_db, "sale", "add", "--item", "1:1:2")

    assert result.exit_code == 1
    assert "Invalid item" in result.output


def test_sale_delete(cli_runner, temp_db, shop):
    run(cli_runner, temp_db, "sale", "add", "--item", "1:1:2:10")

    result = run(cli_runner, temp_db, "sale", "delete", "1", "--yes")

    assert result.exit_code == 0
    assert "Deleted sale 1" in result.output
    assert "No sales found." in run(cli_runner, temp_db, "sale", "list").output


def test_purchase_add(cli_runner, temp_db, shop):
    run(cli_runner, temp_db, "supplier", "add", "Wholesale Co")

    result = run(cli_runner, temp_db, "purchase", "add", "--item", "1:10:7.00:Main", "--supplier", "1", "--due", "30")

    assert result.exit_code == 0, result.output
    assert "Recorded purchase 1: total 70.00, due 30.00 (Partial)" in result.output

    result = run(cli_runner, temp_db, "stock", "list")
    assert "Qty:     30" in result.output


def test_sale_return(cli_runner, temp_db, shop):
    run(cli_runner, temp_db, "sale", "add", "--item", "1:1:2:10", "--date", "2024-03-10")

    result = run(cli_runner, temp_db, "sale", "return", "1", "--item", "1:1", "--date", "2024-03-12")

    assert result.exit_code == 0, result.output
    assert "Recorded return 1 of sale 1: value 10.00, refunded 10.00" in result.output
    assert "Qty:     19" in run(cli_runner, temp_db, "stock", "list").output

    result = run(cli_runner, temp_db, "sale", "returns", "1")
    assert "2024-03-12" in result.output

    result = run(cli_runner, temp_db, "sale", "return", "1", "--item", "1:2")
    assert result.exit_code == 1
    assert "only 1 left to return on sale 1" in result.output

    result = run(cli_runner, temp_db, "sale", "delete", "1", "--yes")
    assert result.exit_code == 1
    assert "it has returns" in result.output


def test_purchase_return(cli_runner, temp_db, shop):
    run(cli_runner, temp_db, "purchase", "add", "--item", "1:10:7.00:Main", "--due", "30")

    result = run(cli_runner, temp_db, "purchase", "return", "1", "--item", "1:4", "--refund", "10")

    assert result.exit_code == 0, result.output
    assert "Recorded return 1 of purchase 1: value 28.00, refunded 10.00" in result.output
    assert "Qty:     26" in run(cli_runner, temp_db, "stock", "list").output
    assert "No returns for purchase 2." in run(cli_runner, temp_db, "purchase", "returns", "2").output


def test_stock_adjust(cli_runner, temp_db, shop):
    result = run(cli_runner, temp_db, "stock", "adjust", "1", "decrease", "2", "--reason", "Damaged")

    assert result.exit_code == 0, result.output
    assert "Adjusted stock lot 1 by -2 (value 8.00); 18 units now" in result.output

    result = run(cli_runner, temp_db, "stock", "adjust", "1", "decrease", "30")
    assert result.exit_code == 1
    assert "Insufficient stock" in result.output


def test_expense_add_and_list(cli_runner, temp_db):
    run(cli_runner, temp_db, "init-accounts")
    run(cli_runner, temp_db, "expense", "add", "100", "--date", "2024-03-01", "--type", "Rent")
    run(cli_runner, temp_db, "expense", "add", "25.50", "--date", "2024-03-02", "--type", "Utilities")

    result = run(cli_runner, temp_db, "expense", "list", "--start-date", "2024-03-01", "--end-date", "2024-03-31")

    assert result.exit_code == 0
    assert "Rent" in result.output
    assert "Utilities" in result.output
    assert "125.50" in result.output


def test_income_to_wrong_account_type(cli_runner, temp_db):
    run(cli_runner, temp_db, "init-accounts")

    result = run(cli_runner, temp_db, "income", "add", "10", "--account", "Cash")

    assert result.exit_code == 1
    assert "expected Revenue" in result.output


def test_lead_convert(cli_runner, temp_db):
    run(cli_runner, temp_db, "lead", "add", "Jo Buyer", "--email", "jo@buyer.test", "--source", "Website")

    result = run(cli_runner, temp_db, "lead", "convert", "1", "--type", "wholesaler")

    assert result.exit_code == 0
    assert "Converted lead 1 into customer 'Jo Buyer' (ID: 1)" in result.output

    result = run(cli_runner, temp_db, "lead", "list", "--status", "converted")
    assert "Jo Buyer" in result.output

    result = run(cli_runner, temp_db, "lead", "convert", "1")
    assert result.exit_code == 1
    assert "already converted" in result.output


def test_report_rejects_two_periods(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "report", "profit-loss", "--this-month", "--last-month")

    assert result.exit_code == 1
    assert "Only one period option" in result.output


def test_report_rejects_period_with_dates(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "report", "cash-flow", "--this-year", "--start-date", "2024-01-01")

    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_cash_flow_without_chart(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "report", "cash-flow")

    assert result.exit_code == 1
    assert "init-accounts" in result.output


def test_inventory_report(cli_runner, temp_db, shop):
    result = run(cli_runner, temp_db, "report", "inventory")

    assert result.exit_code == 0
    assert "80.00" in result.output


def test_bad_page_size_env(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("BIZLEDGER_PAGE_SIZE", "lots")

    result = run(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 1
    assert "BIZLEDGER_PAGE_SIZE must be an integer" in result.output


def test_parse_sale_item():
    assert parse_sale_item("3:4:2:9.99") == {
        "product_id": 3,
        "stock_id": 4,
        "quantity": 2,
        "unit_price": Decimal("9.99"),
    }
    with pytest.raises(ValueError, match="Invalid item"):
        parse_sale_item("3:x:2:9.99")


def test_parse_purchase_item():
    item = parse_purchase_item("3:12:4.50")

    assert item["quantity"] == 12
    assert "warehouse" not in item
    assert parse_purchase_item("3:12:4.50:Main")["warehouse"] == "Main"


def test_parse_return_item():
    assert parse_return_item("3:2") == {"product_id": 3, "quantity": 2}
    with pytest.raises(ValueError, match="Invalid item"):
        parse_return_item("3:2:1")


def test_opportunity_flow(cli_runner, temp_db):
    result = run(
        cli_runner, temp_db, "opportunity", "add", "Shop fit-out",
        "--value", "1000", "--probability", "50", "--close-date", "2024-05-10", "--source", "Website",
    )

    assert result.exit_code == 0, result.output
    assert "Created opportunity 'Shop fit-out' (ID: 1)" in result.output

    result = run(cli_runner, temp_db, "opportunity", "advance", "1")
    assert "Opportunity 1 is now Qualification" in result.output

    result = run(cli_runner, temp_db, "opportunity", "forecast", "--by", "quarter")
    assert result.exit_code == 0
    assert "2024-Q2" in result.output
    assert "1,000.00" in result.output
    assert "500.00" in result.output

    result = run(cli_runner, temp_db, "opportunity", "lost", "1", "--reason", "Price")
    assert "Opportunity 1 lost" in result.output

    result = run(cli_runner, temp_db, "opportunity", "advance", "1")
    assert result.exit_code == 1
    assert "already closed" in result.output

    result = run(cli_runner, temp_db, "opportunity", "list", "--stage", "closed lost")
    assert "Shop fit-out" in result.output


def test_opportunity_probability_out_of_range(cli_runner, temp_db):
    run(cli_runner, temp_db, "opportunity", "add", "Shop fit-out")

    result = run(cli_runner, temp_db, "opportunity", "probability", "1", "150")

    assert result.exit_code == 1
    assert "probability" in result.output
