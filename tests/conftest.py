"""Shared pytest fixtures for bizledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from bizledger.database.factories import create_sqlite_database
from bizledger.domain.account import AccountService
from bizledger.domain.adjustment import StockAdjustmentService
from bizledger.domain.cashbook import ExpenseService, IncomeService
from bizledger.domain.inventory import ProductService, StockService
from bizledger.domain.journal import JournalService
from bizledger.domain.lead import LeadService
from bizledger.domain.opportunity import OpportunityService
from bizledger.domain.parties import CustomerService, SupplierService
from bizledger.domain.purchase import PurchaseService
from bizledger.domain.reporting import ReportingService
from bizledger.domain.returns import PurchaseReturnService, SaleReturnService
from bizledger.domain.sale import SaleService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    return AccountService(temp_db)


@pytest.fixture
def journal_service(temp_db):
    return JournalService(temp_db)


@pytest.fixture
def customer_service(temp_db):
    return CustomerService(temp_db)


@pytest.fixture
def supplier_service(temp_db):
    return SupplierService(temp_db)


@pytest.fixture
def product_service(temp_db):
    return ProductService(temp_db)


@pytest.fixture
def stock_service(temp_db):
    return StockService(temp_db)


@pytest.fixture
def sale_service(temp_db):
    return SaleService(temp_db)


@pytest.fixture
def purchase_service(temp_db):
    return PurchaseService(temp_db)


@pytest.fixture
def sale_return_service(temp_db):
    return SaleReturnService(temp_db)


@pytest.fixture
def purchase_return_service(temp_db):
    return PurchaseReturnService(temp_db)


@pytest.fixture
def adjustment_service(temp_db):
    return StockAdjustmentService(temp_db)


@pytest.fixture
def expense_service(temp_db):
    return ExpenseService(temp_db)


@pytest.fixture
def income_service(temp_db):
    return IncomeService(temp_db)


@pytest.fixture
def lead_service(temp_db):
    return LeadService(temp_db)


@pytest.fixture
def opportunity_service(temp_db):
    return OpportunityService(temp_db)


@pytest.fixture
def reporting_service(temp_db):
    return ReportingService(temp_db)


@pytest.fixture
def chart(account_service):
    """Create the default chart of accounts and return accounts by name."""
    account_service.ensure_default_chart()
    return {acc.name: acc for acc in account_service.list_accounts()}


@pytest.fixture
def sample_customer(customer_service):
    return customer_service.create(
        {"name": "Acme Traders", "email": "buyer@acme.test", "phone": "555-0100"}
    )


@pytest.fixture
def sample_supplier(supplier_service):
    return supplier_service.create(
        {"name": "Wholesale Co", "email": "sales@wholesale.test", "contact_person": "Dana"}
    )


@pytest.fixture
def sample_product(product_service):
    return product_service.create(
        {
            "name": "Widget",
            "sku": "WID-1",
            "purchase_price": Decimal("4.00"),
            "sale_price": Decimal("10.00"),
        }
    )


@pytest.fixture
def sample_stock(stock_service, sample_product):
    """Opening stock lot: 20 widgets at 4.00 each."""
    return stock_service.create(
        {
            "product_id": sample_product.id,
            "quantity": 20,
            "unit_cost": Decimal("4.00"),
            "warehouse": "Main",
        }
    )


@pytest.fixture
def sale_data(sample_product, sample_stock):
    """Input for a sale of 3 widgets at 10.00, 5.00 still due."""
    return {
        "sale_date": date(2024, 3, 10),
        "items": [
            {
                "product_id": sample_product.id,
                "stock_id": sample_stock.id,
                "quantity": 3,
                "unit_price": Decimal("10.00"),
            }
        ],
        "due_amount": Decimal("5.00"),
        "invoice_number": "INV-1",
    }


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
