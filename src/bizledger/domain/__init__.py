"""Domain layer for bizledger application."""

# Services are imported lazily: the database layer imports
# bizledger.domain.entities, and services import the database layer.
_SERVICES = {
    "AccountService": "bizledger.domain.account",
    "JournalService": "bizledger.domain.journal",
    "CustomerService": "bizledger.domain.parties",
    "SupplierService": "bizledger.domain.parties",
    "ProductService": "bizledger.domain.inventory",
    "StockService": "bizledger.domain.inventory",
    "SaleService": "bizledger.domain.sale",
    "PurchaseService": "bizledger.domain.purchase",
    "ExpenseService": "bizledger.domain.cashbook",
    "IncomeService": "bizledger.domain.cashbook",
    "LeadService": "bizledger.domain.lead",
    "ReportingService": "bizledger.domain.reporting",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
