"""Financial and operational report builders.

Every report does one filtered fetch and folds the rows in memory. Account
balances follow the normal side of each account type: assets and expenses
grow with debits, liabilities, equity and revenue with credits.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

from bizledger.config import DEFAULT_LOW_STOCK_THRESHOLD
from bizledger.database.base import Database
from bizledger.domain.account import AccountService
from bizledger.domain.chart import OPERATING_ROLES, PostingRole, account_name
from bizledger.domain.entities import (
    ZERO,
    Account,
    AccountType,
    AmountLine,
    BalanceSheet,
    CashFlowReport,
    DailyTotal,
    GeneralLedger,
    InventoryReport,
    JournalEntry,
    LedgerLine,
    ProfitLossReport,
    PurchaseReport,
    RankedAmount,
    SalesReport,
    TrialBalance,
    TrialBalanceLine,
)
from bizledger.domain.errors import ValidationError

logger = logging.getLogger(__name__)


def natural_balance(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Balance of an account on its normal side."""
    if account_type.is_debit_normal:
        return debit - credit
    return credit - debit


def _check_period(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationError(f"Start date {start_date} is after end date {end_date}")


def _rank(
    amounts: dict[int, Decimal], counts: dict[int, int], name_of: Callable[[int], str], limit: int
) -> tuple[RankedAmount, ...]:
    ordered = sorted(amounts.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return tuple(
        RankedAmount(id=key, name=name_of(key), count=counts[key], amount=amount) for key, amount in ordered
    )


def _daily_trend(rows: Iterable[tuple[date, Decimal]]) -> tuple[DailyTotal, ...]:
    counts: dict[date, int] = defaultdict(int)
    amounts: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for day, amount in rows:
        counts[day] += 1
        amounts[day] += amount
    return tuple(DailyTotal(date=day, count=counts[day], amount=amounts[day]) for day in sorted(counts))


class ReportingService:
    """Service for building reports from the ledger and business records."""

    def __init__(self, db: Database):
        """Initialize reporting service.

        Args:
            db: Database instance
        """
        self.db = db
        self.accounts = AccountService(db)
        self.entries = db.get_repository("journal_entry")
        self.sales = db.get_repository("sale")
        self.purchases = db.get_repository("purchase")
        self.products = db.get_repository("product")
        self.stocks = db.get_repository("stock")
        self.customers = db.get_repository("customer")
        self.suppliers = db.get_repository("supplier")

    # Ledger helpers

    def _entries(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> list[JournalEntry]:
        entries = self.entries.list(between=("date", start_date, end_date), order_by=["date"])
        logger.debug("Loaded %d journal entries for %s..%s", len(entries), start_date, end_date)
        return entries

    def _all_accounts(self) -> dict[int, Account]:
        return {account.id: account for account in self.accounts.repository.list(with_deleted=True)}

    @staticmethod
    def _side_totals(entries: Iterable[JournalEntry]) -> tuple[dict[int, Decimal], dict[int, Decimal]]:
        debits: dict[int, Decimal] = defaultdict(lambda: ZERO)
        credits: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for entry in entries:
            debits[entry.debit_account_id] += entry.amount
            credits[entry.credit_account_id] += entry.amount
        return debits, credits

    def _natural_balances(self, entries: Iterable[JournalEntry]) -> dict[int, Decimal]:
        debits, credits = self._side_totals(entries)
        balances = {}
        for account_id, account in self._all_accounts().items():
            if account_id in debits or account_id in credits:
                balances[account_id] = natural_balance(
                    account.account_type, debits.get(account_id, ZERO), credits.get(account_id, ZERO)
                )
        return balances

    # Ledger reports

    def trial_balance(self, as_of: Optional[date] = None) -> TrialBalance:
        """Debit and credit totals per account up to a date (inclusive)."""
        debits, credits = self._side_totals(self._entries(end_date=as_of))
        lines = []
        accounts = sorted(
            self._all_accounts().values(), key=lambda a: (a.account_type.value, a.name)
        )
        for account in accounts:
            active = account.id in debits or account.id in credits
            if account.deleted_at is not None and not active:
                continue
            lines.append(
                TrialBalanceLine(
                    account=account,
                    debit_total=debits.get(account.id, ZERO),
                    credit_total=credits.get(account.id, ZERO),
                )
            )
        return TrialBalance(
            as_of=as_of,
            lines=tuple(lines),
            total_debits=sum((line.debit_total for line in lines), ZERO),
            total_credits=sum((line.credit_total for line in lines), ZERO),
        )

    def account_balance(self, account_id: int, as_of: Optional[date] = None) -> Decimal:
        """Balance of one account on its normal side."""
        account = self.accounts.require(account_id)
        debit = credit = ZERO
        for entry in self._entries(end_date=as_of):
            if entry.debit_account_id == account_id:
                debit += entry.amount
            elif entry.credit_account_id == account_id:
                credit += entry.amount
        return natural_balance(account.account_type, debit, credit)

    def general_ledger(
        self, account_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> GeneralLedger:
        """Entries touching an account with a running balance."""
        _check_period(start_date, end_date)
        account = self.accounts.require(account_id)
        opening = ZERO
        balance = ZERO
        lines = []
        for entry in self._entries(end_date=end_date):
            if account_id == entry.debit_account_id:
                debit, credit = entry.amount, ZERO
            elif account_id == entry.credit_account_id:
                debit, credit = ZERO, entry.amount
            else:
                continue
            balance += natural_balance(account.account_type, debit, credit)
            if start_date is not None and entry.date < start_date:
                opening = balance
                continue
            lines.append(LedgerLine(entry=entry, debit=debit, credit=credit, running_balance=balance))
        return GeneralLedger(
            account=account,
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            lines=tuple(lines),
        )

    def profit_and_loss(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> ProfitLossReport:
        """Revenue, cost of goods sold and operating expenses for a period."""
        _check_period(start_date, end_date)
        accounts = self._all_accounts()
        balances = self._natural_balances(self._entries(start_date, end_date))
        cogs_name = account_name(PostingRole.COST_OF_GOODS_SOLD)

        revenue_lines = []
        expense_lines = []
        cogs = ZERO
        for account_id, amount in balances.items():
            account = accounts[account_id]
            if account.account_type == AccountType.REVENUE:
                revenue_lines.append(AmountLine(account.name, amount))
            elif account.account_type == AccountType.EXPENSE:
                if account.name == cogs_name:
                    cogs += amount
                else:
                    expense_lines.append(AmountLine(account.name, amount))

        return ProfitLossReport(
            start_date=start_date,
            end_date=end_date,
            revenue_lines=tuple(sorted(revenue_lines, key=lambda line: line.name)),
            cost_of_goods_sold=cogs,
            operating_expense_lines=tuple(sorted(expense_lines, key=lambda line: line.name)),
        )

    def balance_sheet(self, as_of: Optional[date] = None) -> BalanceSheet:
        """Assets, liabilities and equity as of a date.

        Revenue and expense accounts are not closed into equity; their net
        shows up as current earnings.
        """
        accounts = self._all_accounts()
        balances = self._natural_balances(self._entries(end_date=as_of))
        sections: dict[AccountType, list[AmountLine]] = defaultdict(list)
        earnings = ZERO
        for account_id, amount in balances.items():
            account = accounts[account_id]
            if account.account_type == AccountType.REVENUE:
                earnings += amount
            elif account.account_type == AccountType.EXPENSE:
                earnings -= amount
            else:
                sections[account.account_type].append(AmountLine(account.name, amount))

        def section(account_type: AccountType) -> tuple[AmountLine, ...]:
            return tuple(sorted(sections[account_type], key=lambda line: line.name))

        return BalanceSheet(
            as_of=as_of,
            assets=section(AccountType.ASSET),
            liabilities=section(AccountType.LIABILITY),
            equity=section(AccountType.EQUITY),
            current_earnings=earnings,
        )

    def _cash_activity(self, counter: Account) -> str:
        operating_names = {account_name(role) for role in OPERATING_ROLES}
        if counter.account_type == AccountType.EQUITY:
            return "financing"
        if counter.account_type == AccountType.LIABILITY and counter.name not in operating_names:
            return "financing"
        if counter.account_type == AccountType.ASSET and counter.name not in operating_names:
            return "investing"
        return "operating"

    def cash_flow(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> CashFlowReport:
        """Movements of the Cash account over a period.

        Each movement is classified by the account on the other side:
        equity and non-trade liabilities are financing, non-trade assets are
        investing, everything else is operating.
        """
        _check_period(start_date, end_date)
        cash_id = self.accounts.account_for_role(PostingRole.CASH).id
        accounts = self._all_accounts()

        opening = ZERO
        inflows = outflows = ZERO
        activities: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for entry in self._entries(end_date=end_date):
            if entry.debit_account_id == cash_id:
                signed, counter_id = entry.amount, entry.credit_account_id
            elif entry.credit_account_id == cash_id:
                signed, counter_id = -entry.amount, entry.debit_account_id
            else:
                continue
            if start_date is not None and entry.date < start_date:
                opening += signed
                continue
            if signed > 0:
                inflows += signed
            else:
                outflows -= signed
            activities[self._cash_activity(accounts[counter_id])] += signed

        return CashFlowReport(
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            inflows=inflows,
            outflows=outflows,
            operating_activities=activities["operating"],
            investing_activities=activities["investing"],
            financing_activities=activities["financing"],
        )

    # Business reports

    def _name_lookup(self, repository) -> Callable[[int], str]:
        def name_of(entity_id: int) -> str:
            entity = repository.get(entity_id, with_deleted=True)
            return entity.name if entity is not None else f"#{entity_id}"

        return name_of

    def sales_report(self, start_date: date, end_date: date, top: int = 5) -> SalesReport:
        """Sales count, totals, best products and customers, and daily trend."""
        _check_period(start_date, end_date)
        sales = self.sales.list(between=("sale_date", start_date, end_date), order_by=["sale_date"])

        product_amounts: dict[int, Decimal] = defaultdict(lambda: ZERO)
        product_units: dict[int, int] = defaultdict(int)
        customer_amounts: dict[int, Decimal] = defaultdict(lambda: ZERO)
        customer_orders: dict[int, int] = defaultdict(int)
        for sale in sales:
            for item in sale.items:
                product_amounts[item.product_id] += item.total_price
                product_units[item.product_id] += item.quantity
            if sale.customer_id is not None:
                customer_amounts[sale.customer_id] += sale.total_amount
                customer_orders[sale.customer_id] += 1

        return SalesReport(
            start_date=start_date,
            end_date=end_date,
            total_sales=len(sales),
            total_revenue=sum((sale.total_amount for sale in sales), ZERO),
            total_discount=sum((sale.discount for sale in sales), ZERO),
            total_tax=sum((sale.tax_amount for sale in sales), ZERO),
            top_products=_rank(product_amounts, product_units, self._name_lookup(self.products), top),
            top_customers=_rank(customer_amounts, customer_orders, self._name_lookup(self.customers), top),
            trend=_daily_trend((sale.sale_date, sale.total_amount) for sale in sales),
        )

    def purchase_report(self, start_date: date, end_date: date, top: int = 5) -> PurchaseReport:
        """Purchase count, totals, main suppliers and daily trend."""
        _check_period(start_date, end_date)
        purchases = self.purchases.list(
            between=("purchase_date", start_date, end_date), order_by=["purchase_date"]
        )

        supplier_amounts: dict[int, Decimal] = defaultdict(lambda: ZERO)
        supplier_orders: dict[int, int] = defaultdict(int)
        for purchase in purchases:
            if purchase.supplier_id is not None:
                supplier_amounts[purchase.supplier_id] += purchase.total_amount
                supplier_orders[purchase.supplier_id] += 1

        return PurchaseReport(
            start_date=start_date,
            end_date=end_date,
            total_purchases=len(purchases),
            total_amount=sum((purchase.total_amount for purchase in purchases), ZERO),
            top_suppliers=_rank(supplier_amounts, supplier_orders, self._name_lookup(self.suppliers), top),
            trend=_daily_trend((p.purchase_date, p.total_amount) for p in purchases),
        )

    def inventory_report(self, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> InventoryReport:
        """Stock value and stock levels per product.

        A product is low on stock when its units across all lots are at or
        below the threshold, and out of stock at zero.
        """
        products = self.products.list()
        quantities = {product.id: 0 for product in products}
        value = ZERO
        for lot in self.stocks.list():
            if lot.product_id in quantities:
                quantities[lot.product_id] += lot.quantity
                value += lot.value

        return InventoryReport(
            total_products=len(products),
            total_stock_value=value,
            low_stock_items=sum(1 for qty in quantities.values() if qty <= low_stock_threshold),
            out_of_stock_items=sum(1 for qty in quantities.values() if qty == 0),
            low_stock_threshold=low_stock_threshold,
            quantities=quantities,
        )
