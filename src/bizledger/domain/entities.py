"""Domain model entities for bizledger.

These are pure data classes representing business concepts, independent of
database schema. Repositories convert ORM rows into these before they leave
the database layer.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

ZERO = Decimal("0.00")


class AccountType(str, Enum):
    """Chart of accounts classification."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"

    @property
    def is_debit_normal(self) -> bool:
        """Assets and expenses grow on the debit side."""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class RefType(str, Enum):
    """Business event that produced a journal entry."""

    SALE = "SALE"
    SALE_COGS = "SALE_COGS"
    SALE_RETURN = "SALE_RETURN"
    PURCHASE = "PURCHASE"
    PURCHASE_RETURN = "PURCHASE_RETURN"
    ADJUSTMENT = "ADJUSTMENT"
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    MANUAL = "MANUAL"


class PaymentStatus(str, Enum):
    """Settlement status of a sale or purchase."""

    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"
    CANCELLED = "Cancelled"


class RecordStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class CustomerType(str, Enum):
    RETAILER = "Retailer"
    DEALER = "Dealer"
    WHOLESALER = "Wholesaler"


class SupplierType(str, Enum):
    MANUFACTURER = "Manufacturer"
    DISTRIBUTOR = "Distributor"
    WHOLESALER = "Wholesaler"
    RETAILER = "Retailer"
    DEALER = "Dealer"


class UnitType(str, Enum):
    PIECE = "Piece"
    KG = "Kg"
    LITER = "Liter"
    METRE = "Metre"


class LeadStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    CONVERTED = "Converted"
    LOST = "Lost"


class OpportunityStage(str, Enum):
    """Pipeline stage of a sales opportunity, in pipeline order."""

    PROSPECTING = "Prospecting"
    QUALIFICATION = "Qualification"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"

    @property
    def is_closed(self) -> bool:
        return self in (OpportunityStage.CLOSED_WON, OpportunityStage.CLOSED_LOST)


class AdjustmentType(str, Enum):
    INCREASE = "Increase"
    DECREASE = "Decrease"


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paginated query."""

    data: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit > 0 else 0


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry."""

    id: int
    name: str
    account_type: AccountType
    currency: str
    is_active: bool
    description: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class JournalEntry:
    """One two-sided posting."""

    id: int
    date: date
    ref_type: RefType
    ref_id: Optional[int]
    debit_account_id: int
    credit_account_id: int
    amount: Decimal
    description: Optional[str]
    transaction_reference: Optional[str]
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    company_name: Optional[str]
    customer_type: CustomerType
    tax_id: Optional[str]
    status: RecordStatus
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Supplier:
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    website: Optional[str]
    contact_person: Optional[str]
    supplier_type: SupplierType
    tax_id: Optional[str]
    status: RecordStatus
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    sku: Optional[str]
    description: Optional[str]
    purchase_price: Decimal
    sale_price: Decimal
    unit_type: UnitType
    status: RecordStatus
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Stock:
    """A stock lot of one product."""

    id: int
    product_id: int
    quantity: int
    unit_cost: Decimal
    warehouse: Optional[str]
    barcode: Optional[str]
    status: RecordStatus
    created_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def value(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class SaleItem:
    id: int
    sale_id: int
    product_id: int
    stock_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class Sale:
    id: int
    sale_date: date
    customer_id: Optional[int]
    sub_total: Decimal
    discount: Decimal
    tax_amount: Decimal
    delivery_charge: Decimal
    total_amount: Decimal
    due_amount: Decimal
    invoice_number: Optional[str]
    status: PaymentStatus
    notes: Optional[str]
    created_at: datetime
    items: tuple[SaleItem, ...] = ()
    deleted_at: Optional[datetime] = None

    @property
    def paid_amount(self) -> Decimal:
        return self.total_amount - self.due_amount

    @property
    def cost_of_goods(self) -> Decimal:
        return sum((item.cost for item in self.items), ZERO)


@dataclass(frozen=True)
class PurchaseItem:
    id: int
    purchase_id: int
    product_id: int
    stock_id: int
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal


@dataclass(frozen=True)
class Purchase:
    id: int
    purchase_date: date
    supplier_id: Optional[int]
    sub_total: Decimal
    discount: Decimal
    tax_amount: Decimal
    shipping_charge: Decimal
    total_amount: Decimal
    due_amount: Decimal
    invoice_number: Optional[str]
    status: PaymentStatus
    notes: Optional[str]
    created_at: datetime
    items: tuple[PurchaseItem, ...] = ()
    deleted_at: Optional[datetime] = None

    @property
    def paid_amount(self) -> Decimal:
        return self.total_amount - self.due_amount


@dataclass(frozen=True)
class SaleReturnItem:
    id: int
    sale_return_id: int
    sale_item_id: int
    product_id: int
    stock_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class SaleReturn:
    """Goods a customer brought back from one sale."""

    id: int
    return_date: date
    sale_id: int
    total_amount: Decimal
    refund_amount: Decimal
    notes: Optional[str]
    created_at: datetime
    items: tuple[SaleReturnItem, ...] = ()
    deleted_at: Optional[datetime] = None

    @property
    def credited_amount(self) -> Decimal:
        """Part of the return settled against what the customer owes."""
        return self.total_amount - self.refund_amount

    @property
    def cost_of_goods(self) -> Decimal:
        return sum((item.cost for item in self.items), ZERO)


@dataclass(frozen=True)
class PurchaseReturnItem:
    id: int
    purchase_return_id: int
    purchase_item_id: int
    product_id: int
    stock_id: int
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal


@dataclass(frozen=True)
class PurchaseReturn:
    """Goods sent back to the supplier of one purchase."""

    id: int
    return_date: date
    purchase_id: int
    total_amount: Decimal
    refund_amount: Decimal
    notes: Optional[str]
    created_at: datetime
    items: tuple[PurchaseReturnItem, ...] = ()
    deleted_at: Optional[datetime] = None

    @property
    def credited_amount(self) -> Decimal:
        return self.total_amount - self.refund_amount


@dataclass(frozen=True)
class StockAdjustment:
    """A manual correction of the units held in a stock lot."""

    id: int
    stock_id: int
    product_id: int
    adjustment_type: AdjustmentType
    quantity: int
    adjustment_date: date
    unit_cost: Decimal
    reason: Optional[str]
    notes: Optional[str]
    created_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def quantity_change(self) -> int:
        return self.quantity if self.adjustment_type == AdjustmentType.INCREASE else -self.quantity

    @property
    def value(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class Expense:
    id: int
    amount: Decimal
    date: date
    description: Optional[str]
    expense_type: Optional[str]
    account_id: Optional[int]
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Income:
    id: int
    amount: Decimal
    date: date
    description: Optional[str]
    income_type: Optional[str]
    account_id: Optional[int]
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Lead:
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    company: Optional[str]
    source: Optional[str]
    status: LeadStatus
    notes: Optional[str]
    estimated_value: Optional[Decimal]
    expected_close_date: Optional[date]
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Opportunity:
    """A potential deal moving through the sales pipeline."""

    id: int
    name: str
    description: Optional[str]
    customer_id: Optional[int]
    lead_id: Optional[int]
    stage: OpportunityStage
    value: Decimal
    probability: int
    expected_close_date: Optional[date]
    actual_close_date: Optional[date]
    source: Optional[str]
    notes: Optional[str]
    created_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def weighted_value(self) -> Decimal:
        return (self.value * self.probability / 100).quantize(Decimal("0.01"))


# Report models


@dataclass(frozen=True)
class AmountLine:
    """A labelled amount inside a report section."""

    name: str
    amount: Decimal


@dataclass(frozen=True)
class TrialBalanceLine:
    account: Account
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        return self.debit_total - self.credit_total


@dataclass(frozen=True)
class TrialBalance:
    as_of: Optional[date]
    lines: tuple[TrialBalanceLine, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class ProfitLossReport:
    start_date: Optional[date]
    end_date: Optional[date]
    revenue_lines: tuple[AmountLine, ...]
    cost_of_goods_sold: Decimal
    operating_expense_lines: tuple[AmountLine, ...]

    @property
    def revenue(self) -> Decimal:
        return sum((line.amount for line in self.revenue_lines), ZERO)

    @property
    def operating_expenses(self) -> Decimal:
        return sum((line.amount for line in self.operating_expense_lines), ZERO)

    @property
    def total_expenses(self) -> Decimal:
        return self.cost_of_goods_sold + self.operating_expenses

    @property
    def gross_profit(self) -> Decimal:
        return self.revenue - self.cost_of_goods_sold

    @property
    def net_profit(self) -> Decimal:
        return self.gross_profit - self.operating_expenses

    @property
    def profit_margin(self) -> Decimal:
        """Net profit as a percentage of revenue (0 without revenue)."""
        if self.revenue == 0:
            return ZERO
        return (self.net_profit / self.revenue * 100).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class BalanceSheet:
    as_of: Optional[date]
    assets: tuple[AmountLine, ...]
    liabilities: tuple[AmountLine, ...]
    equity: tuple[AmountLine, ...]
    current_earnings: Decimal

    @property
    def total_assets(self) -> Decimal:
        return sum((line.amount for line in self.assets), ZERO)

    @property
    def total_liabilities(self) -> Decimal:
        return sum((line.amount for line in self.liabilities), ZERO)

    @property
    def total_equity(self) -> Decimal:
        return sum((line.amount for line in self.equity), ZERO) + self.current_earnings

    @property
    def is_balanced(self) -> bool:
        return self.total_assets == self.total_liabilities + self.total_equity


@dataclass(frozen=True)
class CashFlowReport:
    start_date: Optional[date]
    end_date: Optional[date]
    opening_balance: Decimal
    inflows: Decimal
    outflows: Decimal
    operating_activities: Decimal
    investing_activities: Decimal
    financing_activities: Decimal

    @property
    def net_cash_flow(self) -> Decimal:
        return self.inflows - self.outflows

    @property
    def closing_balance(self) -> Decimal:
        return self.opening_balance + self.net_cash_flow


@dataclass(frozen=True)
class LedgerLine:
    entry: JournalEntry
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class GeneralLedger:
    account: Account
    start_date: Optional[date]
    end_date: Optional[date]
    opening_balance: Decimal
    lines: tuple[LedgerLine, ...]

    @property
    def closing_balance(self) -> Decimal:
        if not self.lines:
            return self.opening_balance
        return self.lines[-1].running_balance


@dataclass(frozen=True)
class RankedAmount:
    """An entity id with an order count and amount, used for top-N lists."""

    id: int
    name: str
    count: int
    amount: Decimal


@dataclass(frozen=True)
class DailyTotal:
    date: date
    count: int
    amount: Decimal


@dataclass(frozen=True)
class SalesReport:
    start_date: date
    end_date: date
    total_sales: int
    total_revenue: Decimal
    total_discount: Decimal
    total_tax: Decimal
    top_products: tuple[RankedAmount, ...]
    top_customers: tuple[RankedAmount, ...]
    trend: tuple[DailyTotal, ...]

    @property
    def average_order_value(self) -> Decimal:
        if self.total_sales == 0:
            return ZERO
        return (self.total_revenue / self.total_sales).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class PurchaseReport:
    start_date: date
    end_date: date
    total_purchases: int
    total_amount: Decimal
    top_suppliers: tuple[RankedAmount, ...]
    trend: tuple[DailyTotal, ...]

    @property
    def average_order_value(self) -> Decimal:
        if self.total_purchases == 0:
            return ZERO
        return (self.total_amount / self.total_purchases).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class InventoryReport:
    total_products: int
    total_stock_value: Decimal
    low_stock_items: int
    out_of_stock_items: int
    low_stock_threshold: int
    quantities: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class LeadAnalytics:
    total_leads: int
    converted_leads: int
    leads_by_source: dict[str, int]
    leads_by_status: dict[str, int]

    @property
    def conversion_rate(self) -> Decimal:
        if self.total_leads == 0:
            return ZERO
        return (Decimal(self.converted_leads) / self.total_leads * 100).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class GroupTotal:
    count: int
    value: Decimal


@dataclass(frozen=True)
class OpportunityAnalytics:
    total_opportunities: int
    total_value: Decimal
    won_count: int
    lost_count: int
    forecasted_revenue: Decimal
    by_stage: dict[str, GroupTotal]
    by_source: dict[str, GroupTotal]

    @property
    def average_value(self) -> Decimal:
        if self.total_opportunities == 0:
            return ZERO
        return (self.total_value / self.total_opportunities).quantize(Decimal("0.01"))

    @property
    def win_rate(self) -> Decimal:
        """Won share of the closed opportunities, in percent."""
        closed = self.won_count + self.lost_count
        if closed == 0:
            return ZERO
        return (Decimal(self.won_count) / closed * 100).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class ForecastPeriod:
    """Open pipeline expected to close in one month, quarter or year."""

    period: str
    count: int
    forecasted_revenue: Decimal
    weighted_revenue: Decimal

    @property
    def average_deal_size(self) -> Decimal:
        if self.count == 0:
            return ZERO
        return (self.forecasted_revenue / self.count).quantize(Decimal("0.01"))
