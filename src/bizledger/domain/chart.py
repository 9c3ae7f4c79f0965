"""Default chart of accounts and the posting roles that use it."""

from enum import Enum

from bizledger.domain.entities import AccountType


class PostingRole(str, Enum):
    """Account slots used by automatic journal postings."""

    CASH = "cash"
    ACCOUNTS_RECEIVABLE = "accounts-receivable"
    INVENTORY = "inventory"
    ACCOUNTS_PAYABLE = "accounts-payable"
    OWNER_EQUITY = "owner-equity"
    SALES_REVENUE = "sales-revenue"
    OTHER_INCOME = "other-income"
    COST_OF_GOODS_SOLD = "cost-of-goods-sold"
    OPERATING_EXPENSES = "operating-expenses"
    INVENTORY_ADJUSTMENTS = "inventory-adjustments"


# role -> (account name, account type)
DEFAULT_CHART: dict[PostingRole, tuple[str, AccountType]] = {
    PostingRole.CASH: ("Cash", AccountType.ASSET),
    PostingRole.ACCOUNTS_RECEIVABLE: ("Accounts Receivable", AccountType.ASSET),
    PostingRole.INVENTORY: ("Inventory", AccountType.ASSET),
    PostingRole.ACCOUNTS_PAYABLE: ("Accounts Payable", AccountType.LIABILITY),
    PostingRole.OWNER_EQUITY: ("Owner's Equity", AccountType.EQUITY),
    PostingRole.SALES_REVENUE: ("Sales Revenue", AccountType.REVENUE),
    PostingRole.OTHER_INCOME: ("Other Income", AccountType.REVENUE),
    PostingRole.COST_OF_GOODS_SOLD: ("Cost of Goods Sold", AccountType.EXPENSE),
    PostingRole.OPERATING_EXPENSES: ("Operating Expenses", AccountType.EXPENSE),
    PostingRole.INVENTORY_ADJUSTMENTS: ("Inventory Adjustments", AccountType.EXPENSE),
}

# Working-capital accounts; movements against them count as operating cash flow
OPERATING_ROLES = frozenset(
    {
        PostingRole.ACCOUNTS_RECEIVABLE,
        PostingRole.INVENTORY,
        PostingRole.ACCOUNTS_PAYABLE,
    }
)


def account_name(role: PostingRole) -> str:
    """Return the default account name for a posting role."""
    return DEFAULT_CHART[role][0]
