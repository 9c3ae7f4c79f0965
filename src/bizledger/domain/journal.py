"""Journal posting domain service.

Every economic event is written as a posting group: one or more two-sided
journal entries sharing a ``(ref_type, ref_id)`` reference. Each line debits
one account and credits another by the same amount, so debits and credits
balance for every group by construction.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.account import AccountService
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.chart import PostingRole
from bizledger.domain.dtos import JournalEntryCreate, JournalEntryUpdate
from bizledger.domain.entities import (
    ZERO,
    AccountType,
    AdjustmentType,
    Expense,
    Income,
    JournalEntry,
    Purchase,
    PurchaseReturn,
    RefType,
    Sale,
    SaleReturn,
    StockAdjustment,
)
from bizledger.domain.errors import NotFoundError, ValidationError, entity_not_found

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class PostingLine:
    """One debit/credit pair of a posting group."""

    debit_account_id: int
    credit_account_id: int
    amount: Decimal
    description: Optional[str] = None


def _as_tuple(ref_types: Union[RefType, Iterable[RefType]]) -> tuple[RefType, ...]:
    if isinstance(ref_types, RefType):
        return (ref_types,)
    return tuple(ref_types)


class JournalService(BaseService[JournalEntry]):
    """Service for posting and querying journal entries."""

    resource = "journal_entry"
    create_schema = JournalEntryCreate
    update_schema = JournalEntryUpdate
    searchable_fields = ("description", "transaction_reference")

    def __init__(self, db: Database):
        super().__init__(db)
        self.accounts = AccountService(db)

    # Posting

    def _check_account(self, account_id: int, side: str) -> None:
        account = self.accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError(entity_not_found("Account", account_id))
        if not account.is_active:
            raise ValidationError(f"Cannot post to inactive account '{account.name}' ({side} side)")

    def _check_line(self, line: PostingLine) -> None:
        if line.debit_account_id is None or line.credit_account_id is None:
            raise ValidationError("A journal line needs both a debit and a credit account")
        if line.debit_account_id == line.credit_account_id:
            raise ValidationError("Debit and credit accounts must differ")
        if line.amount is None or line.amount <= 0:
            raise ValidationError(f"Journal amount must be positive, got {line.amount}")
        self._check_account(line.debit_account_id, "debit")
        self._check_account(line.credit_account_id, "credit")

    def post(
        self,
        entry_date: date,
        ref_type: RefType,
        ref_id: Optional[int],
        lines: Sequence[PostingLine],
        transaction_reference: Optional[str] = None,
    ) -> list[JournalEntry]:
        """Post a balanced group of journal lines atomically.

        Args:
            entry_date: Accounting date of the event
            ref_type: Kind of business event
            ref_id: ID of the business record, if any
            lines: Debit/credit pairs to write
            transaction_reference: Optional external reference

        Returns:
            The created journal entries

        Raises:
            ValidationError: If the group is empty, a line is one-sided, both
                sides name the same account, an amount is not positive or an
                account is inactive
            NotFoundError: If an account does not exist
        """
        lines = list(lines)
        if not lines:
            raise ValidationError("A posting group needs at least one line")
        for line in lines:
            self._check_line(line)

        rows = [
            {
                "date": entry_date,
                "ref_type": ref_type,
                "ref_id": ref_id,
                "debit_account_id": line.debit_account_id,
                "credit_account_id": line.credit_account_id,
                "amount": Decimal(line.amount).quantize(CENT),
                "description": line.description,
                "transaction_reference": transaction_reference,
            }
            for line in lines
        ]
        with self.db.transaction():
            entries = self.repository.bulk_create(rows)
        logger.info(
            "Posted %d journal lines for %s %s (%s)",
            len(entries),
            ref_type.value,
            ref_id,
            sum((e.amount for e in entries), ZERO),
        )
        return entries

    def create_journal_entry(self, data: Union[BaseModel, dict]) -> JournalEntry:
        """Create a single manual journal entry."""
        dto = validate(JournalEntryCreate, data)
        line = PostingLine(
            debit_account_id=dto.debit_account_id,
            credit_account_id=dto.credit_account_id,
            amount=dto.amount,
            description=dto.description,
        )
        return self.post(dto.date, dto.ref_type, dto.ref_id, [line], dto.transaction_reference)[0]

    def create(self, data: Union[BaseModel, dict]) -> JournalEntry:
        return self.create_journal_entry(data)

    def remove_postings(
        self, ref_types: Union[RefType, Iterable[RefType]], ref_id: int, with_deleted: bool = False
    ) -> int:
        """Physically delete the entries of a reference (live ones unless with_deleted)."""
        entries = self.entries_for_reference(ref_types, ref_id, with_deleted=with_deleted)
        with self.db.transaction():
            for entry in entries:
                self.repository.hard_delete(entry.id)
        return len(entries)

    def replace_postings(
        self,
        ref_type: RefType,
        ref_id: int,
        entry_date: date,
        lines: Sequence[PostingLine],
        transaction_reference: Optional[str] = None,
    ) -> list[JournalEntry]:
        """Swap the live entries of a reference for a new posting group.

        An empty ``lines`` only removes the old entries.
        """
        with self.db.transaction():
            removed = self.remove_postings(ref_type, ref_id)
            if removed:
                logger.info("Replaced %d journal lines for %s %s", removed, ref_type.value, ref_id)
            if not lines:
                return []
            return self.post(entry_date, ref_type, ref_id, lines, transaction_reference)

    def void_reference(self, ref_types: Union[RefType, Iterable[RefType]], ref_id: int) -> int:
        """Soft delete the live entries of a reference. Returns how many."""
        entries = self.entries_for_reference(ref_types, ref_id)
        if entries:
            with self.db.transaction():
                self.repository.bulk_delete([entry.id for entry in entries])
            logger.info("Voided %d journal lines for ref %s", len(entries), ref_id)
        return len(entries)

    def restore_reference(self, ref_types: Union[RefType, Iterable[RefType]], ref_id: int) -> int:
        """Undo void_reference. Returns how many entries came back."""
        voided = [
            entry
            for entry in self.entries_for_reference(ref_types, ref_id, with_deleted=True)
            if entry.deleted_at is not None
        ]
        with self.db.transaction():
            for entry in voided:
                self.repository.restore(entry.id)
        if voided:
            logger.info("Restored %d journal lines for ref %s", len(voided), ref_id)
        return len(voided)

    # Business events

    def _role_id(self, role: PostingRole) -> int:
        return self.accounts.account_for_role(role).id

    def record_sale(self, sale: Sale) -> list[JournalEntry]:
        """Post revenue and cost of goods sold for a sale.

        The paid part debits Cash and the due part Accounts Receivable, both
        against Sales Revenue. Item cost moves from Inventory to Cost of
        Goods Sold. Earlier postings of the same sale are replaced.
        """
        revenue = self._role_id(PostingRole.SALES_REVENUE)
        label = f"Sale {sale.invoice_number or sale.id}"
        lines = []
        if sale.paid_amount > 0:
            lines.append(PostingLine(self._role_id(PostingRole.CASH), revenue, sale.paid_amount, label))
        if sale.due_amount > 0:
            lines.append(
                PostingLine(
                    self._role_id(PostingRole.ACCOUNTS_RECEIVABLE), revenue, sale.due_amount, f"{label} (due)"
                )
            )

        cogs_lines = []
        if sale.cost_of_goods > 0:
            cogs_lines.append(
                PostingLine(
                    self._role_id(PostingRole.COST_OF_GOODS_SOLD),
                    self._role_id(PostingRole.INVENTORY),
                    sale.cost_of_goods,
                    f"Cost of goods for {label.lower()}",
                )
            )

        with self.db.transaction():
            entries = self.replace_postings(RefType.SALE, sale.id, sale.sale_date, lines, sale.invoice_number)
            entries += self.replace_postings(
                RefType.SALE_COGS, sale.id, sale.sale_date, cogs_lines, sale.invoice_number
            )
        return entries

    def record_purchase(self, purchase: Purchase) -> list[JournalEntry]:
        """Post a purchase: Inventory against Cash (paid) and Accounts Payable (due)."""
        inventory = self._role_id(PostingRole.INVENTORY)
        label = f"Purchase {purchase.invoice_number or purchase.id}"
        lines = []
        if purchase.paid_amount > 0:
            lines.append(PostingLine(inventory, self._role_id(PostingRole.CASH), purchase.paid_amount, label))
        if purchase.due_amount > 0:
            lines.append(
                PostingLine(
                    inventory, self._role_id(PostingRole.ACCOUNTS_PAYABLE), purchase.due_amount, f"{label} (due)"
                )
            )
        return self.replace_postings(
            RefType.PURCHASE, purchase.id, purchase.purchase_date, lines, purchase.invoice_number
        )

    def record_sale_return(self, sale_return: SaleReturn) -> list[JournalEntry]:
        """Post a sale return as one group.

        Sales Revenue is debited for the returned value, against Cash for
        the refunded part and Accounts Receivable for the rest. The goods'
        cost moves back from Cost of Goods Sold to Inventory.
        """
        revenue = self._role_id(PostingRole.SALES_REVENUE)
        label = f"Return {sale_return.id} of sale {sale_return.sale_id}"
        lines = []
        if sale_return.refund_amount > 0:
            lines.append(
                PostingLine(revenue, self._role_id(PostingRole.CASH), sale_return.refund_amount, f"{label} (refund)")
            )
        if sale_return.credited_amount > 0:
            lines.append(
                PostingLine(
                    revenue,
                    self._role_id(PostingRole.ACCOUNTS_RECEIVABLE),
                    sale_return.credited_amount,
                    f"{label} (credit)",
                )
            )
        if sale_return.cost_of_goods > 0:
            lines.append(
                PostingLine(
                    self._role_id(PostingRole.INVENTORY),
                    self._role_id(PostingRole.COST_OF_GOODS_SOLD),
                    sale_return.cost_of_goods,
                    f"Cost of goods for {label.lower()}",
                )
            )
        return self.replace_postings(RefType.SALE_RETURN, sale_return.id, sale_return.return_date, lines)

    def record_purchase_return(self, purchase_return: PurchaseReturn) -> list[JournalEntry]:
        """Post a purchase return: Cash (refund) and Accounts Payable (rest) against Inventory."""
        inventory = self._role_id(PostingRole.INVENTORY)
        label = f"Return {purchase_return.id} of purchase {purchase_return.purchase_id}"
        lines = []
        if purchase_return.refund_amount > 0:
            lines.append(
                PostingLine(
                    self._role_id(PostingRole.CASH), inventory, purchase_return.refund_amount, f"{label} (refund)"
                )
            )
        if purchase_return.credited_amount > 0:
            lines.append(
                PostingLine(
                    self._role_id(PostingRole.ACCOUNTS_PAYABLE),
                    inventory,
                    purchase_return.credited_amount,
                    f"{label} (credit)",
                )
            )
        return self.replace_postings(
            RefType.PURCHASE_RETURN, purchase_return.id, purchase_return.return_date, lines
        )

    def record_adjustment(self, adjustment: StockAdjustment) -> list[JournalEntry]:
        """Post the value of a stock correction between Inventory and Inventory Adjustments.

        An adjustment of a lot carried at zero cost posts nothing.
        """
        inventory = self._role_id(PostingRole.INVENTORY)
        adjustments = self._role_id(PostingRole.INVENTORY_ADJUSTMENTS)
        label = f"Stock adjustment {adjustment.id}: {adjustment.reason or adjustment.adjustment_type.value}"
        lines = []
        if adjustment.value > 0:
            if adjustment.adjustment_type == AdjustmentType.INCREASE:
                lines.append(PostingLine(inventory, adjustments, adjustment.value, label))
            else:
                lines.append(PostingLine(adjustments, inventory, adjustment.value, label))
        return self.replace_postings(RefType.ADJUSTMENT, adjustment.id, adjustment.adjustment_date, lines)

    def record_expense(self, expense: Expense) -> list[JournalEntry]:
        """Post an expense: expense account against Cash."""
        debit = expense.account_id or self._role_id(PostingRole.OPERATING_EXPENSES)
        line = PostingLine(
            debit, self._role_id(PostingRole.CASH), expense.amount, expense.description or expense.expense_type
        )
        return self.replace_postings(RefType.EXPENSE, expense.id, expense.date, [line])

    def record_income(self, income: Income) -> list[JournalEntry]:
        """Post an income: Cash against the income account."""
        credit = income.account_id or self._role_id(PostingRole.OTHER_INCOME)
        line = PostingLine(
            self._role_id(PostingRole.CASH), credit, income.amount, income.description or income.income_type
        )
        return self.replace_postings(RefType.INCOME, income.id, income.date, [line])

    # Queries

    def entries_for_reference(
        self,
        ref_types: Union[RefType, Iterable[RefType]],
        ref_id: int,
        with_deleted: bool = False,
    ) -> list[JournalEntry]:
        return self.repository.list(
            with_deleted=with_deleted,
            ref_type=list(_as_tuple(ref_types)),
            ref_id=ref_id,
        )

    def list_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        ref_type: Optional[RefType] = None,
    ) -> list[JournalEntry]:
        """List live entries in date order, optionally for one account."""
        filters = {}
        if ref_type is not None:
            filters["ref_type"] = ref_type
        entries = self.repository.list(
            between=("date", start_date, end_date), order_by=["date"], **filters
        )
        if account_id is not None:
            entries = [
                e for e in entries if account_id in (e.debit_account_id, e.credit_account_id)
            ]
        return entries

    def require_account_type(self, account_id: int, account_type: AccountType) -> None:
        """Raise ValidationError unless the account exists with the given type."""
        account = self.accounts.require(account_id)
        if account.account_type != account_type:
            raise ValidationError(
                f"Account '{account.name}' is {account.account_type.value}, expected {account_type.value}"
            )
