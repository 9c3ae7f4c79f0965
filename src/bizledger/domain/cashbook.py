"""Expense and income domain services.

Both are single cash movements: saving one posts a journal entry against
Cash in the same transaction, and deleting one voids that entry.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import ExpenseCreate, ExpenseUpdate, IncomeCreate, IncomeUpdate
from bizledger.domain.entities import ZERO, AccountType, Expense, Income, JournalEntry, RefType
from bizledger.domain.journal import JournalService


class CashbookService(BaseService, ABC):
    """Shared behaviour of expense and income services."""

    ref_type: RefType
    account_type: AccountType
    type_field: str

    def __init__(self, db: Database):
        super().__init__(db)
        self.journal = JournalService(db)

    @abstractmethod
    def _post(self, record) -> list[JournalEntry]:
        """Post the journal entry for a saved record."""
        pass

    def _check_account(self, account_id: Optional[int]) -> None:
        if account_id is not None:
            self.journal.require_account_type(account_id, self.account_type)

    def create(self, data: Union[BaseModel, dict[str, Any]]):
        dto = validate(self.create_schema, data)
        with self.db.transaction():
            self._check_account(dto.account_id)
            record = self.repository.create(dto.model_dump())
            self._post(record)
        return record

    def update(self, entity_id: int, data: Union[BaseModel, dict[str, Any]]):
        dto = validate(self.update_schema, data)
        values = dto.model_dump(exclude_unset=True)
        with self.db.transaction():
            self.require(entity_id)
            self._check_account(values.get("account_id"))
            record = self.repository.update(entity_id, values)
            self._post(record)
        return record

    def delete(self, entity_id: int) -> None:
        with self.db.transaction():
            self.repository.delete(entity_id)
            self.journal.void_reference(self.ref_type, entity_id)

    def restore(self, entity_id: int):
        with self.db.transaction():
            record = self.repository.restore(entity_id)
            self.journal.restore_reference(self.ref_type, entity_id)
        return record

    def hard_delete(self, entity_id: int) -> None:
        with self.db.transaction():
            self.journal.remove_postings(self.ref_type, entity_id, with_deleted=True)
            self.repository.hard_delete(entity_id)

    def by_date_range(self, start_date: Optional[date], end_date: Optional[date]) -> list:
        return self.repository.list(between=("date", start_date, end_date), order_by=["date"])

    def total_by_date_range(self, start_date: Optional[date], end_date: Optional[date]) -> Decimal:
        return sum((record.amount for record in self.by_date_range(start_date, end_date)), ZERO)

    def breakdown_by_type(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict[str, Decimal]:
        """Total amount per type, largest first. Untyped records count as 'Other'."""
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for record in self.by_date_range(start_date, end_date):
            totals[getattr(record, self.type_field) or "Other"] += record.amount
        return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


class ExpenseService(CashbookService):
    """Service for expenses, posted against Operating Expenses by default."""

    resource = "expense"
    create_schema = ExpenseCreate
    update_schema = ExpenseUpdate
    searchable_fields = ("description", "expense_type")
    ref_type = RefType.EXPENSE
    account_type = AccountType.EXPENSE
    type_field = "expense_type"

    def _post(self, record: Expense) -> list[JournalEntry]:
        return self.journal.record_expense(record)


class IncomeService(CashbookService):
    """Service for non-sale incomes, posted against Other Income by default."""

    resource = "income"
    create_schema = IncomeCreate
    update_schema = IncomeUpdate
    searchable_fields = ("description", "income_type")
    ref_type = RefType.INCOME
    account_type = AccountType.REVENUE
    type_field = "income_type"

    def _post(self, record: Income) -> list[JournalEntry]:
        return self.journal.record_income(record)
