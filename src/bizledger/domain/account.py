"""Account domain service."""

import logging
from typing import Optional

from bizledger.config import DEFAULT_CURRENCY
from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService
from bizledger.domain.chart import DEFAULT_CHART, PostingRole
from bizledger.domain.dtos import AccountCreate, AccountUpdate
from bizledger.domain.entities import Account, AccountType
from bizledger.domain.errors import (
    DependencyError,
    NotFoundError,
    account_delete_blocked,
    account_role_missing,
)

logger = logging.getLogger(__name__)


class AccountService(BaseService[Account]):
    """Service for managing the chart of accounts."""

    resource = "account"
    create_schema = AccountCreate
    update_schema = AccountUpdate
    searchable_fields = ("name", "description")
    unique_fields = ("name",)

    def __init__(self, db: Database):
        super().__init__(db)
        self.entries = db.get_repository("journal_entry")

    def list_accounts(
        self, account_type: Optional[AccountType] = None, include_inactive: bool = True
    ) -> list[Account]:
        """List live accounts ordered by type and name.

        Args:
            account_type: Only accounts of this type
            include_inactive: If False, skip deactivated accounts
        """
        filters = {}
        if account_type is not None:
            filters["account_type"] = account_type
        if not include_inactive:
            filters["is_active"] = True
        return self.repository.list(order_by=["account_type", "name"], **filters)

    def get_account_by_name(self, name: str) -> Optional[Account]:
        return self.repository.find_one_by_field("name", name)

    def ensure_default_chart(self, currency: str = DEFAULT_CURRENCY) -> list[Account]:
        """Create any missing account of the default chart.

        Accounts that were soft deleted are restored instead of recreated.

        Returns:
            The accounts created or restored by this call
        """
        touched = []
        with self.db.transaction():
            for role, (name, account_type) in DEFAULT_CHART.items():
                existing = self.repository.list(with_deleted=True, name=name)
                if existing:
                    if existing[0].deleted_at is not None:
                        touched.append(self.repository.restore(existing[0].id))
                    continue
                touched.append(
                    self.create(
                        {
                            "name": name,
                            "account_type": account_type,
                            "currency": currency,
                            "description": f"Default {role.value.replace('-', ' ')} account",
                        }
                    )
                )
        if touched:
            logger.info("Default chart: created or restored %d accounts", len(touched))
        return touched

    def account_for_role(self, role: PostingRole) -> Account:
        """Resolve the account a posting role maps to.

        Raises:
            NotFoundError: If the default chart has not been created
        """
        name, _ = DEFAULT_CHART[role]
        account = self.get_account_by_name(name)
        if account is None:
            raise NotFoundError(account_role_missing(role.value, name))
        return account

    def entry_count(self, account_id: int) -> int:
        """Number of live journal entries touching the account."""
        return self.entries.count(debit_account_id=account_id) + self.entries.count(
            credit_account_id=account_id
        )

    def delete(self, account_id: int) -> None:
        """Soft delete an account.

        Raises:
            NotFoundError: If the account does not exist
            DependencyError: If live journal entries still reference it
        """
        self.require(account_id)
        entry_count = self.entry_count(account_id)
        if entry_count > 0:
            raise DependencyError(account_delete_blocked(account_id, entry_count))
        super().delete(account_id)

    def hard_delete(self, account_id: int) -> None:
        """Physically delete an account no journal entry has ever referenced."""
        entry_count = len(self.entries.list(with_deleted=True, debit_account_id=account_id)) + len(
            self.entries.list(with_deleted=True, credit_account_id=account_id)
        )
        if entry_count > 0:
            raise DependencyError(account_delete_blocked(account_id, entry_count))
        super().hard_delete(account_id)

    def deactivate(self, account_id: int) -> Account:
        return self.update(account_id, {"is_active": False})
