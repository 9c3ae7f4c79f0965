"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar

# Import entities directly to avoid circular import through domain/__init__.py
from bizledger.domain.entities import Page
from bizledger.domain.dtos import PageQuery

E = TypeVar("E")


class Repository(ABC, Generic[E]):
    """Generic persistence contract for one resource.

    Every method returns domain entities, never ORM rows. Soft-deleted rows
    are invisible unless a method says otherwise.
    """

    resource: str
    entity_name: str

    @abstractmethod
    def create(self, values: dict[str, Any]) -> E:
        """Persist a new row and return it."""
        pass

    @abstractmethod
    def bulk_create(self, rows: Sequence[dict[str, Any]]) -> list[E]:
        """Persist many rows at once."""
        pass

    @abstractmethod
    def get(self, entity_id: int, with_deleted: bool = False) -> Optional[E]:
        """Get a row by ID, or None."""
        pass

    @abstractmethod
    def find_all(self, page_query: PageQuery, **filters: Any) -> Page[E]:
        """Paginated, sorted and searched listing of live rows."""
        pass

    @abstractmethod
    def count(self, query: Optional[str] = None, fields: Optional[list[str]] = None, **filters: Any) -> int:
        """Count live rows with the same search semantics as find_all."""
        pass

    @abstractmethod
    def exists(self, entity_id: int) -> bool:
        """Check whether a live row with this ID exists."""
        pass

    @abstractmethod
    def update(self, entity_id: int, values: dict[str, Any]) -> E:
        """Update a live row. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    def bulk_update(self, updates: Sequence[tuple[int, dict[str, Any]]]) -> list[E]:
        """Update many rows; every ID must exist."""
        pass

    @abstractmethod
    def delete(self, entity_id: int) -> None:
        """Soft delete a row (hard delete when the table has no soft-delete marker)."""
        pass

    @abstractmethod
    def bulk_delete(self, entity_ids: Iterable[int]) -> int:
        """Soft delete many rows. Returns the number deleted."""
        pass

    @abstractmethod
    def restore(self, entity_id: int) -> E:
        """Clear the soft-delete marker of a row."""
        pass

    @abstractmethod
    def hard_delete(self, entity_id: int) -> None:
        """Physically delete a row."""
        pass

    @abstractmethod
    def find_by_field(self, field: str, value: Any) -> list[E]:
        """All live rows where field equals value."""
        pass

    @abstractmethod
    def find_one_by_field(self, field: str, value: Any) -> Optional[E]:
        """First live row where field equals value."""
        pass

    @abstractmethod
    def list(
        self,
        between: Optional[tuple[str, Optional[date], Optional[date]]] = None,
        order_by: Optional[Sequence[str]] = None,
        with_deleted: bool = False,
        **equals: Any,
    ) -> list[E]:
        """Unpaginated filtered fetch.

        Args:
            between: (field, start, end) inclusive range; either bound may be None
            order_by: Field names, prefix with '-' for descending
            with_deleted: Include soft-deleted rows
            **equals: Equality filters; a list or tuple value means IN
        """
        pass


class Database(ABC):
    """Abstract database interface for bizledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit pending changes, or only flush them inside a transaction."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard pending changes."""
        pass

    @abstractmethod
    def expire_all(self) -> None:
        """Drop cached row state so the next read reloads from the database."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group writes into one atomic unit.

        Nested blocks join the outer one. The outermost block commits on
        success; any exception rolls everything back and propagates.
        """
        pass

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        """True while inside a transaction() block."""
        pass

    @abstractmethod
    def get_repository(self, resource: str, searchable_fields: Sequence[str] = ()) -> Repository:
        """Get the repository for a resource name (e.g. 'sale')."""
        pass
