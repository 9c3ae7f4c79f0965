"""Generic CRUD service shared by the resource services."""

import logging
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bizledger.config import DEFAULT_PAGE_SIZE
from bizledger.database.base import Database
from bizledger.domain.dtos import PageQuery
from bizledger.domain.entities import Page
from bizledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_value,
    entity_not_found,
    validation_failed,
)

E = TypeVar("E")
S = TypeVar("S", bound=BaseModel)

logger = logging.getLogger(__name__)


def error_messages(error: PydanticValidationError) -> list[str]:
    """Flatten pydantic errors into ``field: message`` strings."""
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        message = detail["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validate(schema: type[S], data: Union[S, dict[str, Any]]) -> S:
    """Validate raw input against a schema.

    Raises:
        ValidationError: With every problem joined into one message
    """
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(validation_failed(error_messages(e))) from None


class BaseService(Generic[E]):
    """CRUD, search and pagination for one resource.

    Subclasses bind a resource name, its create/update schemas and the fields
    a free-text query searches. Fields listed in ``unique_fields`` are checked
    before writing so duplicates surface as ConflictError with a readable
    message.
    """

    resource: str = ""
    create_schema: Optional[type[BaseModel]] = None
    update_schema: Optional[type[BaseModel]] = None
    searchable_fields: tuple[str, ...] = ()
    unique_fields: tuple[str, ...] = ()

    def __init__(self, db: Database):
        """Initialize service.

        Args:
            db: Database instance
        """
        self.db = db
        self.repository = db.get_repository(self.resource, self.searchable_fields)
        self.entity_name = self.repository.entity_name

    # Validation hooks

    def _create_values(self, dto: BaseModel) -> dict[str, Any]:
        return dto.model_dump()

    def _update_values(self, dto: BaseModel) -> dict[str, Any]:
        return dto.model_dump(exclude_unset=True)

    def _ensure_unique(self, values: dict[str, Any], exclude_id: Optional[int] = None) -> None:
        for field in self.unique_fields:
            value = values.get(field)
            if value is None:
                continue
            for existing in self.repository.list(with_deleted=True, **{field: value}):
                if existing.id != exclude_id:
                    raise ConflictError(duplicate_value(self.entity_name, field, value))

    # Writes

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> E:
        """Validate and persist a new record.

        Raises:
            ValidationError: If the input fails the create schema
            ConflictError: If a unique field is already taken
        """
        dto = validate(self.create_schema, data)
        values = self._create_values(dto)
        self._ensure_unique(values)
        return self.repository.create(values)

    def update(self, entity_id: int, data: Union[BaseModel, dict[str, Any]]) -> E:
        """Validate and apply a partial update.

        Raises:
            ValidationError: If the input fails the update schema
            NotFoundError: If the record does not exist
            ConflictError: If a unique field is already taken
        """
        dto = validate(self.update_schema, data)
        values = self._update_values(dto)
        self.require(entity_id)
        self._ensure_unique(values, exclude_id=entity_id)
        return self.repository.update(entity_id, values)

    def delete(self, entity_id: int) -> None:
        self.repository.delete(entity_id)

    def restore(self, entity_id: int) -> E:
        return self.repository.restore(entity_id)

    def hard_delete(self, entity_id: int) -> None:
        self.repository.hard_delete(entity_id)

    def bulk_create(self, rows: Sequence[Union[BaseModel, dict[str, Any]]]) -> list[E]:
        """Validate every row first, then persist them together."""
        values = [self._create_values(validate(self.create_schema, row)) for row in rows]
        for row_values in values:
            self._ensure_unique(row_values)
        return self.repository.bulk_create(values)

    def bulk_update(self, updates: Sequence[tuple[int, Union[BaseModel, dict[str, Any]]]]) -> list[E]:
        prepared = []
        for entity_id, data in updates:
            values = self._update_values(validate(self.update_schema, data))
            self._ensure_unique(values, exclude_id=entity_id)
            prepared.append((entity_id, values))
        return self.repository.bulk_update(prepared)

    def bulk_delete(self, entity_ids: Iterable[int]) -> int:
        return self.repository.bulk_delete(entity_ids)

    # Reads

    def find_by_id(self, entity_id: int, with_deleted: bool = False) -> Optional[E]:
        return self.repository.get(entity_id, with_deleted=with_deleted)

    def require(self, entity_id: int) -> E:
        """Get a live record or raise NotFoundError."""
        entity = self.repository.get(entity_id)
        if entity is None:
            raise NotFoundError(entity_not_found(self.entity_name, entity_id))
        return entity

    def find_all(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: Optional[str] = None,
        sort_order: str = "ASC",
        query: Optional[str] = None,
        fields: Optional[list[str]] = None,
        **filters: Any,
    ) -> Page[E]:
        """List live records one page at a time.

        Without ``sort_by`` the newest records come first.

        Raises:
            ValidationError: On bad paging values or unknown sort/search fields
        """
        page_query = validate(
            PageQuery,
            {
                "page": page,
                "limit": limit,
                "sort_by": sort_by,
                "sort_order": sort_order,
                "query": query,
                "fields": fields,
            },
        )
        return self.repository.find_all(page_query, **filters)

    def count(self, query: Optional[str] = None, fields: Optional[list[str]] = None, **filters: Any) -> int:
        return self.repository.count(query, fields, **filters)

    def exists(self, entity_id: int) -> bool:
        return self.repository.exists(entity_id)

    def find_by_field(self, field: str, value: Any) -> list[E]:
        return self.repository.find_by_field(field, value)

    def find_one_by_field(self, field: str, value: Any) -> Optional[E]:
        return self.repository.find_one_by_field(field, value)
