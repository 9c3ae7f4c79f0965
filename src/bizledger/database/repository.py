"""Generic SQLAlchemy repository shared by every resource."""

import logging
from datetime import date, datetime, UTC
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Sequence

from sqlalchemy import String, cast, or_
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query

from bizledger.database.base import Repository
from bizledger.domain.dtos import PageQuery
from bizledger.domain.entities import Page
from bizledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    entity_not_found,
)

if TYPE_CHECKING:
    from bizledger.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLAlchemyRepository(Repository):
    """Repository over one SQLAlchemy model.

    Field names coming from callers (sort, search, filters, values) are checked
    against the model's columns before use; an unknown name raises
    ValidationError. Search fields may name a column of a related model with a
    dotted path such as ``customer.name``.
    """

    def __init__(
        self,
        db: "SQLAlchemyDatabase",
        resource: str,
        model: type,
        entity_name: str,
        mapper: Callable[[Any], Any],
        searchable_fields: Sequence[str] = (),
    ):
        self.db = db
        self.resource = resource
        self.model = model
        self.entity_name = entity_name
        self.mapper = mapper
        self.searchable_fields = list(searchable_fields)
        mapper_info = sa_inspect(model)
        self._columns = {attr.key for attr in mapper_info.column_attrs}
        self._relationships = {rel.key: rel for rel in mapper_info.relationships}
        self.soft_delete = "deleted_at" in self._columns

    # Helpers

    @property
    def session(self):
        return self.db.get_session()

    def _query(self, with_deleted: bool = False) -> Query:
        query = self.session.query(self.model)
        if self.soft_delete and not with_deleted:
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def _column(self, field: str):
        if field not in self._columns:
            raise ValidationError(f"Unknown field '{field}' for {self.entity_name}")
        return getattr(self.model, field)

    def _search_column(self, path: str):
        """Resolve a search path to (column, relationship or None)."""
        if "." not in path:
            return self._column(path), None
        rel_name, column_name = path.split(".", 1)
        rel = self._relationships.get(rel_name)
        if rel is None:
            raise ValidationError(f"Unknown field '{path}' for {self.entity_name}")
        target = rel.mapper.class_
        if column_name not in {attr.key for attr in rel.mapper.column_attrs}:
            raise ValidationError(f"Unknown field '{path}' for {self.entity_name}")
        return getattr(target, column_name), rel

    def _apply_filters(self, query: Query, filters: dict[str, Any]) -> Query:
        for field, value in filters.items():
            column = self._column(field)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            elif value is None:
                query = query.filter(column.is_(None))
            else:
                query = query.filter(column == value)
        return query

    def _apply_search(self, query: Query, text: Optional[str], fields: Optional[list[str]]) -> Query:
        if not text:
            return query
        paths = fields if fields else self.searchable_fields
        if not paths:
            return query

        pattern = f"%{_escape_like(text)}%"
        conditions = []
        joined: set[str] = set()
        for path in paths:
            column, rel = self._search_column(path)
            if rel is not None and rel.key not in joined:
                query = query.outerjoin(getattr(self.model, rel.key))
                if rel.uselist:
                    query = query.distinct()
                joined.add(rel.key)
            conditions.append(cast(column, String).ilike(pattern, escape="\\"))
        return query.filter(or_(*conditions))

    def _apply_sort(self, query: Query, sort_by: Optional[str], sort_order: str) -> Query:
        if sort_by is None:
            return query.order_by(self.model.created_at.desc(), self.model.id.desc())
        column = self._column(sort_by)
        if sort_order == "DESC":
            return query.order_by(column.desc(), self.model.id.desc())
        return query.order_by(column.asc(), self.model.id.asc())

    def _check_values(self, values: dict[str, Any]) -> None:
        for field in values:
            if field not in self._columns or field == "id":
                raise ValidationError(f"Unknown field '{field}' for {self.entity_name}")

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"{self.entity_name} conflicts with an existing record ({e.orig})"
            ) from e

    def _require_row(self, entity_id: int, with_deleted: bool = False):
        row = self._query(with_deleted).filter(self.model.id == entity_id).first()
        if row is None:
            raise NotFoundError(entity_not_found(self.entity_name, entity_id))
        return row

    # Repository contract

    def create(self, values: dict[str, Any]):
        """Persist a new row and return it."""
        self._check_values(values)
        row = self.model(**values)
        self.session.add(row)
        self._commit()
        logger.debug("Created %s %s", self.resource, row.id)
        return self.mapper(row)

    def bulk_create(self, rows: Sequence[dict[str, Any]]) -> list:
        """Persist many rows at once."""
        for values in rows:
            self._check_values(values)
        objects = [self.model(**values) for values in rows]
        self.session.add_all(objects)
        self._commit()
        logger.debug("Created %d %s rows", len(objects), self.resource)
        return [self.mapper(obj) for obj in objects]

    def get(self, entity_id: int, with_deleted: bool = False):
        """Get a row by ID, or None."""
        row = self._query(with_deleted).filter(self.model.id == entity_id).first()
        if row is None:
            return None
        return self.mapper(row)

    def find_all(self, page_query: PageQuery, **filters: Any) -> Page:
        """Paginated, sorted and searched listing of live rows."""
        query = self._apply_filters(self._query(), filters)
        query = self._apply_search(query, page_query.query, page_query.fields)
        total = query.count()
        query = self._apply_sort(query, page_query.sort_by, page_query.sort_order)
        rows = query.offset(page_query.offset).limit(page_query.limit).all()
        logger.debug(
            "find_all %s page=%d limit=%d query=%r -> %d/%d",
            self.resource,
            page_query.page,
            page_query.limit,
            page_query.query,
            len(rows),
            total,
        )
        return Page(
            data=[self.mapper(row) for row in rows],
            total=total,
            page=page_query.page,
            limit=page_query.limit,
        )

    def count(self, query: Optional[str] = None, fields: Optional[list[str]] = None, **filters: Any) -> int:
        """Count live rows with the same search semantics as find_all."""
        base = self._apply_filters(self._query(), filters)
        return self._apply_search(base, query, fields).count()

    def exists(self, entity_id: int) -> bool:
        """Check whether a live row with this ID exists."""
        return self._query().filter(self.model.id == entity_id).count() > 0

    def update(self, entity_id: int, values: dict[str, Any]):
        """Update a live row. Raises NotFoundError if missing."""
        self._check_values(values)
        row = self._require_row(entity_id)
        for field, value in values.items():
            setattr(row, field, value)
        self._commit()
        logger.debug("Updated %s %s: %s", self.resource, entity_id, sorted(values))
        return self.mapper(row)

    def bulk_update(self, updates: Sequence[tuple[int, dict[str, Any]]]) -> list:
        """Update many rows; every ID must exist before anything changes."""
        rows = []
        for entity_id, values in updates:
            self._check_values(values)
            rows.append((self._require_row(entity_id), values))
        for row, values in rows:
            for field, value in values.items():
                setattr(row, field, value)
        self._commit()
        return [self.mapper(row) for row, _ in rows]

    def delete(self, entity_id: int) -> None:
        """Soft delete a row (hard delete when the table has no soft-delete marker)."""
        if not self.soft_delete:
            self.hard_delete(entity_id)
            return
        row = self._require_row(entity_id)
        row.deleted_at = datetime.now(UTC)
        self._commit()
        logger.info("Soft deleted %s %s", self.resource, entity_id)

    def bulk_delete(self, entity_ids: Iterable[int]) -> int:
        """Soft delete many rows. Returns the number deleted."""
        ids = list(entity_ids)
        rows = [self._require_row(entity_id) for entity_id in ids]
        now = datetime.now(UTC)
        for row in rows:
            if self.soft_delete:
                row.deleted_at = now
            else:
                self.session.delete(row)
        self._commit()
        logger.info("Deleted %d %s rows", len(rows), self.resource)
        return len(rows)

    def restore(self, entity_id: int):
        """Clear the soft-delete marker of a row."""
        row = self._require_row(entity_id, with_deleted=True)
        if self.soft_delete and row.deleted_at is not None:
            row.deleted_at = None
            self._commit()
            logger.info("Restored %s %s", self.resource, entity_id)
        return self.mapper(row)

    def hard_delete(self, entity_id: int) -> None:
        """Physically delete a row."""
        row = self._require_row(entity_id, with_deleted=True)
        self.session.delete(row)
        self._commit()
        logger.info("Hard deleted %s %s", self.resource, entity_id)

    def find_by_field(self, field: str, value: Any) -> list:
        """All live rows where field equals value."""
        rows = self._apply_filters(self._query(), {field: value}).order_by(self.model.id).all()
        return [self.mapper(row) for row in rows]

    def find_one_by_field(self, field: str, value: Any):
        """First live row where field equals value."""
        row = self._apply_filters(self._query(), {field: value}).order_by(self.model.id).first()
        if row is None:
            return None
        return self.mapper(row)

    def list(
        self,
        between: Optional[tuple[str, Optional[date], Optional[date]]] = None,
        order_by: Optional[Sequence[str]] = None,
        with_deleted: bool = False,
        **equals: Any,
    ) -> list:
        """Unpaginated filtered fetch, ordered by ID unless order_by is given."""
        query = self._apply_filters(self._query(with_deleted), equals)
        if between is not None:
            field, start, end = between
            column = self._column(field)
            if start is not None:
                query = query.filter(column >= start)
            if end is not None:
                query = query.filter(column <= end)

        if order_by:
            for name in order_by:
                descending = name.startswith("-")
                column = self._column(name.lstrip("-"))
                query = query.order_by(column.desc() if descending else column.asc())
        query = query.order_by(self.model.id.asc())

        rows = query.all()
        logger.debug("list %s -> %d rows", self.resource, len(rows))
        return [self.mapper(row) for row in rows]
