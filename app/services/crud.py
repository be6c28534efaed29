"""Generic CRUD facade over any ORM model with a single identity column.

A repository is composed per entity (`CrudRepository(db, User)`), not
subclassed. Business failures are raised as domain errors and left for the
error normalizer; only `exists` turns failures into a plain `False`.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.db_errors import classify_integrity_error
from app.core.errors import InvalidInputError, NotFoundError
from app.models.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

MAX_PAGE_SIZE = 100

# Widest integer key any supported backend can store (signed 64-bit).
MAX_INT_ID = 2**63 - 1


@dataclass
class Page(Generic[ModelT]):
    """One window of rows plus the totals needed to navigate the rest."""

    data: list[ModelT]
    total: int
    page: int
    limit: int
    total_pages: int


class CrudRepository(Generic[ModelT]):
    """Uniform create/read/update/delete/paginate operations for one model."""

    def __init__(self, db: Session, model: type[ModelT], id_field: str = "id") -> None:
        self.db = db
        self.model = model
        self.id_field = id_field
        self.entity_name = model.__name__
        self._columns = {c.key: c for c in sa_inspect(model).columns}
        if id_field not in self._columns:
            raise ValueError(f"{self.entity_name} has no column {id_field!r}")

    @property
    def _id_column(self) -> Any:
        return getattr(self.model, self.id_field)

    def get_all(self) -> list[ModelT]:
        return list(self.db.scalars(select(self.model)).all())

    def get_by_id(self, id: int | str) -> ModelT:
        self._require_id(id)
        if not self._storable(id):
            raise NotFoundError(f"{self.entity_name} with ID {id} not found")
        entity = self.db.scalars(select(self.model).where(self._id_column == id)).first()
        if entity is None:
            raise NotFoundError(f"{self.entity_name} with ID {id} not found")
        return entity

    def create(self, data: dict[str, Any]) -> ModelT:
        if not data:
            raise InvalidInputError("Data for creation is required")
        self._check_fields(data)
        entity = self.model(**data)
        self.db.add(entity)
        self._commit()
        self.db.refresh(entity)
        return entity

    def update(self, id: int | str, data: dict[str, Any]) -> ModelT:
        """
        Shallow merge: every key present in `data` overwrites the stored value,
        absent keys are left untouched. The identity field cannot be changed.
        An explicit None clears a nullable column and is rejected for a required one.
        """
        self._require_id(id)
        changes = {k: v for k, v in (data or {}).items() if k != self.id_field}
        if not changes:
            raise InvalidInputError("Data for update is required")
        self._check_fields(changes)
        for key, value in changes.items():
            if value is None and not self._columns[key].nullable:
                raise InvalidInputError(f"{key} cannot be null")

        entity = self.get_by_id(id)
        for key, value in changes.items():
            setattr(entity, key, value)
        self._commit()
        self.db.refresh(entity)
        return entity

    def delete(self, id: int | str) -> None:
        entity = self.get_by_id(id)
        self.db.delete(entity)
        self._commit()

    def get_paginated(self, page: int = 1, limit: int = 10) -> Page[ModelT]:
        if page < 1:
            raise InvalidInputError("Page must be greater than 0")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise InvalidInputError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        total = self.db.scalar(select(func.count()).select_from(self.model)) or 0
        rows = self.db.scalars(
            select(self.model)
            .order_by(self._id_column)
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return Page(
            data=list(rows),
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    def exists(self, id: int | str | None) -> bool:
        if id is None or id == "":
            return False
        if not self._storable(id):
            return False
        try:
            count = self.db.scalar(
                select(func.count()).select_from(self.model).where(self._id_column == id)
            )
        except SQLAlchemyError:
            logger.warning(
                "Existence check failed",
                extra={"entity": self.entity_name, "entity_id": id},
                exc_info=True,
            )
            return False
        return bool(count)

    def _require_id(self, id: int | str | None) -> None:
        if id is None or id == "":
            raise InvalidInputError("ID is required")

    def _storable(self, id: int | str) -> bool:
        """False for integer ids outside the range the driver can bind."""
        if isinstance(id, int) and not isinstance(id, bool):
            return -MAX_INT_ID - 1 <= id <= MAX_INT_ID
        return True

    def _check_fields(self, data: dict[str, Any]) -> None:
        unknown = sorted(set(data) - set(self._columns))
        if unknown:
            raise InvalidInputError(f"Unknown field(s): {', '.join(unknown)}")

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise classify_integrity_error(e) from e
