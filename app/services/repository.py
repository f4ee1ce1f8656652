"""
Owner-scoped data access.

Every query built here carries the owner filter, so call sites cannot
forget it and read another user's records.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.core.exceptions import DuplicateRecordError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Largest value a 64-bit signed primary key can hold.
MAX_RECORD_ID = 2 ** 63 - 1


@dataclass
class Page(Generic[ModelT]):
    items: List[ModelT]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    def pagination(self) -> Dict[str, int]:
        return {"current": self.page, "pages": self.pages, "total": self.total, "limit": self.limit}


class OwnerScopedRepository(Generic[ModelT]):
    """CRUD for one model, restricted to a single owner's rows."""

    def __init__(self, db: Session, model: Type[ModelT], owner_id: str, label: str = "Record"):
        if not owner_id:
            raise ValueError("owner_id is required")
        self.db = db
        self.model = model
        self.owner_id = str(owner_id)
        self.label = label

    def query(self) -> Query:
        return self.db.query(self.model).filter(self.model.owner_id == self.owner_id)

    def scoped(self, *criteria) -> Query:
        """Owner-filtered query with extra criteria, for aggregates and projections."""
        return self.db.query(*criteria).filter(self.model.owner_id == self.owner_id)

    def get(self, record_id: Any) -> ModelT:
        try:
            record_id = int(record_id)
        except (TypeError, ValueError):
            raise NotFoundError(f"{self.label} not found")
        if not 1 <= record_id <= MAX_RECORD_ID:
            raise NotFoundError(f"{self.label} not found")
        record = self.query().filter(self.model.id == record_id).first()
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 50,
    ) -> Page[ModelT]:
        query = self.query()
        for column_name, value in (filters or {}).items():
            if value is None:
                continue
            query = query.filter(getattr(self.model, column_name) == value)

        total = query.count()

        sort_column = getattr(self.model, sort_by, None)
        if sort_column is None:
            sort_column = self.model.created_at
        ordering = sort_column.desc() if sort_order == "desc" else sort_column.asc()
        query = query.order_by(ordering, self.model.id.desc() if sort_order == "desc" else self.model.id.asc())

        items = query.offset((page - 1) * limit).limit(limit).all()
        return Page(items=items, page=page, limit=limit, total=total)

    def add(self, record: ModelT) -> ModelT:
        record.owner_id = self.owner_id
        self.db.add(record)
        self._commit()
        self.db.refresh(record)
        return record

    def save(self, record: ModelT) -> ModelT:
        if record.owner_id != self.owner_id:
            raise NotFoundError(f"{self.label} not found")
        self._commit()
        self.db.refresh(record)
        return record

    def delete(self, record_id: Any) -> None:
        record = self.get(record_id)
        self.db.delete(record)
        self._commit()

    def _commit(self):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error saving {self.label.lower()}: {e.orig}")
            if "unique" in str(e.orig).lower() or "duplicate" in str(e.orig).lower():
                raise DuplicateRecordError(f"{self.label} already exists")
            raise PersistenceError(f"Could not save {self.label.lower()}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error saving {self.label.lower()}: {e}")
            raise PersistenceError(f"Could not save {self.label.lower()}")
