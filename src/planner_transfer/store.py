"""Table store used by the import/export services.

The services only rely on a small per-table contract: ``clear``, ``bulk_add``,
``to_array`` and ``get``. ``SqlAlchemyStore`` implements it on top of the
planner's SQLAlchemy models; every operation runs in its own transaction, so a
single bulk insert is atomic while a sequence of them is not.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Type

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from .database import get_session_factory
from .models import Category, DailyPlan, JournalEntry, Project, Task, WorkSchedule
from .models.base import Base

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# Logical table name -> ORM model, in the fixed import/export order
TABLE_MODELS: Dict[str, Type[Base]] = {
    "tasks": Task,
    "projects": Project,
    "categories": Category,
    "dailyPlans": DailyPlan,
    "workSchedules": WorkSchedule,
    "journalEntries": JournalEntry,
}

TABLE_NAMES = tuple(TABLE_MODELS)


class StorageError(RuntimeError):
    """Raised when a store operation fails."""
    pass


class TableStore(Protocol):
    """Operations the services need on a single table."""

    name: str

    def clear(self) -> None: ...

    def bulk_add(self, records: Sequence[Record]) -> None: ...

    def to_array(self) -> List[Record]: ...

    def get(self, record_id: str) -> Optional[Record]: ...


class DataStore(Protocol):
    """A named collection of tables."""

    def table(self, name: str) -> TableStore: ...

    def save_table(self, name: str, records: Sequence[Record]) -> None: ...


@contextmanager
def storage_operation(operation: str) -> Iterator[None]:
    """Re-raise any failure inside the block as a StorageError naming the operation."""
    try:
        yield
    except StorageError:
        raise
    except Exception as e:
        logger.error(f"Storage operation '{operation}' failed: {e}", exc_info=True)
        raise StorageError(f"Failed to {operation}: {e}") from e


class SqlAlchemyTable:
    """TableStore backed by one SQLAlchemy model."""

    def __init__(self, name: str, model: Type[Base], session_factory: sessionmaker):
        self.name = name
        self.model = model
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        with self._session_factory() as db, db.begin():
            yield db

    def clear(self) -> None:
        with storage_operation(f"clear {self.name}"), self._transaction() as db:
            db.execute(delete(self.model))

    def bulk_add(self, records: Sequence[Record]) -> None:
        """Insert all records in one transaction; any failure rolls back the whole batch."""
        with storage_operation(f"bulk add {self.name}"), self._transaction() as db:
            db.add_all([self.model.from_record(record) for record in records])

    def to_array(self) -> List[Record]:
        """Return every row as a serialized record, in insertion order."""
        with storage_operation(f"read {self.name}"), self._session_factory() as db:
            rows = db.execute(select(self.model).order_by(self.model.row_id)).scalars().all()
            return [row.to_record() for row in rows]

    def get(self, record_id: str) -> Optional[Record]:
        with storage_operation(f"get {self.name} {record_id}"), self._session_factory() as db:
            row = db.execute(
                select(self.model).where(self.model.id == record_id)
            ).scalar_one_or_none()
            return row.to_record() if row is not None else None

    def count(self) -> int:
        with storage_operation(f"count {self.name}"), self._session_factory() as db:
            return db.execute(select(func.count()).select_from(self.model)).scalar_one()


class SqlAlchemyStore:
    """DataStore over the planner's SQLAlchemy tables.

    Args:
        session_factory: sessionmaker bound to an engine whose schema has been created
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._tables = {
            name: SqlAlchemyTable(name, model, session_factory)
            for name, model in TABLE_MODELS.items()
        }

    def table(self, name: str) -> SqlAlchemyTable:
        try:
            return self._tables[name]
        except KeyError:
            raise ValueError(f"Unknown table '{name}'. Must be one of: {list(TABLE_NAMES)}")

    def save_table(self, name: str, records: Sequence[Record]) -> None:
        """Replace a table's contents with ``records`` in a single transaction."""
        model = self.table(name).model
        with storage_operation(f"save {name}"), self._session_factory() as db, db.begin():
            db.execute(delete(model))
            if records:
                db.add_all([model.from_record(record) for record in records])
        logger.info(f"Saved {len(records)} records to {name}")


def get_store() -> SqlAlchemyStore:
    """FastAPI dependency returning a store over the configured database."""
    return SqlAlchemyStore(get_session_factory())
