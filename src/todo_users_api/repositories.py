from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import todos_table, users_table
from .errors import StoreError
from .models import BulkItemResult

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
BulkItem = Tuple[int, Mapping[str, Any]]
T = TypeVar("T")


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract data-access contract shared by the Todo and User resources."""

    @abstractmethod
    def list_all(self) -> List[Record]:
        """Return every record, possibly an empty list."""

    @abstractmethod
    def get_by_id(self, resource_id: int) -> Optional[Record]:
        """Return a record by id, or None if not found."""

    @abstractmethod
    def get_by_unique_key(self, key: str) -> Optional[Record]:
        """Return a record by its unique key, or None if not found."""

    @abstractmethod
    def create(self, fields: Mapping[str, Any]) -> Optional[Record]:
        """Insert a record and return it, or None if no row was affected."""

    @abstractmethod
    def update_full(self, resource_id: int, fields: Mapping[str, Any]) -> Optional[Record]:
        """
        Replace every writable column of a record. Columns missing from fields are
        written as empty/zero. Return the updated record, or None if no row matched.
        """

    @abstractmethod
    def update_partial(self, resource_id: int, fields: Mapping[str, Any]) -> Optional[Record]:
        """Write only the supplied columns. Return the updated record, or None if no row matched."""

    @abstractmethod
    def update_bulk(self, items: Sequence[BulkItem]) -> List[BulkItemResult]:
        """
        Apply update_full to each (id, fields) pair in order. A failing item is
        reported in its own result and never aborts the rest of the batch.
        """

    @abstractmethod
    def delete(self, resource_id: int) -> bool:
        """Delete a record by id. Return True if exactly one row was removed."""


class SQLRepository(Repository):
    """
    Repository backed by the shared SQLAlchemy engine.

    Every operation is a single parameterized statement run in its own
    transaction. Subclasses describe the table; no state is kept between calls.
    """

    resource: ClassVar[str]
    table: ClassVar[Table]
    id_column: ClassVar[str]
    unique_key: ClassVar[Optional[str]] = None
    # Value written by update_full for a column the caller did not supply
    empty_values: ClassVar[Dict[str, Any]]
    # Columns update_full leaves untouched when the caller did not supply them
    preserved_when_absent: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def _id(self):
        return self.table.c[self.id_column]

    def _writable(self, fields: Mapping[str, Any]) -> Record:
        writable = set(self.empty_values) | set(self.preserved_when_absent)
        return {k: v for k, v in fields.items() if k in writable}

    def _full_row(self, fields: Mapping[str, Any]) -> Record:
        row: Record = {}
        for column, empty in self.empty_values.items():
            value = fields.get(column)
            row[column] = empty if value is None else value
        for column in self.preserved_when_absent:
            if fields.get(column):
                row[column] = fields[column]
        return row

    def _run(self, operation: str, work: Callable[[Connection], T]) -> T:
        try:
            with self._engine.begin() as conn:
                return work(conn)
        except SQLAlchemyError as e:
            logger.error(
                "%s %s failed: %s",
                self.resource,
                operation,
                e,
                extra={"resource": self.resource, "operation": operation},
            )
            raise StoreError(operation, f"{self.resource} {operation} failed ({type(e).__name__})", e) from e

    @staticmethod
    def _single(rows: Sequence[Any]) -> Optional[Record]:
        # Exactly one affected row counts as success
        return dict(rows[0]) if len(rows) == 1 else None

    def list_all(self) -> List[Record]:
        stmt = select(self.table).order_by(self._id)
        return self._run("list_all", lambda conn: [dict(r) for r in conn.execute(stmt).mappings()])

    def get_by_id(self, resource_id: int) -> Optional[Record]:
        stmt = select(self.table).where(self._id == resource_id)
        row = self._run("get_by_id", lambda conn: conn.execute(stmt).mappings().first())
        return dict(row) if row is not None else None

    def get_by_unique_key(self, key: str) -> Optional[Record]:
        if self.unique_key is None:
            raise NotImplementedError(f"{self.resource} has no unique key besides its id")
        stmt = select(self.table).where(self.table.c[self.unique_key] == key)
        row = self._run("get_by_unique_key", lambda conn: conn.execute(stmt).mappings().first())
        return dict(row) if row is not None else None

    def create(self, fields: Mapping[str, Any]) -> Optional[Record]:
        stmt = insert(self.table).values(**self._writable(fields)).returning(*self.table.c)
        created = self._run("create", lambda conn: self._single(conn.execute(stmt).mappings().all()))
        if created is None:
            logger.warning("%s create affected no rows", self.resource)
        return created

    def update_full(self, resource_id: int, fields: Mapping[str, Any]) -> Optional[Record]:
        stmt = (
            update(self.table)
            .where(self._id == resource_id)
            .values(**self._full_row(fields))
            .returning(*self.table.c)
        )
        return self._run("update_full", lambda conn: self._single(conn.execute(stmt).mappings().all()))

    def update_partial(self, resource_id: int, fields: Mapping[str, Any]) -> Optional[Record]:
        values = self._writable(fields)
        if not values:
            return self.get_by_id(resource_id)
        stmt = update(self.table).where(self._id == resource_id).values(**values).returning(*self.table.c)
        return self._run("update_partial", lambda conn: self._single(conn.execute(stmt).mappings().all()))

    def update_bulk(self, items: Sequence[BulkItem]) -> List[BulkItemResult]:
        results: List[BulkItemResult] = []
        for index, (resource_id, fields) in enumerate(items):
            try:
                record = self.update_full(resource_id, fields)
            except StoreError as e:
                results.append(BulkItemResult(index=index, resource_id=resource_id, ok=False, error=e.message))
                continue
            if record is None:
                results.append(
                    BulkItemResult(index=index, resource_id=resource_id, ok=False, error="No rows affected")
                )
            else:
                results.append(BulkItemResult(index=index, resource_id=resource_id, ok=True, record=record))
        failed = sum(1 for r in results if not r.ok)
        if failed:
            logger.warning("%s bulk update: %d of %d items failed", self.resource, failed, len(results))
        return results

    def delete(self, resource_id: int) -> bool:
        stmt = delete(self.table).where(self._id == resource_id)
        return self._run("delete", lambda conn: conn.execute(stmt).rowcount == 1)


# PUBLIC_INTERFACE
class TodoRepository(SQLRepository):
    """Data access for the Todos table."""

    resource = "todo"
    table = todos_table
    id_column = "todo_id"
    empty_values = {
        "todo_name": "",
        "description": "",
        "due_date": "",
        "user_id": 0,
    }

    def get_by_unique_key(self, key: str) -> Optional[Record]:
        """
        Todos have no unique column besides todo_id, so no key identifies one.
        Always returns None, the not-found result, without touching the store.
        """
        return None


# PUBLIC_INTERFACE
class UserRepository(SQLRepository):
    """
    Data access for the Users table, keyed by email for identity lookups.

    The password column only ever receives digests produced by the service
    layer; update_full leaves it untouched when no digest is supplied.
    """

    resource = "user"
    table = users_table
    id_column = "user_id"
    unique_key = "email"
    empty_values = {
        "first_name": "",
        "last_name": "",
        "email": "",
        "phone_number": "",
        "user_type": None,
    }
    preserved_when_absent = ("password",)

    def get_by_email(self, email: str) -> Optional[Record]:
        return self.get_by_unique_key(email)
