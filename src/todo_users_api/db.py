"""
Connection pool provider and table definitions.

The pool wraps a single SQLAlchemy Engine whose QueuePool multiplexes
connections across concurrent requests. It is built once by the application
lifespan, before any request is served, and handed to every repository.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    text,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .errors import PoolNotInitializedError, StoreError

logger = logging.getLogger(__name__)

metadata = MetaData()

todos_table = Table(
    "Todos",
    metadata,
    Column("todo_id", Integer, primary_key=True, autoincrement=True),
    Column("todo_name", String(200), nullable=False),
    Column("description", Text, nullable=False),
    Column("due_date", String(64), nullable=False),
    # References Users.user_id; left unconstrained so a store without the user row still accepts the todo.
    Column("user_id", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

users_table = Table(
    "Users",
    metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone_number", String(32), nullable=False),
    Column("user_type", String(50), nullable=True),
    Column("password", String(255), nullable=False),
)


def _build_engine(database_url: str, pool_size: int, max_overflow: int, echo: bool) -> Engine:
    url = make_url(database_url)
    kwargs: Dict[str, Any] = {"echo": echo}

    if url.get_backend_name() == "sqlite":
        # The engine is shared by FastAPI's worker threads
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # One connection keeps an in-memory database alive across calls
            kwargs["poolclass"] = StaticPool
        else:
            os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)
            kwargs["pool_size"] = pool_size
            kwargs["max_overflow"] = max_overflow
    else:
        kwargs["pool_size"] = pool_size
        kwargs["max_overflow"] = max_overflow
        kwargs["pool_pre_ping"] = True
        kwargs["pool_recycle"] = 3600

    return create_engine(database_url, **kwargs)


# PUBLIC_INTERFACE
class ConnectionPool:
    """
    Process-wide provider of the shared database handle.

    Usage:
        pool = ConnectionPool(settings.database_url)
        await pool.initialize()      # fatal on failure
        engine = pool.acquire()      # same Engine on every call
    """

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ) -> None:
        self._database_url = database_url
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._echo = echo
        self._engine: Optional[Engine] = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> Engine:
        """
        Build the engine, check connectivity and create missing tables.

        Raises:
            StoreError if the store is unreachable or the schema cannot be created.
        """
        if self._engine is not None:
            return self._engine

        try:
            engine = _build_engine(self._database_url, self._pool_size, self._max_overflow, self._echo)
        except (SQLAlchemyError, ValueError) as e:
            logger.error("Invalid database configuration: %s", e)
            raise StoreError("initialize", "invalid database configuration", e) from e

        try:
            await asyncio.to_thread(self._prepare, engine)
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error("Failed to initialize database connection: %s", e)
            raise StoreError("initialize", "failed to initialize database connection", e) from e

        self._engine = engine
        logger.info("Database connection pool initialized (%s)", engine.url.get_backend_name())
        return engine

    @staticmethod
    def _prepare(engine: Engine) -> None:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        metadata.create_all(engine)

    def acquire(self) -> Engine:
        """Return the shared Engine. Raises PoolNotInitializedError before initialize()."""
        if self._engine is None:
            raise PoolNotInitializedError("Database connection pool is not initialized")
        return self._engine

    def health_check(self) -> bool:
        """Check database connectivity (for the health route)."""
        if self._engine is None:
            return False
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database health check failed: %s", e)
            return False

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection pool disposed")
