import asyncio

import pytest
from sqlalchemy import inspect

from todo_users_api.db import ConnectionPool
from todo_users_api.errors import PoolNotInitializedError, StoreError


class TestConnectionPool:
    def test_acquire_before_initialize_fails(self, tmp_path):
        pool = ConnectionPool(f"sqlite:///{tmp_path / 'db.sqlite'}")
        assert pool.is_initialized is False
        with pytest.raises(PoolNotInitializedError):
            pool.acquire()

    def test_acquire_returns_same_handle(self, pool):
        assert pool.is_initialized is True
        assert pool.acquire() is pool.acquire()

    def test_initialize_is_idempotent(self, pool):
        engine = pool.acquire()
        assert asyncio.run(pool.initialize()) is engine

    def test_initialize_creates_tables(self, engine):
        tables = set(inspect(engine).get_table_names())
        assert {"Todos", "Users"} <= tables

    def test_initialize_creates_missing_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "app.db"
        pool = ConnectionPool(f"sqlite:///{path}")
        asyncio.run(pool.initialize())
        try:
            assert path.exists()
        finally:
            pool.dispose()

    def test_in_memory_database(self):
        pool = ConnectionPool("sqlite://")
        asyncio.run(pool.initialize())
        try:
            assert pool.health_check() is True
        finally:
            pool.dispose()

    def test_invalid_url_is_fatal(self):
        pool = ConnectionPool("definitely not a database url")
        with pytest.raises(StoreError):
            asyncio.run(pool.initialize())
        assert pool.is_initialized is False

    def test_health_check(self, tmp_path):
        pool = ConnectionPool(f"sqlite:///{tmp_path / 'db.sqlite'}")
        assert pool.health_check() is False
        asyncio.run(pool.initialize())
        assert pool.health_check() is True
        pool.dispose()
        assert pool.health_check() is False
        with pytest.raises(PoolNotInitializedError):
            pool.acquire()
