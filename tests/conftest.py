"""Shared fixtures: every test gets its own SQLite file under tmp_path."""
import asyncio
import dataclasses

import pytest
from fastapi.testclient import TestClient

from todo_users_api.db import ConnectionPool
from todo_users_api.main import create_app
from todo_users_api.repositories import TodoRepository, UserRepository
from todo_users_api.security import PasswordHasher
from todo_users_api.services import TodoService, UserService
from todo_users_api.settings import Settings

# Lowest bcrypt cost keeps the suite fast
TEST_ROUNDS = 4


def make_settings(tmp_path, **overrides) -> Settings:
    base = Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        db_pool_size=5,
        db_max_overflow=10,
        db_echo=False,
        bcrypt_rounds=TEST_ROUNDS,
        cors_allow_origins=["*"],
        enable_role_auth=False,
        admin_role="admin",
        rate_limit_max_requests=0,
        rate_limit_window_seconds=60,
        log_level="WARNING",
        log_format="text",
    )
    return dataclasses.replace(base, **overrides)


def user_payload(**overrides):
    payload = {
        "first_name": "Amrit",
        "last_name": "Techie",
        "email": "amrit@example.com",
        "phone_number": "0712345678",
        "password": "newPass123",
    }
    payload.update(overrides)
    return payload


def todo_payload(**overrides):
    payload = {
        "todo_name": "Buy milk",
        "description": "2L",
        "due_date": "2025-01-01",
        "user_id": 1,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def pool(tmp_path):
    p = ConnectionPool(f"sqlite:///{tmp_path / 'repo.db'}")
    asyncio.run(p.initialize())
    yield p
    p.dispose()


@pytest.fixture
def engine(pool):
    return pool.acquire()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def todo_repo(engine) -> TodoRepository:
    return TodoRepository(engine)


@pytest.fixture
def user_repo(engine) -> UserRepository:
    return UserRepository(engine)


@pytest.fixture
def todo_service(todo_repo) -> TodoService:
    return TodoService(todo_repo)


@pytest.fixture
def user_service(user_repo, hasher) -> UserService:
    return UserService(user_repo, hasher)
