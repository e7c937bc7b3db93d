from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.engine import Engine

from .db import ConnectionPool
from .repositories import TodoRepository, UserRepository
from .security import PasswordHasher
from .services import TodoService, UserService
from .settings import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pool(request: Request) -> ConnectionPool:
    return request.app.state.pool


def get_engine(pool: ConnectionPool = Depends(get_pool)) -> Engine:
    return pool.acquire()


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


# PUBLIC_INTERFACE
def get_todo_service(engine: Engine = Depends(get_engine)) -> TodoService:
    """Build a TodoService over the shared engine for one request."""
    return TodoService(TodoRepository(engine))


# PUBLIC_INTERFACE
def get_user_service(
    engine: Engine = Depends(get_engine),
    hasher: PasswordHasher = Depends(get_hasher),
) -> UserService:
    """Build a UserService over the shared engine for one request."""
    return UserService(UserRepository(engine), hasher)
