from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import ConnectionPool
from .errors import PoolNotInitializedError, StoreError
from .logging_config import setup_logging
from .ratelimit import FixedWindowRateLimiter, RateLimiter
from .routers import todos as todos_router
from .routers import users as users_router
from .security import PasswordHasher
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "CRUD operations for Todo items, including bulk replacement."},
    {"name": "users", "description": "CRUD operations for users; passwords are stored hashed."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup/shutdown lifecycle.

    The pool must be initialized before the first request is served; an
    initialization failure propagates and the server does not start.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    await app.state.pool.initialize()
    logger.info("Todo Users API started")
    try:
        yield
    finally:
        app.state.pool.dispose()
        logger.info("Todo Users API shutting down")


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Only unmatched paths get the envelope; route-level 404s keep their detail
        if exc.status_code == 404 and "endpoint" not in request.scope:
            return JSONResponse(
                status_code=404,
                content={"success": False, "message": "Route not found", "path": request.url.path},
            )
        return await http_exception_handler(request, exc)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error(
            "Store error on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            extra={"operation": exc.operation, "method": request.method, "path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"error": "StoreError", "message": "Database operation failed"})

    @app.exception_handler(PoolNotInitializedError)
    async def pool_error_handler(request: Request, exc: PoolNotInitializedError) -> JSONResponse:
        logger.critical("Request served before the connection pool was initialized")
        return JSONResponse(status_code=503, content={"error": "ServiceUnavailable", "message": str(exc)})


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, rate_limiter: Optional[RateLimiter] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: configuration; read from the environment when omitted.
        rate_limiter: limiter used by the middleware; built from settings when
            omitted, and disabled when RATE_LIMIT_MAX_REQUESTS is 0.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Todo Users API",
        description="Backend API service for managing todos and users over a pooled relational store.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.pool = ConnectionPool(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        echo=settings.db_echo,
    )
    if rate_limiter is None and settings.rate_limit_max_requests > 0:
        rate_limiter = FixedWindowRateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)
    app.state.rate_limiter = rate_limiter

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        limiter: Optional[RateLimiter] = request.app.state.rate_limiter
        key = request.client.host if request.client else "unknown"
        if limiter is not None and not limiter.allow(key):
            logger.warning("Rate limit exceeded for %s", key)
            return JSONResponse(status_code=429, content={"error": "Too many requests"})
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "%s %s %s %.2fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

    # Added last so it wraps every other middleware, 429 responses included
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and store connectivity.
        """
        return {"message": "Healthy", "database": request.app.state.pool.health_check()}

    # PUBLIC_INTERFACE
    @app.get("/api", summary="Route index", tags=["health"])
    def api_index():
        """List the available resource routes."""
        return {
            "message": "Welcome to the Todo Users API",
            "routes": {
                "todos": {
                    "getAll": "/api/todos [GET]",
                    "getById": "/api/todos/:todo_id [GET]",
                    "create": "/api/todos [POST]",
                    "updateBulk": "/api/todos [PUT]",
                    "update": "/api/todos/:todo_id [PUT]",
                    "patch": "/api/todos/:todo_id [PATCH]",
                    "delete": "/api/todos/:todo_id [DELETE]",
                },
                "users": {
                    "getAll": "/api/users [GET]",
                    "getById": "/api/users/:user_id [GET]",
                    "create": "/api/users [POST]",
                    "updateBulk": "/api/users [PUT]",
                    "update": "/api/users/:user_id [PUT]",
                    "patch": "/api/users/:user_id [PATCH]",
                    "delete": "/api/users/:user_id [DELETE]",
                },
            },
        }

    app.include_router(todos_router.router)
    app.include_router(users_router.router)
    return app


app = create_app()


def run() -> None:
    """Serve the module-level app; the lifespan initializes the pool before accepting requests."""
    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "3000")))


if __name__ == "__main__":
    run()
