from __future__ import annotations

from typing import Optional


# PUBLIC_INTERFACE
class StoreError(Exception):
    """
    Raised when the store cannot complete a statement: connectivity failure,
    malformed statement or constraint violation.

    Never retried inside the service; the HTTP layer renders it as a 500.
    """

    def __init__(self, operation: str, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message
        self.cause = cause


# PUBLIC_INTERFACE
class PoolNotInitializedError(RuntimeError):
    """Raised when the connection pool is acquired before initialization completed."""
