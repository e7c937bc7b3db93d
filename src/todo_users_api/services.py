"""
Service façade over the repositories.

Each operation runs to a terminal outcome within one call:
received -> (existence check) -> rejected | mutated -> reported.
The existence check and the write are separate statements; a concurrent
delete in between surfaces as NO_ROWS_AFFECTED.
StoreError raised by a repository is never caught here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import BulkItemResult
from .repositories import Record, Repository, TodoRepository, UserRepository
from .security import PasswordHasher

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    OK = "ok"
    CREATED = "created"
    NOT_FOUND = "not_found"
    NO_ROWS_AFFECTED = "no_rows_affected"
    VALIDATION_FAILURE = "validation_failure"
    CONFLICT = "conflict"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ServiceResult:
    """Outcome of a façade call plus the message and data shown to the caller."""

    outcome: Outcome
    message: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.OK, Outcome.CREATED)


class ResourceService:
    """
    Pre-conditions and transforms shared by both resources.

    Subclasses set the display name used in messages and may override
    _prepare() to transform fields before they reach the repository.
    """

    name: ClassVar[str]

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def _prepare(self, fields: Mapping[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Return (fields to persist, None) or (None, validation message)."""
        return dict(fields), None

    def _not_found(self) -> ServiceResult:
        return ServiceResult(Outcome.NOT_FOUND, f"{self.name} not found")

    def list_all(self) -> List[Record]:
        return self.repo.list_all()

    def get(self, resource_id: int) -> Optional[Record]:
        return self.repo.get_by_id(resource_id)

    def create(self, fields: Mapping[str, Any]) -> ServiceResult:
        prepared, error = self._prepare(fields)
        if prepared is None:
            return ServiceResult(Outcome.VALIDATION_FAILURE, error or "Invalid data")
        created = self.repo.create(prepared)
        if created is None:
            return ServiceResult(Outcome.NO_ROWS_AFFECTED, f"Failed to create {self.name.lower()}")
        logger.info("%s created", self.name, extra={"resource": self.name.lower(), "operation": "create"})
        return ServiceResult(Outcome.CREATED, f"{self.name} Created Successfully", created)

    def update_full(self, resource_id: int, fields: Mapping[str, Any]) -> ServiceResult:
        return self._update(resource_id, fields, partial=False)

    def update_partial(self, resource_id: int, fields: Mapping[str, Any]) -> ServiceResult:
        return self._update(resource_id, fields, partial=True)

    def _update(self, resource_id: int, fields: Mapping[str, Any], *, partial: bool) -> ServiceResult:
        if self.repo.get_by_id(resource_id) is None:
            return self._not_found()
        prepared, error = self._prepare(fields)
        if prepared is None:
            return ServiceResult(Outcome.VALIDATION_FAILURE, error or "Invalid data")
        if partial:
            updated = self.repo.update_partial(resource_id, prepared)
        else:
            updated = self.repo.update_full(resource_id, prepared)
        if updated is None:
            return ServiceResult(Outcome.NO_ROWS_AFFECTED, f"Failed to update {self.name.lower()}")
        return ServiceResult(Outcome.OK, f"{self.name} Updated Successfully", updated)

    def update_bulk(self, items: Sequence[Tuple[int, Mapping[str, Any]]]) -> List[BulkItemResult]:
        """
        Update every (id, fields) pair in input order without an existence
        pre-check. Items rejected by _prepare are reported as failures and
        never reach the repository.
        """
        results: List[Optional[BulkItemResult]] = [None] * len(items)
        accepted: List[Tuple[int, Tuple[int, Dict[str, Any]]]] = []
        for index, (resource_id, fields) in enumerate(items):
            prepared, error = self._prepare(fields)
            if prepared is None:
                results[index] = BulkItemResult(index=index, resource_id=resource_id, ok=False, error=error)
            else:
                accepted.append((index, (resource_id, prepared)))

        outcomes = self.repo.update_bulk([item for _, item in accepted])
        for (index, _), outcome in zip(accepted, outcomes):
            results[index] = BulkItemResult(
                index=index,
                resource_id=outcome.resource_id,
                ok=outcome.ok,
                record=outcome.record,
                error=outcome.error,
            )
        return [r for r in results if r is not None]

    def delete(self, resource_id: int) -> ServiceResult:
        if self.repo.get_by_id(resource_id) is None:
            return self._not_found()
        if not self.repo.delete(resource_id):
            return ServiceResult(Outcome.NO_ROWS_AFFECTED, f"Failed to delete {self.name.lower()}")
        logger.info(
            "%s %s deleted",
            self.name,
            resource_id,
            extra={"resource": self.name.lower(), "resource_id": resource_id, "operation": "delete"},
        )
        return ServiceResult(Outcome.OK, f"{self.name} deleted successfully")


# PUBLIC_INTERFACE
class TodoService(ResourceService):
    """Todos: update_full replaces the whole row, update_partial merges the supplied fields."""

    name = "Todo"

    def __init__(self, repo: TodoRepository) -> None:
        super().__init__(repo)


# PUBLIC_INTERFACE
class UserService(ResourceService):
    """
    Users: passwords are hashed before they reach the repository.

    An absent password leaves the stored digest as it is; an explicitly empty
    one is rejected rather than hashed.
    """

    name = "User"

    def __init__(self, repo: UserRepository, hasher: PasswordHasher) -> None:
        super().__init__(repo)
        self.users = repo
        self.hasher = hasher

    def _prepare(self, fields: Mapping[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        prepared = dict(fields)
        if "password" not in prepared or prepared["password"] is None:
            prepared.pop("password", None)
            return prepared, None
        if prepared["password"] == "":
            return None, "Password must not be empty"
        prepared["password"] = self.hasher.hash(prepared["password"])
        return prepared, None

    def get_by_email(self, email: str) -> Optional[Record]:
        return self.users.get_by_email(email)

    def create(self, fields: Mapping[str, Any]) -> ServiceResult:
        if not fields.get("password"):
            return ServiceResult(Outcome.VALIDATION_FAILURE, "Password is required")
        if self.users.get_by_email(fields.get("email", "")) is not None:
            return ServiceResult(Outcome.CONFLICT, "Email already registered")
        return super().create(fields)
