from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, TypedDict


# PUBLIC_INTERFACE
class TodoRecord(TypedDict):
    """
    A row of the Todos table as returned by the repository.

    Fields:
    - todo_id: store-generated identifier, never reassigned
    - todo_name: short name of the todo
    - description: free text
    - due_date: ISO-8601 date or datetime string, stored verbatim
    - user_id: owning user (not checked by this service)
    - created_at: store-generated creation timestamp
    """

    todo_id: int
    todo_name: str
    description: str
    due_date: str
    user_id: int
    created_at: datetime


# PUBLIC_INTERFACE
class UserRecord(TypedDict):
    """
    A row of the Users table as returned by the repository.

    The password field always holds a bcrypt digest, never the plaintext.
    """

    user_id: int
    first_name: str
    last_name: str
    email: str
    phone_number: str
    user_type: Optional[str]
    password: str


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class BulkItemResult:
    """
    Outcome of one item of a bulk update.

    - index: position of the item in the input sequence
    - resource_id: id the item targeted
    - record: the updated row when ok is True
    - error: why the item failed when ok is False
    """

    index: int
    resource_id: int
    ok: bool
    record: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
