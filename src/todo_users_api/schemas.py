from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _check_due_date(value: Optional[str]) -> Optional[str]:
    """
    Ensure due_date is an ISO8601 date or datetime string and return it stripped.
    The original text is kept; it is not normalized to a datetime.
    """
    if value is None:
        return None
    s = value.strip()
    try:
        datetime.fromisoformat(s)
    except ValueError:
        try:
            date.fromisoformat(s)
        except ValueError as e:
            raise ValueError(
                "Invalid due_date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
            ) from e
    return s


def _check_password(value: Optional[str]) -> Optional[str]:
    # Never stripped: login verifies the exact string that was hashed
    if value is None:
        return None
    if not (6 <= len(value) <= 20):
        raise ValueError("Password must be between 6 and 20 characters")
    if not _PASSWORD_PATTERN.match(value):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return value


def _normalize_email(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# ---------- Todos ----------


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a Todo, also used by PUT as a full replacement.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "todo_name": "Buy milk",
                "description": "2L",
                "due_date": "2025-01-01",
                "user_id": 1,
            }
        }
    )

    todo_name: str = Field(..., description="Short name for the todo item", min_length=1, max_length=200)
    description: str = Field(default="", description="Detailed description")
    due_date: str = Field(..., description="ISO8601 date or datetime string")
    user_id: int = Field(..., ge=1, description="Id of the owning user")

    @field_validator("todo_name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: str) -> str:
        return _check_due_date(v)  # type: ignore[return-value]


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for partially updating a Todo.
    All fields are optional; only provided fields will be updated.
    """

    todo_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: Optional[str] = None
    user_id: Optional[int] = Field(default=None, ge=1)

    @field_validator("todo_name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: Optional[str]) -> Optional[str]:
        return _check_due_date(v)


# PUBLIC_INTERFACE
class TodoBulkItem(TodoCreate):
    """One element of a bulk replacement request."""

    todo_id: int = Field(..., ge=1)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    todo_id: int
    todo_name: str
    description: str
    due_date: str
    user_id: int
    created_at: datetime


# ---------- Users ----------


class _UserFields(BaseModel):
    first_name: str = Field(..., min_length=3, max_length=20)
    last_name: str = Field(..., min_length=2, max_length=20)
    email: EmailStr
    phone_number: str = Field(..., min_length=10, max_length=15)
    user_type: Optional[str] = Field(default=None, max_length=50)

    @field_validator("first_name", "last_name", "phone_number", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)


# PUBLIC_INTERFACE
class UserCreate(_UserFields):
    """
    Schema for registering a user. The password is hashed before it is stored.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "first_name": "Amrit",
                "last_name": "Techie",
                "email": "amrit@example.com",
                "phone_number": "0712345678",
                "password": "newPass123",
            }
        }
    )

    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)  # type: ignore[return-value]


# PUBLIC_INTERFACE
class UserReplace(_UserFields):
    """
    Schema for a full user update. Omitting password keeps the current one.
    """

    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v)


# PUBLIC_INTERFACE
class UserUpdate(BaseModel):
    """Schema for partially updating a user. Only provided fields are written."""

    first_name: Optional[str] = Field(default=None, min_length=3, max_length=20)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=20)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(default=None, min_length=10, max_length=15)
    user_type: Optional[str] = Field(default=None, max_length=50)
    password: Optional[str] = None

    @field_validator("first_name", "last_name", "phone_number", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v)


# PUBLIC_INTERFACE
class UserBulkItem(UserReplace):
    """One element of a bulk user update request."""

    user_id: int = Field(..., ge=1)


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """
    Schema returned by the API for a user. The password digest is never exposed.
    """

    user_id: int
    first_name: str
    last_name: str
    email: str
    phone_number: str
    user_type: Optional[str] = None


# ---------- Envelopes ----------


class MessageOut(BaseModel):
    message: str


class TodoMutationOut(BaseModel):
    message: str
    todo: Optional[TodoOut] = None


class UserMutationOut(BaseModel):
    message: str
    user: Optional[UserOut] = None


class BulkItemOut(BaseModel):
    """Per-item result of a bulk update, reported in input order."""

    index: int
    id: int
    ok: bool
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class BulkUpdateOut(BaseModel):
    message: str
    succeeded: int
    failed: int
    results: List[BulkItemOut]
