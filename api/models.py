"""
API request and response models for the task tracker REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Wire format: JSON keys are camelCase and record ids are exposed as "_id",
matching the API the web client was written against. Request bodies accept
either camelCase or snake_case keys.
"""

import re
from datetime import date
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Account
from tasks.models import Task

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"

# bcrypt reads at most this many bytes of a password.
MAX_PASSWORD_BYTES = 72

# Surrounding whitespace is trimmed from names and emails. Passwords are
# hashed exactly as sent.
Name = Annotated[str, StringConstraints(strip_whitespace=True, max_length=20)]
Email = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]


def _wire_name(field_name: str) -> str:
    """Map a model field name to its JSON key: id -> _id, snake_case -> camelCase."""
    if field_name == "id":
        return "_id"
    return to_camel(field_name)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TaskStatusEnum(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


class TaskPriorityEnum(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


# ---------------------------------------------------------------------------
# Account request/response models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/users/register.

    All fields are optional at the schema level so the route can answer a
    missing field with the single "All fields are required." message. Format
    rules apply only to values that are present.
    """

    name: Optional[Name] = None
    email: Optional[Email] = None
    password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: Optional[str]) -> Optional[str]:
        if value and len(value) < 3:
            raise ValueError("Name must be at least 3 characters.")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        """Lower-case the email and check its shape (local@domain.tld)."""
        if not value:
            return value
        value = value.lower()
        if not re.match(EMAIL_PATTERN, value):
            raise ValueError("Please use a valid email address.")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        if len(value) < 8:
            raise ValueError("Password must be at least 8 characters.")
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/users/login.

    No format rules beyond presence: a login form must not reveal the
    password policy, and a malformed email simply fails to match.
    """

    email: Optional[Email] = None
    password: Optional[str] = Field(default=None, max_length=255)


class AuthResponse(BaseModel):
    """Response for register and login: identity plus a fresh bearer token.

    Never carries the password hash.
    """

    model_config = ConfigDict(frozen=True, alias_generator=_wire_name, populate_by_name=True)

    id: int
    name: str
    email: str
    token: str

    @classmethod
    def from_account(cls, account: Account, token: str) -> "AuthResponse":
        return cls(id=account.id, name=account.name, email=account.email, token=token)


# ---------------------------------------------------------------------------
# Task request/response models
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    """Request body for POST /api/tasks.

    There is no owner field: the owner is always the authenticated caller.
    An ownerId in the body is ignored along with any other unknown key.
    """

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=100)
    description: str = Field(default="", max_length=500)
    status: TaskStatusEnum = TaskStatusEnum.pending
    priority: TaskPriorityEnum = TaskPriorityEnum.low
    due_date: Optional[date] = None


class TaskUpdate(BaseModel):
    """Request body for PUT /api/tasks/{id}. Every field is optional.

    Only fields present in the body are applied. dueDate may be set to null
    to clear it; the other fields may not.
    """

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[TaskStatusEnum] = None
    priority: Optional[TaskPriorityEnum] = None
    due_date: Optional[date] = None

    @field_validator("title", "description", "status", "priority")
    @classmethod
    def reject_null(cls, value):
        # Runs only for values present in the body; omitted fields keep their default.
        if value is None:
            raise ValueError("may not be null")
        return value


class TaskResponse(BaseModel):
    """A single task as returned by every task endpoint."""

    model_config = ConfigDict(frozen=True, alias_generator=_wire_name, populate_by_name=True)

    id: int
    title: str
    description: str
    status: str
    priority: str
    due_date: Optional[str]
    owner_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Build a TaskResponse from a tasks.models.Task instance."""
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
            owner_id=task.owner_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskListResponse(BaseModel):
    """Response for GET /api/tasks -- only the caller's tasks, newest first."""

    model_config = ConfigDict(frozen=True)

    tasks: list[TaskResponse]


class TaskDeletedResponse(BaseModel):
    """Response for DELETE /api/tasks/{id}: confirmation plus the removed record."""

    model_config = ConfigDict(frozen=True)

    message: str
    task: TaskResponse


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
