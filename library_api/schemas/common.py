"""Shared response envelopes and field validators."""

import re
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

# At least one lowercase, one uppercase, one digit and one of !@#$%^&*
_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[0-9]"), "a digit"),
    (re.compile(r"[!@#$%^&*]"), "a special character (!@#$%^&*)"),
)

PASSWORD_MIN_LENGTH = 6
USERNAME_PATTERN = r"^[a-zA-Z0-9]+$"


def check_password_strength(value: str) -> str:
    """Validate password complexity; returns the value unchanged."""
    missing = [label for pattern, label in _PASSWORD_RULES if not pattern.search(value)]
    if missing:
        raise ValueError(f"Password must contain {', '.join(missing)}")
    return value


class DataResponse(BaseModel, Generic[T]):
    """Standard success envelope."""

    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    """Success envelope for unpaginated collections."""

    success: bool = True
    count: int
    data: list[T]


class PaginatedResponse(BaseModel, Generic[T]):
    """Success envelope for paginated collections."""

    success: bool = True
    count: int = Field(description="Items on this page")
    total: int = Field(description="Items matching the filters")
    current_page: int
    total_pages: int
    data: list[T]


class MessageResponse(BaseModel):
    """Success envelope carrying only a message."""

    success: bool = True
    message: str
