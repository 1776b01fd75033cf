"""Pydantic schemas for user management."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from library_api.models.user import UserRole
from library_api.schemas.common import PASSWORD_MIN_LENGTH, USERNAME_PATTERN, check_password_strength


class UserResponse(BaseModel):
    """Public view of a user; never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    role: UserRole
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreate(BaseModel):
    """Admin request to create a user with any role."""

    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    role: UserRole = UserRole.USER

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class UserUpdate(BaseModel):
    """Admin request to update a user. Only provided fields change."""

    username: str | None = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=PASSWORD_MIN_LENGTH, max_length=128)
    role: UserRole | None = None

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str | None) -> str | None:
        return check_password_strength(v) if v is not None else v
