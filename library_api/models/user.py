"""User model for authentication and authorization."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from library_api.models.base import BaseModel


class UserRole(str, enum.Enum):
    """Closed set of roles, in increasing order of privilege."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


class User(BaseModel):
    """A library account.

    token_version is embedded in every issued token; incrementing it
    invalidates all of the user's outstanding tokens at once.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="user_role",
            values_callable=lambda roles: [r.value for r in roles],
            validate_strings=True,
        ),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )

    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role.value})>"
