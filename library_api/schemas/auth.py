"""Pydantic schemas for authentication API."""

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator, model_validator

from library_api.schemas.common import PASSWORD_MIN_LENGTH, USERNAME_PATTERN, check_password_strength
from library_api.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Self-registration request. New accounts always get the ``user`` role."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=30,
        pattern=USERNAME_PATTERN,
        description="Username (3-30 alphanumeric characters)",
    )
    email: EmailStr
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=128,
        description="Password (upper, lower, digit and special character)",
    )

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Request for login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthPayload(BaseModel):
    """User and freshly issued token."""

    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")


class AuthResponse(BaseModel):
    success: bool = True
    data: AuthPayload


class UpdateDetailsRequest(BaseModel):
    """Change the caller's own username and/or email."""

    username: str | None = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None

    @model_validator(mode="after")
    def _at_least_one_field(self) -> "UpdateDetailsRequest":
        if self.username is None and self.email is None:
            raise ValueError("Provide a username or email to update")
        return self


class UpdatePasswordRequest(BaseModel):
    """Request for password change."""

    current_password: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("current_password", "currentPassword"),
    )
    new_password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=128,
        validation_alias=AliasChoices("new_password", "newPassword"),
    )

    @field_validator("new_password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        return check_password_strength(v)
