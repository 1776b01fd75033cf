"""Library API configuration, loaded from environment variables."""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_JWT_SECRET_LENGTH = 32

_WEAK_SECRET_MARKERS = ("change", "secret", "example", "default", "password")


class Settings(BaseSettings):
    """Application settings.

    Every field can be overridden by the upper-cased environment variable
    of the same name, or from a ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "Library API"
    app_version: str = "1.0.0"
    api_prefix: str = "/api/v1"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./library.db"
    db_pool_size: int = Field(default=20, ge=1)
    db_max_overflow: int = Field(default=20, ge=0)
    db_pool_timeout: int = Field(default=30, ge=1)
    db_pool_recycle: int = Field(default=1800, ge=-1)

    # JWT
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = Field(default=7 * 24 * 60, ge=1)
    auth_cookie_name: str = "token"
    auth_cookie_secure: bool = False

    # Token blacklist
    blacklist_cleanup_interval_seconds: int = Field(default=3600, ge=1)
    blacklist_default_retention_days: int = Field(default=7, ge=1)

    # Login throttling (failed attempts per client IP)
    login_max_attempts: int = Field(default=5, ge=1)
    login_window_seconds: int = Field(default=60, ge=1)

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Observability
    enable_metrics: bool = True

    @field_validator("jwt_secret_key")
    @classmethod
    def _validate_jwt_secret_key(cls, v: str) -> str:
        if len(v) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(
                f"JWT_SECRET_KEY must be at least {MIN_JWT_SECRET_LENGTH} characters long"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def check_security_configuration(self) -> list[str]:
        """Return human-readable warnings about risky settings."""
        warnings: list[str] = []

        if self.debug:
            warnings.append("DEBUG is enabled; stack traces are returned in error responses")

        if self.is_sqlite:
            warnings.append("Using SQLite; configure DATABASE_URL for production deployments")

        lowered = self.jwt_secret_key.lower()
        if any(marker in lowered for marker in _WEAK_SECRET_MARKERS):
            warnings.append("JWT_SECRET_KEY looks like a placeholder value")
        if len(set(self.jwt_secret_key)) < 10:
            warnings.append("JWT_SECRET_KEY has very low character diversity")

        if "*" in self.cors_origins_list:
            warnings.append("CORS allows any origin")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()  # type: ignore[call-arg]


settings = get_settings()
