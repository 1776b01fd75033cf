"""Database-backed token blacklist. Survives process restarts."""

import hashlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.config import settings
from library_api.models.token_blacklist import TokenBlacklist
from library_api.services.auth import RevocationStoreError, TokenService

logger = logging.getLogger(__name__)

REASON_LOGOUT = "logout"
REASON_PASSWORD_CHANGE = "password_change"


def fingerprint(token: str) -> str:
    """SHA-256 hex digest of the token's exact bytes."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class BlacklistStats:
    active: int
    expired: int
    recent_24h: int


class TokenBlacklistService:
    """Revocation list keyed by token fingerprint.

    Membership checks fail open: when the database cannot be queried a token
    is reported as not revoked, so an outage degrades to "valid until natural
    expiry" instead of rejecting every request.
    """

    def __init__(self, db: AsyncSession, default_retention_days: int | None = None):
        self.db = db
        if default_retention_days is None:
            default_retention_days = settings.blacklist_default_retention_days
        self.default_retention = timedelta(days=default_retention_days)
        # No token this service issues lives longer than this
        self.max_retention = max(
            self.default_retention, timedelta(minutes=settings.jwt_expire_minutes)
        )

    def _expiry_for(self, token: str, now: datetime) -> datetime:
        expires_at = TokenService.expires_at(token)
        if expires_at is None:
            logger.debug("Token expiry unreadable; using default retention window")
            return now + self.default_retention
        # exp is unverified; cap it at the longest lifetime a real token can have
        return min(expires_at, now + self.max_retention)

    async def revoke(
        self,
        token: str,
        user_id: UUID | None = None,
        reason: str = REASON_LOGOUT,
        now: datetime | None = None,
    ) -> None:
        """Add a token to the blacklist. Revoking the same token twice is a no-op.

        Raises RevocationStoreError when the entry could not be stored.
        """
        now = now or datetime.now(UTC)
        token_hash = fingerprint(token)
        values = {
            "token_hash": token_hash,
            "user_id": user_id,
            "expires_at": self._expiry_for(token, now),
            "revoked_at": now,
            "reason": reason,
        }
        try:
            await self.db.execute(insert(TokenBlacklist).values(**values))
            await self.db.commit()
        except IntegrityError:
            # Unique fingerprint: the token is already blacklisted
            await self._safe_rollback()
            logger.debug(f"Token {token_hash[:10]} was already blacklisted")
            return
        except (SQLAlchemyError, OSError) as e:
            await self._safe_rollback()
            raise RevocationStoreError(f"Failed to blacklist token: {e}") from e

        logger.debug(f"Token {token_hash[:10]} blacklisted (reason={reason}, user={user_id})")

    async def is_revoked(self, token: str, now: datetime | None = None) -> bool:
        """Check whether an unexpired blacklist entry exists for the token."""
        now = now or datetime.now(UTC)
        try:
            result = await self.db.execute(
                select(TokenBlacklist.token_hash).where(
                    TokenBlacklist.token_hash == fingerprint(token),
                    TokenBlacklist.expires_at > now,
                )
            )
            return result.scalar_one_or_none() is not None
        except (SQLAlchemyError, OSError) as e:
            await self._safe_rollback()
            logger.error(f"Blacklist lookup failed, treating token as not revoked: {e}")
            return False

    async def reap(self, now: datetime | None = None) -> int:
        """Remove expired entries from the blacklist. Returns count removed."""
        now = now or datetime.now(UTC)
        result: CursorResult[Any] = await self.db.execute(  # type: ignore[assignment]
            delete(TokenBlacklist)
            .where(TokenBlacklist.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def stats(self, now: datetime | None = None) -> BlacklistStats:
        """Counts of active, expired and recently revoked entries."""
        now = now or datetime.now(UTC)
        active = await self.db.scalar(
            select(func.count()).select_from(TokenBlacklist).where(TokenBlacklist.expires_at > now)
        )
        expired = await self.db.scalar(
            select(func.count()).select_from(TokenBlacklist).where(TokenBlacklist.expires_at <= now)
        )
        recent = await self.db.scalar(
            select(func.count())
            .select_from(TokenBlacklist)
            .where(TokenBlacklist.revoked_at > now - timedelta(hours=24))
        )
        return BlacklistStats(active=active or 0, expired=expired or 0, recent_24h=recent or 0)

    async def list_for_user(self, user_id: UUID, now: datetime | None = None) -> list[TokenBlacklist]:
        """Active blacklist entries of a user, newest first."""
        now = now or datetime.now(UTC)
        result = await self.db.execute(
            select(TokenBlacklist)
            .where(TokenBlacklist.user_id == user_id, TokenBlacklist.expires_at > now)
            .order_by(TokenBlacklist.revoked_at.desc())
        )
        return list(result.scalars().all())

    async def _safe_rollback(self) -> None:
        try:
            await self.db.rollback()
        except (SQLAlchemyError, OSError) as e:
            logger.debug(f"Rollback after blacklist failure also failed: {e}")
