"""Revoked JWT tokens, persisted so revocation survives process restarts."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from library_api.core.database import Base


class TokenBlacklist(Base):
    """A revoked token identified by the SHA-256 digest of its exact bytes.

    The raw token is never stored. expires_at mirrors the token's own expiry
    so entries never outlive the token they revoke; the blacklist reaper
    deletes them afterwards. user_id is kept for reporting only and is not a
    foreign key, so deleting a user leaves its entries in place.
    """

    __tablename__ = "token_blacklist"

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    revoked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    reason: Mapped[str] = mapped_column(String(100), nullable=False, default="logout")

    def __repr__(self) -> str:
        return f"<TokenBlacklist {self.token_hash[:10]}... reason={self.reason}>"
