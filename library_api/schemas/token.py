"""Pydantic schemas for token blacklist administration."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BlacklistStatsResponse(BaseModel):
    active: int
    expired: int
    recent_24h: int


class RevokedTokenResponse(BaseModel):
    """A blacklist entry; the token itself is never returned, only its fingerprint."""

    model_config = ConfigDict(from_attributes=True)

    token_hash: str
    user_id: UUID | None = None
    reason: str
    revoked_at: datetime
    expires_at: datetime


class CleanupResponse(BaseModel):
    removed: int


class SessionsRevokedResponse(BaseModel):
    user_id: UUID
    token_version: int
