"""Authentication service: password hashing, JWT issuance and verification."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, VerifyMismatchError
from jwt.exceptions import PyJWTError
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.config import Settings
from library_api.core.exceptions import ConflictError
from library_api.models.user import User, UserRole

logger = logging.getLogger(__name__)

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    pass


class TokenError(AuthError):
    """JWT token error."""

    pass


class InvalidTokenError(TokenError):
    """JWT token is malformed, has a bad signature or bad claims."""

    pass


class TokenExpiredError(InvalidTokenError):
    """JWT token has expired."""

    pass


class PrincipalNotFoundError(AuthError):
    """The token's user no longer exists or its sessions were revoked."""

    pass


class RevocationStoreError(AuthError):
    """Writing to the token blacklist failed."""

    pass


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except VerifyMismatchError:
        return False
    except VerificationError:
        logger.warning("Stored password hash could not be verified")
        return False


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of an access token."""

    user_id: UUID
    role: UserRole
    version: int
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request."""

    id: UUID
    username: str
    email: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, username=user.username, email=user.email, role=user.role)


class TokenService:
    """Signs and verifies access tokens with an explicit secret.

    Rotating the secret invalidates every previously issued token.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 10080):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = timedelta(minutes=expire_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_expire_minutes,
        )

    def issue(
        self,
        user_id: UUID,
        role: UserRole,
        token_version: int = 1,
        now: datetime | None = None,
    ) -> str:
        """Create a signed token valid for the configured duration from ``now``."""
        issued_at = now or datetime.now(UTC)
        payload = {
            "sub": str(user_id),
            "role": UserRole(role).value,
            "ver": token_version,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
            # jti keeps two tokens issued in the same second distinct
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        return str(token)

    def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry and return the token's claims."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        try:
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                role=UserRole(payload.get("role")),
                version=int(payload.get("ver", 1)),
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (TypeError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token claims: {e}") from e

    @staticmethod
    def decode(token: str) -> dict[str, Any] | None:
        """Read claims without verifying the signature or expiry.

        Only for recovering a token's expiry when revoking it; never use the
        result to authenticate anyone. Returns None when the token cannot be
        decoded at all.
        """
        try:
            payload = jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": False},
            )
        except PyJWTError:
            return None
        return payload if isinstance(payload, dict) else None

    @staticmethod
    def expires_at(token: str) -> datetime | None:
        """Best-effort expiry instant of a token, or None when unknown."""
        payload = TokenService.decode(token)
        if payload is None:
            return None
        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int | float):
            return None
        try:
            return datetime.fromtimestamp(exp, UTC)
        except (OverflowError, OSError, ValueError):
            return None


class AuthService:
    """Service for account authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email (case-insensitive)."""
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> User | None:
        """Get user by username."""
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def ensure_unique(
        self,
        username: str | None = None,
        email: str | None = None,
        exclude_id: UUID | None = None,
    ) -> None:
        """Raise ConflictError when the username or email is already taken."""
        conditions = []
        if username is not None:
            conditions.append(User.username == username)
        if email is not None:
            conditions.append(User.email == email.lower())
        if not conditions:
            return

        query = select(User.id).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            raise ConflictError("User already exists with this email or username")

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a regular user account."""
        await self.ensure_unique(username=username, email=email)

        user = User(
            username=username,
            email=email.lower(),
            password_hash=hash_password(password),
            role=UserRole.USER,
        )
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)

        logger.info(f"Registered user: {username}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Authenticate a user by email and password.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration.
        """
        user = await self.get_user_by_email(email)

        if user is None:
            # Perform a dummy hash to prevent timing attacks
            verify_password(password, hash_password("dummy"))
            raise InvalidCredentialsError("Invalid credentials")

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        # Update last login time
        user.last_login_at = datetime.now(UTC)
        await self.session.commit()
        await self.session.refresh(user)

        return user

    async def update_details(
        self, user: User, username: str | None = None, email: str | None = None
    ) -> User:
        """Change a user's username and/or email."""
        await self.ensure_unique(username=username, email=email, exclude_id=user.id)

        if username is not None:
            user.username = username
        if email is not None:
            user.email = email.lower()
        await self.session.commit()
        await self.session.refresh(user)

        logger.info(f"Updated details for user: {user.username}")
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change a user's password.

        Only the token presented with the request is revoked by the caller;
        other sessions stay valid until logout-all or natural expiry.
        """
        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        await self.session.commit()

        logger.info(f"Password changed for user: {user.username}")

    async def revoke_all_sessions(self, user: User) -> int:
        """Invalidate every outstanding token of a user by bumping its version."""
        user.token_version += 1
        await self.session.commit()

        logger.info(f"Revoked all sessions for user: {user.username} (version {user.token_version})")
        return user.token_version

    async def load_principal(self, claims: TokenClaims) -> Principal:
        """Resolve verified claims to the current principal."""
        user = await self.get_user_by_id(claims.user_id)

        if user is None:
            raise PrincipalNotFoundError("User not found")

        if user.token_version != claims.version:
            raise PrincipalNotFoundError("Token invalidated by session revocation")

        return Principal.from_user(user)
