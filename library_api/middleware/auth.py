"""Authentication gates for API routes.

Three FastAPI dependencies compose the token service and the blacklist:

- ``require_auth``: a valid, unrevoked token for an existing user is
  mandatory; any failure is a 401.
- ``optional_auth``: same checks, but any failure yields an anonymous
  request instead of an error.
- ``require_role(allowed)``: ``require_auth`` plus a role check; a role
  outside ``allowed`` is a 403.

Each stage runs in order: extract token, blacklist check, signature and
expiry check, user lookup. The authenticated principal is stored on
``request.state.principal`` and the raw token on ``request.state.token``.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.config import settings
from library_api.core.database import get_db
from library_api.core.exceptions import ForbiddenError, UnauthenticatedError
from library_api.core.request_utils import extract_bearer_token
from library_api.models.user import UserRole
from library_api.services.auth import (
    AuthService,
    InvalidTokenError,
    Principal,
    PrincipalNotFoundError,
    TokenService,
)
from library_api.services.token_blacklist import TokenBlacklistService

logger = logging.getLogger(__name__)

NO_TOKEN_MESSAGE = "Access denied. No token provided."
REVOKED_TOKEN_MESSAGE = "Access denied. Token is no longer valid."
INVALID_TOKEN_MESSAGE = "Access denied. Invalid token."
USER_NOT_FOUND_MESSAGE = "Access denied. User not found."
NOT_AUTHENTICATED_MESSAGE = "Access denied. Please log in."
FORBIDDEN_MESSAGE = "Access denied. Insufficient permissions."


@lru_cache
def get_token_service() -> TokenService:
    """Dependency returning the process-wide token service."""
    return TokenService.from_settings(settings)


async def authenticate_request(
    request: Request,
    db: AsyncSession,
    token_service: TokenService,
) -> Principal:
    """Run every authentication stage and attach the principal to the request."""
    token = extract_bearer_token(request, settings.auth_cookie_name)
    if not token:
        raise UnauthenticatedError(NO_TOKEN_MESSAGE)

    if await TokenBlacklistService(db).is_revoked(token):
        logger.info(f"Blacklisted token presented on {request.url.path}")
        raise UnauthenticatedError(REVOKED_TOKEN_MESSAGE)

    try:
        claims = token_service.verify(token)
    except InvalidTokenError as e:
        logger.debug(f"Token verification failed: {e}")
        raise UnauthenticatedError(INVALID_TOKEN_MESSAGE) from e

    try:
        principal = await AuthService(db).load_principal(claims)
    except PrincipalNotFoundError as e:
        logger.info(f"Token for user {claims.user_id} rejected: {e}")
        raise UnauthenticatedError(USER_NOT_FOUND_MESSAGE) from e

    request.state.principal = principal
    request.state.token = token
    return principal


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> Principal:
    """Dependency that requires an authenticated user."""
    return await authenticate_request(request, db, token_service)


async def optional_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> Principal | None:
    """Dependency that authenticates when it can and otherwise stays anonymous."""
    try:
        return await authenticate_request(request, db, token_service)
    except UnauthenticatedError as e:
        logger.debug(f"Optional auth failed: {e.message}")
        request.state.principal = None
        return None


def authorize(principal: Principal | None, allowed: frozenset[UserRole]) -> Principal:
    """Check a principal against an allowed role set."""
    if principal is None:
        raise UnauthenticatedError(NOT_AUTHENTICATED_MESSAGE)
    if principal.role not in allowed:
        logger.info(
            f"User {principal.username} with role {principal.role.value} denied; "
            f"requires one of {sorted(r.value for r in allowed)}"
        )
        raise ForbiddenError(FORBIDDEN_MESSAGE)
    return principal


def require_role(allowed: Iterable[UserRole]) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency requiring an authenticated user with one of ``allowed`` roles."""
    allowed_roles = frozenset(UserRole(role) for role in allowed)
    if not allowed_roles:
        raise ValueError("require_role needs at least one role")

    async def dependency(principal: Principal = Depends(require_auth)) -> Principal:
        return authorize(principal, allowed_roles)

    return dependency
