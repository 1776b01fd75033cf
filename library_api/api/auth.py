"""Authentication API endpoints."""

import logging
import time
from collections import defaultdict

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.config import settings
from library_api.core.database import get_db
from library_api.core.exceptions import NotFoundError, TooManyRequestsError, UnauthenticatedError
from library_api.core.request_utils import extract_bearer_token, get_client_ip
from library_api.middleware.auth import get_token_service, optional_auth, require_auth
from library_api.models.user import User
from library_api.schemas.auth import (
    AuthPayload,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from library_api.schemas.common import DataResponse, MessageResponse
from library_api.schemas.user import UserResponse
from library_api.services.auth import (
    AuthService,
    InvalidCredentialsError,
    Principal,
    RevocationStoreError,
    TokenService,
)
from library_api.services.token_blacklist import (
    REASON_LOGOUT,
    REASON_PASSWORD_CHANGE,
    TokenBlacklistService,
)

logger = logging.getLogger(__name__)

# Failed login attempts per client IP (monotonic timestamps)
_login_attempts: dict[str, list[float]] = defaultdict(list)


def _check_login_rate_limit(client_ip: str) -> None:
    """Check if a client IP has exceeded the failed login limit."""
    now = time.monotonic()
    attempts = _login_attempts[client_ip]
    _login_attempts[client_ip] = [t for t in attempts if now - t < settings.login_window_seconds]
    if len(_login_attempts[client_ip]) >= settings.login_max_attempts:
        logger.warning("Login rate limit exceeded for %s", client_ip)
        raise TooManyRequestsError("Too many login attempts. Please try again later.")


def _record_login_attempt(client_ip: str) -> None:
    """Record a failed login attempt for rate limiting."""
    _login_attempts[client_ip].append(time.monotonic())


def prune_login_attempts() -> int:
    """Drop clients whose failed attempts are all outside the window. Returns count removed."""
    now = time.monotonic()
    stale = [
        ip
        for ip, attempts in _login_attempts.items()
        if all(now - t >= settings.login_window_seconds for t in attempts)
    ]
    for ip in stale:
        del _login_attempts[ip]
    return len(stale)


def reset_login_attempts() -> None:
    """Forget all recorded login attempts."""
    _login_attempts.clear()


router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db)


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )


def _clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )


def _auth_response(user: User, token_service: TokenService, response: Response) -> AuthResponse:
    token = token_service.issue(user.id, user.role, user.token_version)
    _set_auth_cookie(response, token)
    return AuthResponse(
        data=AuthPayload(
            user=UserResponse.model_validate(user),
            token=token,
            expires_in=int(token_service.expires_in.total_seconds()),
        )
    )


async def _revoke_presented_token(
    db: AsyncSession, token: str, principal: Principal | None, reason: str
) -> None:
    """Blacklist a token; a storage failure is logged and never fails the request."""
    try:
        await TokenBlacklistService(db).revoke(
            token, user_id=principal.id if principal else None, reason=reason
        )
    except RevocationStoreError as e:
        logger.error(f"Token revocation ({reason}) failed; token stays valid until expiry: {e}")


async def _current_user(auth_service: AuthService, principal: Principal) -> User:
    user = await auth_service.get_user_by_id(principal.id)
    if user is None:
        raise UnauthenticatedError("Access denied. User not found.")
    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Register a new account with the ``user`` role and log it in."""
    user = await auth_service.register(
        username=data.username,
        email=data.email,
        password=data.password,
    )
    return _auth_response(user, token_service, response)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Authenticate with email and password.

    Failed attempts are limited per client IP.
    """
    client_ip = get_client_ip(request) or "unknown"
    _check_login_rate_limit(client_ip)

    try:
        user = await auth_service.authenticate(email=data.email, password=data.password)
    except InvalidCredentialsError as e:
        _record_login_attempt(client_ip)
        logger.warning(f"Failed login for {data.email} from {client_ip}")
        raise UnauthenticatedError("Invalid credentials") from e

    logger.info(f"User logged in: {user.username}")
    return _auth_response(user, token_service, response)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    principal: Principal | None = Depends(optional_auth),
) -> MessageResponse:
    """Log out by blacklisting the presented token and clearing the auth cookie."""
    token = extract_bearer_token(request, settings.auth_cookie_name)
    if token:
        await _revoke_presented_token(db, token, principal, REASON_LOGOUT)

    _clear_auth_cookie(response)
    if principal:
        logger.info(f"User logged out: {principal.username}")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=DataResponse[UserResponse])
async def get_me(
    principal: Principal = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[UserResponse]:
    """Get the authenticated user's profile."""
    user = await _current_user(auth_service, principal)
    return DataResponse(data=UserResponse.model_validate(user))


@router.put("/updatedetails", response_model=DataResponse[UserResponse])
async def update_details(
    data: UpdateDetailsRequest,
    principal: Principal = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[UserResponse]:
    """Change the authenticated user's username and/or email."""
    user = await _current_user(auth_service, principal)
    user = await auth_service.update_details(user, username=data.username, email=data.email)
    return DataResponse(data=UserResponse.model_validate(user))


@router.put("/updatepassword", response_model=MessageResponse)
async def update_password(
    data: UpdatePasswordRequest,
    request: Request,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the authenticated user's password.

    The token used for this request is blacklisted; the user must log in
    again with the new password.
    """
    user = await _current_user(auth_service, principal)
    try:
        await auth_service.change_password(
            user=user,
            current_password=data.current_password,
            new_password=data.new_password,
        )
    except InvalidCredentialsError as e:
        raise UnauthenticatedError("Current password is incorrect") from e

    await _revoke_presented_token(db, request.state.token, principal, REASON_PASSWORD_CHANGE)
    return MessageResponse(message="Password updated successfully. Please log in again.")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    response: Response,
    principal: Principal = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Invalidate every token of the authenticated user, on all devices."""
    user = await auth_service.get_user_by_id(principal.id)
    if user is None:
        raise NotFoundError("User not found")
    await auth_service.revoke_all_sessions(user)
    _clear_auth_cookie(response)
    return MessageResponse(message="All sessions have been logged out")
