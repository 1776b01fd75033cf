"""User administration API endpoints. Admin and super_admin only."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.database import get_db
from library_api.middleware.auth import require_role
from library_api.models.user import ADMIN_ROLES, UserRole
from library_api.schemas.common import DataResponse, ListResponse, MessageResponse, PaginatedResponse
from library_api.schemas.token import RevokedTokenResponse, SessionsRevokedResponse
from library_api.schemas.user import UserCreate, UserResponse, UserUpdate
from library_api.services.auth import AuthService, Principal
from library_api.services.token_blacklist import TokenBlacklistService
from library_api.services.user import UserService

logger = logging.getLogger(__name__)

require_admin = require_role(ADMIN_ROLES)

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_admin)],
)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency to get user service."""
    return UserService(db)


def _user_not_found(user_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"User not found with id of {user_id}",
    )


@router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    role: UserRole | None = Query(None, description="Only users with this role"),
    service: UserService = Depends(get_user_service),
) -> PaginatedResponse[UserResponse]:
    """List users with pagination."""
    users, total = await service.list(page=page, page_size=limit, role=role)
    total_pages = (total + limit - 1) // limit if total > 0 else 0
    return PaginatedResponse(
        count=len(users),
        total=total,
        current_page=page,
        total_pages=total_pages,
        data=[UserResponse.model_validate(u) for u in users],
    )


@router.get("/{user_id}", response_model=DataResponse[UserResponse])
async def get_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
) -> DataResponse[UserResponse]:
    """Get a user by ID."""
    user = await service.get(user_id)
    if not user:
        raise _user_not_found(user_id)
    return DataResponse(data=UserResponse.model_validate(user))


@router.post("", response_model=DataResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
) -> DataResponse[UserResponse]:
    """Create a user with any role."""
    user = await service.create(data)
    return DataResponse(data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=DataResponse[UserResponse])
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    principal: Principal = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> DataResponse[UserResponse]:
    """Update a user."""
    user = await service.update(user_id, data, actor=principal)
    if not user:
        raise _user_not_found(user_id)
    return DataResponse(data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    principal: Principal = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete a user."""
    deleted = await service.delete(user_id, actor=principal)
    if not deleted:
        raise _user_not_found(user_id)
    return MessageResponse(message="User deleted")


@router.get("/{user_id}/revoked-tokens", response_model=ListResponse[RevokedTokenResponse])
async def list_revoked_tokens(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ListResponse[RevokedTokenResponse]:
    """Active blacklist entries of a user, newest first."""
    entries = await TokenBlacklistService(db).list_for_user(user_id)
    return ListResponse(
        count=len(entries),
        data=[RevokedTokenResponse.model_validate(e) for e in entries],
    )


@router.post("/{user_id}/revoke-sessions", response_model=DataResponse[SessionsRevokedResponse])
async def revoke_sessions(
    user_id: UUID,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[SessionsRevokedResponse]:
    """Invalidate every outstanding token of a user."""
    auth_service = AuthService(db)
    user = await auth_service.get_user_by_id(user_id)
    if not user:
        raise _user_not_found(user_id)
    version = await auth_service.revoke_all_sessions(user)
    logger.info(f"{principal.username} revoked all sessions of {user.username}")
    return DataResponse(data=SessionsRevokedResponse(user_id=user.id, token_version=version))
