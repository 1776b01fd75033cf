# Library API Schemas
from library_api.schemas.auth import (
    AuthPayload,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from library_api.schemas.book import BookCreate, BookResponse, BookUpdate
from library_api.schemas.category import (
    CategoryCreate,
    CategoryDetailResponse,
    CategoryResponse,
    CategoryUpdate,
)
from library_api.schemas.common import (
    DataResponse,
    ListResponse,
    MessageResponse,
    PaginatedResponse,
)
from library_api.schemas.token import (
    BlacklistStatsResponse,
    CleanupResponse,
    RevokedTokenResponse,
    SessionsRevokedResponse,
)
from library_api.schemas.user import UserCreate, UserResponse, UserUpdate

__all__ = [
    "AuthPayload",
    "AuthResponse",
    "BlacklistStatsResponse",
    "BookCreate",
    "BookResponse",
    "BookUpdate",
    "CategoryCreate",
    "CategoryDetailResponse",
    "CategoryResponse",
    "CategoryUpdate",
    "CleanupResponse",
    "DataResponse",
    "ListResponse",
    "LoginRequest",
    "MessageResponse",
    "PaginatedResponse",
    "RegisterRequest",
    "RevokedTokenResponse",
    "SessionsRevokedResponse",
    "UpdateDetailsRequest",
    "UpdatePasswordRequest",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
