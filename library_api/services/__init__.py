# Library API Services
from library_api.services.auth import (
    AuthError,
    AuthService,
    InvalidCredentialsError,
    InvalidTokenError,
    Principal,
    PrincipalNotFoundError,
    RevocationStoreError,
    TokenClaims,
    TokenExpiredError,
    TokenService,
    hash_password,
    verify_password,
)
from library_api.services.blacklist_reaper import BlacklistReaperService
from library_api.services.book import BookFilters, BookService
from library_api.services.category import CategoryService
from library_api.services.token_blacklist import TokenBlacklistService, fingerprint
from library_api.services.user import UserService

__all__ = [
    "AuthError",
    "AuthService",
    "BlacklistReaperService",
    "BookFilters",
    "BookService",
    "CategoryService",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "Principal",
    "PrincipalNotFoundError",
    "RevocationStoreError",
    "TokenBlacklistService",
    "TokenClaims",
    "TokenExpiredError",
    "TokenService",
    "UserService",
    "fingerprint",
    "hash_password",
    "verify_password",
]
