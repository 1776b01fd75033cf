# Library API Middleware
from library_api.middleware.auth import (
    authorize,
    get_token_service,
    optional_auth,
    require_auth,
    require_role,
)
from library_api.middleware.request_logging import RequestLoggingMiddleware
from library_api.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "authorize",
    "get_token_service",
    "optional_auth",
    "require_auth",
    "require_role",
]
