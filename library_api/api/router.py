"""Library API Router - aggregates all API routes."""

from fastapi import APIRouter

from library_api.api import auth, books, categories, tokens, users
from library_api.core.config import settings

# Main API router - all routes are prefixed with the versioned API prefix
api_router = APIRouter(prefix=settings.api_prefix)

# Include routers
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(categories.router)
api_router.include_router(books.router)
api_router.include_router(tokens.router)
