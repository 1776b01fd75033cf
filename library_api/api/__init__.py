# Library API Routes
from library_api.api.health import router as health_router
from library_api.api.router import api_router

__all__ = ["api_router", "health_router"]
