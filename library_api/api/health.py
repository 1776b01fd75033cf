"""Health check and service index endpoints. No authentication."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from library_api.core.config import settings
from library_api.core.database import check_db_connection

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    success: bool
    status: str
    version: str
    database: str


class ServiceIndexResponse(BaseModel):
    success: bool = True
    name: str
    version: str
    endpoints: dict[str, str]


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"},
    },
)
async def health_check(response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Returns 503 if the database is unavailable.
    """
    db_healthy = await check_db_connection()

    # Set appropriate status code for container orchestration
    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        success=db_healthy,
        status="healthy" if db_healthy else "unhealthy",
        version=settings.app_version,
        database="connected" if db_healthy else "disconnected",
    )


@router.get("/", response_model=ServiceIndexResponse)
async def service_index() -> ServiceIndexResponse:
    """Name, version and the main endpoint groups."""
    prefix = settings.api_prefix
    return ServiceIndexResponse(
        name=settings.app_name,
        version=settings.app_version,
        endpoints={
            "auth": f"{prefix}/auth",
            "books": f"{prefix}/books",
            "categories": f"{prefix}/categories",
            "users": f"{prefix}/users",
            "tokens": f"{prefix}/tokens",
            "health": "/health",
        },
    )
