"""Token blacklist administration endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.database import get_db
from library_api.middleware.auth import require_role
from library_api.models.user import ADMIN_ROLES
from library_api.schemas.common import DataResponse
from library_api.schemas.token import BlacklistStatsResponse, CleanupResponse
from library_api.services.blacklist_reaper import BlacklistReaperService
from library_api.services.token_blacklist import TokenBlacklistService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tokens",
    tags=["tokens"],
    dependencies=[Depends(require_role(ADMIN_ROLES))],
)


@router.get("/stats", response_model=DataResponse[BlacklistStatsResponse])
async def blacklist_stats(
    db: AsyncSession = Depends(get_db),
) -> DataResponse[BlacklistStatsResponse]:
    """Counts of active, expired and recently revoked blacklist entries."""
    stats = await TokenBlacklistService(db).stats()
    return DataResponse(
        data=BlacklistStatsResponse(
            active=stats.active,
            expired=stats.expired,
            recent_24h=stats.recent_24h,
        )
    )


@router.post("/cleanup", response_model=DataResponse[CleanupResponse])
async def cleanup_blacklist(
    db: AsyncSession = Depends(get_db),
) -> DataResponse[CleanupResponse]:
    """Remove expired blacklist entries now instead of waiting for the reaper."""
    removed = await BlacklistReaperService.get_instance().run_cleanup_now(db)
    return DataResponse(data=CleanupResponse(removed=removed))
