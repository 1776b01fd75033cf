"""Category API endpoints.

Reads are public; writes require an admin.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.database import get_db
from library_api.middleware.auth import optional_auth, require_role
from library_api.models.user import ADMIN_ROLES
from library_api.schemas.category import (
    CategoryCreate,
    CategoryDetailResponse,
    CategoryResponse,
    CategoryUpdate,
)
from library_api.schemas.common import DataResponse, ListResponse, MessageResponse
from library_api.services.category import CategoryService

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)

require_admin = require_role(ADMIN_ROLES)


def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    """Dependency to get category service."""
    return CategoryService(db)


def _category_not_found(category_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Category not found with id of {category_id}",
    )


@router.get(
    "",
    response_model=ListResponse[CategoryResponse],
    dependencies=[Depends(optional_auth)],
)
async def list_categories(
    service: CategoryService = Depends(get_category_service),
) -> ListResponse[CategoryResponse]:
    """List all categories ordered by name."""
    categories = await service.list()
    return ListResponse(
        count=len(categories),
        data=[CategoryResponse.model_validate(c) for c in categories],
    )


@router.get(
    "/{category_id}",
    response_model=DataResponse[CategoryDetailResponse],
    dependencies=[Depends(optional_auth)],
)
async def get_category(
    category_id: UUID,
    include_books: bool = Query(False, description="Embed the category's books"),
    service: CategoryService = Depends(get_category_service),
) -> DataResponse[CategoryDetailResponse]:
    """Get a category by ID. ``books`` is null unless ``include_books`` is set."""
    category = await service.get(category_id, include_books=include_books)
    if not category:
        raise _category_not_found(category_id)
    if include_books:
        detail = CategoryDetailResponse.model_validate(category)
        if detail.books:
            detail.books.sort(key=lambda b: b.title)
    else:
        detail = CategoryDetailResponse.model_validate(
            CategoryResponse.model_validate(category).model_dump()
        )
    return DataResponse(data=detail)


@router.post(
    "",
    response_model=DataResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_category(
    data: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
) -> DataResponse[CategoryResponse]:
    """Create a new category."""
    category = await service.create(data)
    return DataResponse(data=CategoryResponse.model_validate(category))


@router.put(
    "/{category_id}",
    response_model=DataResponse[CategoryResponse],
    dependencies=[Depends(require_admin)],
)
async def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
) -> DataResponse[CategoryResponse]:
    """Update a category."""
    category = await service.update(category_id, data)
    if not category:
        raise _category_not_found(category_id)
    return DataResponse(data=CategoryResponse.model_validate(category))


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_category(
    category_id: UUID,
    service: CategoryService = Depends(get_category_service),
) -> MessageResponse:
    """Delete a category that has no books."""
    deleted = await service.delete(category_id)
    if not deleted:
        raise _category_not_found(category_id)
    return MessageResponse(message="Category deleted")
