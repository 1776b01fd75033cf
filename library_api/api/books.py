"""Book API endpoints.

Reads are public; writes require an admin.
"""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.database import get_db
from library_api.middleware.auth import optional_auth, require_role
from library_api.models.user import ADMIN_ROLES
from library_api.schemas.book import BookCreate, BookResponse, BookSortField, BookUpdate
from library_api.schemas.common import DataResponse, MessageResponse, PaginatedResponse
from library_api.services.book import BookFilters, BookService

router = APIRouter(
    prefix="/books",
    tags=["books"],
)

require_admin = require_role(ADMIN_ROLES)


def get_book_service(db: AsyncSession = Depends(get_db)) -> BookService:
    """Dependency to get book service."""
    return BookService(db)


def _book_not_found(book_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Book not found with id of {book_id}",
    )


@router.get(
    "",
    response_model=PaginatedResponse[BookResponse],
    dependencies=[Depends(optional_auth)],
)
async def list_books(
    search: str | None = Query(None, max_length=255, description="Title or author substring"),
    category_id: UUID | None = Query(None),
    author: str | None = Query(None, max_length=255),
    sort_by: BookSortField = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    service: BookService = Depends(get_book_service),
) -> PaginatedResponse[BookResponse]:
    """Search and page through the catalog."""
    books, total = await service.list(
        filters=BookFilters(search=search, category_id=category_id, author=author),
        page=page,
        page_size=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    total_pages = (total + limit - 1) // limit if total > 0 else 0
    return PaginatedResponse(
        count=len(books),
        total=total,
        current_page=page,
        total_pages=total_pages,
        data=[BookResponse.model_validate(b) for b in books],
    )


@router.get(
    "/{book_id}",
    response_model=DataResponse[BookResponse],
    dependencies=[Depends(optional_auth)],
)
async def get_book(
    book_id: UUID,
    service: BookService = Depends(get_book_service),
) -> DataResponse[BookResponse]:
    """Get a book by ID."""
    book = await service.get(book_id)
    if not book:
        raise _book_not_found(book_id)
    return DataResponse(data=BookResponse.model_validate(book))


@router.post(
    "",
    response_model=DataResponse[BookResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_book(
    data: BookCreate,
    service: BookService = Depends(get_book_service),
) -> DataResponse[BookResponse]:
    """Create a new book."""
    book = await service.create(data)
    return DataResponse(data=BookResponse.model_validate(book))


@router.put(
    "/{book_id}",
    response_model=DataResponse[BookResponse],
    dependencies=[Depends(require_admin)],
)
async def update_book(
    book_id: UUID,
    data: BookUpdate,
    service: BookService = Depends(get_book_service),
) -> DataResponse[BookResponse]:
    """Update a book."""
    book = await service.update(book_id, data)
    if not book:
        raise _book_not_found(book_id)
    return DataResponse(data=BookResponse.model_validate(book))


@router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_book(
    book_id: UUID,
    service: BookService = Depends(get_book_service),
) -> MessageResponse:
    """Delete a book."""
    deleted = await service.delete(book_id)
    if not deleted:
        raise _book_not_found(book_id)
    return MessageResponse(message="Book deleted")
