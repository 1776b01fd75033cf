"""Book service - search, pagination and CRUD for the catalog."""

import builtins
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.exceptions import BadRequestError, ConflictError
from library_api.models import Book, Category
from library_api.schemas.book import BookCreate, BookUpdate

# Only these columns may be used for ordering
SORTABLE_COLUMNS = {
    "title": Book.title,
    "author": Book.author,
    "published_year": Book.published_year,
    "created_at": Book.created_at,
}

# NOT NULL columns; an explicit null in an update leaves them unchanged
REQUIRED_FIELDS = ("title", "author", "total_copies", "available_copies")


@dataclass
class BookFilters:
    search: str | None = None
    category_id: UUID | None = None
    author: str | None = None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BookService:
    """Service for managing books."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _apply_filters(query: Select, filters: BookFilters) -> Select:
        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            query = query.where(
                or_(
                    Book.title.ilike(pattern, escape="\\"),
                    Book.author.ilike(pattern, escape="\\"),
                )
            )
        if filters.category_id:
            query = query.where(Book.category_id == filters.category_id)
        if filters.author:
            query = query.where(Book.author.ilike(f"%{_escape_like(filters.author)}%", escape="\\"))
        return query

    async def list(
        self,
        filters: BookFilters | None = None,
        page: int = 1,
        page_size: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[builtins.list[Book], int]:
        """List books matching the filters.

        Returns a tuple of (books, total_count).
        """
        filters = filters or BookFilters()
        column = SORTABLE_COLUMNS.get(sort_by)
        if column is None:
            raise BadRequestError(f"Cannot sort by '{sort_by}'")
        ordering = column.asc() if sort_order == "asc" else column.desc()

        count_query = self._apply_filters(select(func.count(Book.id)), filters)
        total = (await self.db.execute(count_query)).scalar() or 0

        offset = (page - 1) * page_size
        result = await self.db.execute(
            self._apply_filters(select(Book), filters)
            .order_by(ordering, Book.id.asc())
            .offset(offset)
            .limit(page_size)
        )
        return list(result.scalars().unique().all()), total

    async def get(self, book_id: UUID) -> Book | None:
        """Get a book by ID with its category."""
        result = await self.db.execute(
            select(Book).where(Book.id == book_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _check_references(
        self, isbn: str | None, category_id: UUID | None, exclude_id: UUID | None = None
    ) -> None:
        if isbn:
            result = await self.db.execute(select(Book.id).where(Book.isbn == isbn))
            existing = result.scalar_one_or_none()
            if existing is not None and existing != exclude_id:
                raise ConflictError(f"A book with ISBN {isbn} already exists")
        if category_id is not None:
            result = await self.db.execute(select(Category.id).where(Category.id == category_id))
            if result.scalar_one_or_none() is None:
                raise BadRequestError("Category does not exist")

    async def create(self, data: BookCreate) -> Book:
        """Create a new book."""
        await self._check_references(data.isbn, data.category_id)

        book = Book(**data.model_dump())
        self.db.add(book)
        await self.db.flush()
        # Re-query with eager loading to get the category
        result = await self.get(book.id)
        assert result is not None, f"Book {book.id} not found after creation"
        return result

    async def update(self, book_id: UUID, data: BookUpdate) -> Book | None:
        """Update a book."""
        book = await self.get(book_id)
        if not book:
            return None

        update_data = data.model_dump(exclude_unset=True)
        for field in REQUIRED_FIELDS:
            if field in update_data and update_data[field] is None:
                del update_data[field]

        await self._check_references(
            update_data.get("isbn"), update_data.get("category_id"), exclude_id=book.id
        )

        for field, value in update_data.items():
            setattr(book, field, value)

        if book.available_copies > book.total_copies:
            raise BadRequestError("available_copies cannot exceed total_copies")

        await self.db.flush()
        return await self.get(book_id)

    async def delete(self, book_id: UUID) -> bool:
        """Delete a book."""
        book = await self.get(book_id)
        if not book:
            return False

        await self.db.delete(book)
        await self.db.flush()
        return True
