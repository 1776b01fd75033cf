"""Category service - business logic for the category catalog."""

import builtins
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from library_api.core.exceptions import BadRequestError, ConflictError
from library_api.models import Book, Category
from library_api.schemas.category import CategoryCreate, CategoryUpdate


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> builtins.list[Category]:
        """List all categories ordered by name."""
        result = await self.db.execute(select(Category).order_by(Category.name.asc()))
        return list(result.scalars().all())

    async def get(self, category_id: UUID, include_books: bool = False) -> Category | None:
        """Get a category by ID, optionally with its books loaded."""
        query = select(Category).where(Category.id == category_id)
        if include_books:
            query = query.options(selectinload(Category.books)).execution_options(
                populate_existing=True
            )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Category | None:
        """Get a category by name."""
        result = await self.db.execute(select(Category).where(Category.name == name))
        return result.scalar_one_or_none()

    async def _ensure_name_free(self, name: str, exclude_id: UUID | None = None) -> None:
        existing = await self.get_by_name(name)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(f"Category '{name}' already exists")

    async def create(self, data: CategoryCreate) -> Category:
        """Create a new category."""
        await self._ensure_name_free(data.name)
        category = Category(name=data.name, description=data.description)
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def update(self, category_id: UUID, data: CategoryUpdate) -> Category | None:
        """Update a category."""
        category = await self.get(category_id)
        if not category:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("name") is not None:
            await self._ensure_name_free(update_data["name"], exclude_id=category.id)
        elif "name" in update_data:
            del update_data["name"]

        for field, value in update_data.items():
            setattr(category, field, value)

        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def count_books(self, category_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Book.id)).where(Book.category_id == category_id)
        )
        return result.scalar() or 0

    async def delete(self, category_id: UUID) -> bool:
        """Delete a category. Refused while any book still references it."""
        category = await self.get(category_id)
        if not category:
            return False

        if await self.count_books(category_id) > 0:
            raise BadRequestError(
                "Cannot delete category that has books. Please reassign or delete books first."
            )

        await self.db.delete(category)
        await self.db.flush()
        return True
