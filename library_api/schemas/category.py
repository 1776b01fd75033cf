"""Pydantic schemas for categories."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from library_api.schemas.book import BookResponse


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CategoryDetailResponse(CategoryResponse):
    """Category with its books embedded, ordered by title, when requested."""

    books: list[BookResponse] | None = None
