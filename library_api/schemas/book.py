"""Pydantic schemas for books."""

from datetime import UTC, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ISBN_PATTERN = r"^[0-9X-]+$"

BookSortField = Literal["title", "author", "published_year", "created_at"]
SortOrder = Literal["asc", "desc"]


def _check_published_year(value: int | None) -> int | None:
    if value is None:
        return value
    current_year = datetime.now(UTC).year
    if value < 1000 or value > current_year:
        raise ValueError(f"published_year must be between 1000 and {current_year}")
    return value


class BookBase(BaseModel):
    isbn: str | None = Field(None, max_length=20, pattern=ISBN_PATTERN)
    category_id: UUID | None = None
    description: str | None = None
    published_year: int | None = None
    pages: int | None = Field(None, gt=0)

    @field_validator("published_year")
    @classmethod
    def _published_year(cls, v: int | None) -> int | None:
        return _check_published_year(v)


class BookCreate(BookBase):
    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    total_copies: int = Field(1, gt=0)
    available_copies: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def _copies(self) -> "BookCreate":
        if self.available_copies is None:
            self.available_copies = self.total_copies
        elif self.available_copies > self.total_copies:
            raise ValueError("available_copies cannot exceed total_copies")
        return self


class BookUpdate(BookBase):
    title: str | None = Field(None, min_length=1, max_length=255)
    author: str | None = Field(None, min_length=1, max_length=255)
    total_copies: int | None = Field(None, gt=0)
    available_copies: int | None = Field(None, ge=0)


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    author: str
    isbn: str | None = None
    category_id: UUID | None = None
    category_name: str | None = None
    description: str | None = None
    published_year: int | None = None
    pages: int | None = None
    total_copies: int
    available_copies: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
