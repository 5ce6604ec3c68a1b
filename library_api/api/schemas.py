"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from library_api.services.store import BookDraft


# Book schemas
class BookCreate(BaseModel):
    """Schema for creating a new book."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    isbn: str = Field(..., min_length=1, max_length=20)
    published_year: int | None = None
    category: str | None = Field(None, max_length=100)
    copies_total: int = Field(1, ge=0)
    copies_available: int | None = Field(None, ge=0)

    def to_draft(self) -> BookDraft:
        """Convert to the store's draft type."""
        return BookDraft(**self.model_dump())


class BookUpdate(BaseModel):
    """Schema for replacing a book.

    Every mutable field is replaced; an omitted ``copies_total`` keeps the
    current total and an omitted ``copies_available`` keeps the current count,
    clamped to the total.
    """

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    isbn: str = Field(..., min_length=1, max_length=20)
    published_year: int | None = None
    category: str | None = Field(None, max_length=100)
    copies_total: int | None = Field(None, ge=0)
    copies_available: int | None = Field(None, ge=0)

    def to_draft(self) -> BookDraft:
        """Convert to the store's draft type."""
        return BookDraft(**self.model_dump())


class BookResponse(BaseModel):
    """Schema for book response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author: str
    isbn: str
    published_year: int | None
    category: str | None
    copies_available: int
    copies_total: int
    created_at: datetime
    updated_at: datetime


class PaginationResponse(BaseModel):
    """Schema for pagination metadata."""

    model_config = ConfigDict(from_attributes=True)

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class BookListResponse(BaseModel):
    """Schema for a page of books."""

    data: list[BookResponse]
    pagination: PaginationResponse


# Error schemas
class ErrorBody(BaseModel):
    """Schema for the body of an error envelope."""

    code: str
    message: str
    details: list[dict[str, Any]] | None = None


class ErrorResponse(BaseModel):
    """Schema for the error envelope returned by every failing request."""

    error: ErrorBody


class HealthResponse(BaseModel):
    """Schema for the health check."""

    status: str
    storage: str
    books: int
