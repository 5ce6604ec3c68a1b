"""Catalog store contract shared by the memory and SQLite backends."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from fastapi import Request

from library_api.core.errors import ValidationError

DEFAULT_COPIES_TOTAL = 1


@dataclass(frozen=True)
class BookRecord:
    """A stored book, as returned by every store operation."""

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


@dataclass
class BookDraft:
    """Caller-supplied fields of a book.

    ``copies_total`` and ``copies_available`` may be left as ``None``; the
    store fills them in according to the copies policy (see ``resolve_copies``).
    """

    title: str | None = None
    author: str | None = None
    isbn: str | None = None
    published_year: int | None = None
    category: str | None = None
    copies_total: int | None = None
    copies_available: int | None = None


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def validate_draft(draft: BookDraft) -> None:
    """Raise ``ValidationError`` listing every missing required field."""
    details: list[dict[str, Any]] = []
    for field in ("title", "author", "isbn"):
        value = getattr(draft, field)
        if value is None or not str(value).strip():
            details.append({"field": field, "message": f"{field.capitalize()} is required"})
    if draft.copies_total is not None and draft.copies_total < 0:
        details.append({"field": "copies_total", "message": "Must be zero or greater"})
    if details:
        raise ValidationError("Missing required fields", details)


def resolve_copies(draft: BookDraft, existing: BookRecord | None = None) -> tuple[int, int]:
    """Work out ``(copies_available, copies_total)`` for a create or an update.

    - ``copies_total`` omitted: the existing total on update, 1 on create.
    - ``copies_available`` supplied: must lie within ``0..copies_total``.
    - ``copies_available`` omitted: equal to the total on create; on update
      the existing value clamped to the new total.
    """
    if draft.copies_total is not None:
        total = draft.copies_total
    elif existing is not None:
        total = existing.copies_total
    else:
        total = DEFAULT_COPIES_TOTAL

    if draft.copies_available is not None:
        available = draft.copies_available
        if available < 0 or available > total:
            raise ValidationError(
                "Invalid copies_available",
                [
                    {
                        "field": "copies_available",
                        "message": f"Must be between 0 and copies_total ({total})",
                    }
                ],
            )
    elif existing is not None:
        available = min(existing.copies_available, total)
    else:
        available = total

    return available, total


class CatalogStore(ABC):
    """Owns Book records and their CRUD lifecycle.

    Mutations are serialized behind a single store-wide lock so the
    duplicate-isbn check and the write that follows it cannot interleave with
    another writer. Reads do not take the lock.
    """

    backend: str = "abstract"

    def __init__(self) -> None:
        self._write_lock = asyncio.Lock()

    async def open(self) -> None:
        """Acquire the backing medium."""

    async def close(self) -> None:
        """Release the backing medium."""

    async def create(self, draft: BookDraft) -> BookRecord:
        """Insert a new book and return the stored record."""
        validate_draft(draft)
        async with self._write_lock:
            return await self._create(draft)

    async def update(self, book_id: int, draft: BookDraft) -> BookRecord:
        """Replace the mutable fields of a book and return the updated record."""
        async with self._write_lock:
            return await self._update(book_id, draft)

    async def delete(self, book_id: int) -> None:
        """Remove a book permanently."""
        async with self._write_lock:
            await self._delete(book_id)

    @abstractmethod
    async def get(self, book_id: int) -> BookRecord:
        """Return the book with this id or raise ``NotFound``."""

    @abstractmethod
    async def list_all(self) -> list[BookRecord]:
        """Return every book in storage order."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored books."""

    @abstractmethod
    async def _create(self, draft: BookDraft) -> BookRecord: ...

    @abstractmethod
    async def _update(self, book_id: int, draft: BookDraft) -> BookRecord: ...

    @abstractmethod
    async def _delete(self, book_id: int) -> None: ...


def get_store(request: Request) -> CatalogStore:
    """Dependency that provides the store opened by the application lifespan."""
    return request.app.state.store
