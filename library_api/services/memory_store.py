"""In-process catalog store."""

import itertools
import logging
from dataclasses import replace

from library_api.core.errors import DuplicateKey, NotFound
from library_api.services.store import (
    BookDraft,
    BookRecord,
    CatalogStore,
    resolve_copies,
    utcnow,
    validate_draft,
)

logger = logging.getLogger(__name__)


class MemoryCatalogStore(CatalogStore):
    """Keeps books in an insertion-ordered dict keyed by id."""

    backend = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._books: dict[int, BookRecord] = {}
        # Ids come from a counter, never from len(), so they are not reused
        self._ids = itertools.count(1)

    async def close(self) -> None:
        self._books.clear()

    async def get(self, book_id: int) -> BookRecord:
        book = self._books.get(book_id)
        if book is None:
            raise NotFound(book_id)
        return book

    async def list_all(self) -> list[BookRecord]:
        return list(self._books.values())

    async def count(self) -> int:
        return len(self._books)

    def _find_by_isbn(self, isbn: str) -> BookRecord | None:
        return next((b for b in self._books.values() if b.isbn == isbn), None)

    async def _create(self, draft: BookDraft) -> BookRecord:
        existing = self._find_by_isbn(draft.isbn)
        if existing is not None:
            raise DuplicateKey(draft.isbn, existing.id)

        copies_available, copies_total = resolve_copies(draft)
        now = utcnow()
        book = BookRecord(
            id=next(self._ids),
            title=draft.title,
            author=draft.author,
            isbn=draft.isbn,
            published_year=draft.published_year,
            category=draft.category,
            copies_available=copies_available,
            copies_total=copies_total,
            created_at=now,
            updated_at=now,
        )
        self._books[book.id] = book
        logger.info(f"Book created: {book.id} ({book.title})")
        return book

    async def _update(self, book_id: int, draft: BookDraft) -> BookRecord:
        current = await self.get(book_id)
        validate_draft(draft)

        if draft.isbn != current.isbn:
            clash = self._find_by_isbn(draft.isbn)
            if clash is not None and clash.id != book_id:
                raise DuplicateKey(draft.isbn, clash.id)

        copies_available, copies_total = resolve_copies(draft, current)
        updated = replace(
            current,
            title=draft.title,
            author=draft.author,
            isbn=draft.isbn,
            published_year=draft.published_year,
            category=draft.category,
            copies_available=copies_available,
            copies_total=copies_total,
            updated_at=utcnow(),
        )
        self._books[book_id] = updated
        logger.info(f"Book updated: {book_id}")
        return updated

    async def _delete(self, book_id: int) -> None:
        if book_id not in self._books:
            raise NotFound(book_id)
        del self._books[book_id]
        logger.info(f"Book deleted: {book_id}")
