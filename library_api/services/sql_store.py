"""SQLite-backed catalog store."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from library_api.core.database import create_engine, create_session_factory, init_db
from library_api.core.errors import DuplicateKey, NotFound, StorageFailure
from library_api.models.book import Book
from library_api.services.store import (
    BookDraft,
    BookRecord,
    CatalogStore,
    resolve_copies,
    utcnow,
    validate_draft,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_record(book: Book) -> BookRecord:
    """Convert an ORM row into a ``BookRecord``."""
    return BookRecord(
        id=book.id,
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        published_year=book.published_year,
        category=book.category,
        copies_available=book.copies_available,
        copies_total=book.copies_total,
        created_at=_as_utc(book.created_at),
        updated_at=_as_utc(book.updated_at),
    )


class SqlCatalogStore(CatalogStore):
    """Stores books in the ``books`` table through an async SQLAlchemy engine."""

    backend = "sqlite"

    def __init__(self, database_url: str, echo: bool = False) -> None:
        super().__init__()
        self.database_url = database_url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Store is not open")
        return self._engine

    async def open(self) -> None:
        self._engine = create_engine(self.database_url, echo=self._echo)
        self._sessions = create_session_factory(self._engine)
        try:
            await init_db(self._engine)
        except SQLAlchemyError as e:
            logger.error(f"Database error opening store: {e}")
            raise StorageFailure("Could not open the book database", str(e)) from e
        logger.info(f"Database connected: {self.database_url}")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessions = None
            logger.info("Database connection closed")

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        """Open a session, translating database errors into ``StorageFailure``."""
        if self._sessions is None:
            raise RuntimeError("Store is not open")
        async with self._sessions() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error {action}: {e}")
                raise StorageFailure(f"An error occurred while {action}", str(e)) from e

    async def _get_row(self, session: AsyncSession, book_id: int) -> Book:
        book = await session.get(Book, book_id)
        if book is None:
            raise NotFound(book_id)
        return book

    async def _find_by_isbn(self, session: AsyncSession, isbn: str) -> Book | None:
        result = await session.execute(select(Book).where(Book.isbn == isbn))
        return result.scalar_one_or_none()

    async def get(self, book_id: int) -> BookRecord:
        async with self._session("fetching the book") as session:
            return to_record(await self._get_row(session, book_id))

    async def list_all(self) -> list[BookRecord]:
        async with self._session("fetching books") as session:
            result = await session.execute(select(Book).order_by(Book.id))
            return [to_record(book) for book in result.scalars().all()]

    async def count(self) -> int:
        async with self._session("counting books") as session:
            result = await session.execute(select(func.count(Book.id)))
            return result.scalar() or 0

    async def _create(self, draft: BookDraft) -> BookRecord:
        async with self._session("creating the book") as session:
            existing = await self._find_by_isbn(session, draft.isbn)
            if existing is not None:
                raise DuplicateKey(draft.isbn, existing.id)

            copies_available, copies_total = resolve_copies(draft)
            now = utcnow()
            book = Book(
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
            session.add(book)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning(f"Integrity error creating book: {e}")
                raise DuplicateKey(draft.isbn) from e
            await session.refresh(book)

            logger.info(f"Book created: {book.id} ({book.title})")
            return to_record(book)

    async def _update(self, book_id: int, draft: BookDraft) -> BookRecord:
        async with self._session("updating the book") as session:
            book = await self._get_row(session, book_id)
            validate_draft(draft)

            if draft.isbn != book.isbn:
                clash = await self._find_by_isbn(session, draft.isbn)
                if clash is not None and clash.id != book_id:
                    raise DuplicateKey(draft.isbn, clash.id)

            copies_available, copies_total = resolve_copies(draft, to_record(book))
            book.title = draft.title
            book.author = draft.author
            book.isbn = draft.isbn
            book.published_year = draft.published_year
            book.category = draft.category
            book.copies_available = copies_available
            book.copies_total = copies_total
            book.updated_at = utcnow()

            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning(f"Integrity error updating book: {e}")
                raise DuplicateKey(draft.isbn) from e
            await session.refresh(book)

            logger.info(f"Book updated: {book_id}")
            return to_record(book)

    async def _delete(self, book_id: int) -> None:
        async with self._session("deleting the book") as session:
            book = await self._get_row(session, book_id)
            await session.delete(book)
            await session.commit()
            logger.info(f"Book deleted: {book_id}")
