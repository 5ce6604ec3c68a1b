"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.database import create_engine, create_session_factory, init_db
from library_api.main import app
from library_api.services.memory_store import MemoryCatalogStore
from library_api.services.sql_store import SqlCatalogStore
from library_api.services.store import BookDraft, BookRecord, CatalogStore, get_store


def sqlite_url(tmp_path) -> str:
    """SQLite URL for a throwaway database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'test_library.db'}"


@pytest.fixture
async def test_engine(tmp_path):
    """Create a test database engine with the schema in place."""
    engine = create_engine(sqlite_url(tmp_path))
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with create_session_factory(test_engine)() as session:
        yield session


@pytest.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path) -> AsyncGenerator[CatalogStore, None]:
    """An opened store, once per backend."""
    if request.param == "memory":
        catalog: CatalogStore = MemoryCatalogStore()
    else:
        catalog = SqlCatalogStore(sqlite_url(tmp_path))
    await catalog.open()
    yield catalog
    await catalog.close()


@pytest.fixture
async def client(store: CatalogStore) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client backed by the test store."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def book_draft() -> BookDraft:
    """A valid draft for creating a book."""
    return BookDraft(
        title="The Hobbit",
        author="J.R.R. Tolkien",
        isbn="978-0547928227",
        published_year=1937,
        category="fiction",
        copies_total=5,
        copies_available=3,
    )


@pytest.fixture
async def sample_book(store: CatalogStore, book_draft: BookDraft) -> BookRecord:
    """Create a sample book for testing."""
    return await store.create(book_draft)


@pytest.fixture
def catalog_drafts() -> list[BookDraft]:
    """Five books: two fiction, two technology, one with no copies available."""
    return [
        BookDraft(
            title="The Hobbit",
            author="J.R.R. Tolkien",
            isbn="978-0547928227",
            published_year=1937,
            category="fiction",
            copies_total=5,
            copies_available=3,
        ),
        BookDraft(
            title="Clean Code",
            author="Robert C. Martin",
            isbn="978-0132350884",
            published_year=2008,
            category="technology",
            copies_total=2,
            copies_available=2,
        ),
        BookDraft(
            title="A Brief History of Time",
            author="Stephen Hawking",
            isbn="978-0553380163",
            published_year=1988,
            category="science",
            copies_total=4,
            copies_available=0,
        ),
        BookDraft(
            title="Introduction to Algorithms",
            author="Thomas H. Cormen",
            isbn="978-0262033848",
            published_year=2009,
            category="technology",
            copies_total=3,
            copies_available=1,
        ),
        BookDraft(
            title="The Lord of the Rings",
            author="J.R.R. Tolkien",
            isbn="978-0544003415",
            published_year=1954,
            category="Fiction",
            copies_total=6,
            copies_available=2,
        ),
    ]


@pytest.fixture
async def seeded_store(store: CatalogStore, catalog_drafts: list[BookDraft]) -> CatalogStore:
    """The test store holding the five catalog books."""
    for draft in catalog_drafts:
        await store.create(draft)
    return store


@pytest.fixture
def book_factory():
    """Build ``BookRecord`` instances for pipeline tests."""
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def _make(
        book_id: int,
        title: str,
        author: str = "Anonymous",
        published_year: int | None = None,
        category: str | None = None,
        copies_available: int = 1,
        copies_total: int = 1,
    ) -> BookRecord:
        return BookRecord(
            id=book_id,
            title=title,
            author=author,
            isbn=f"isbn-{book_id}",
            published_year=published_year,
            category=category,
            copies_available=copies_available,
            copies_total=max(copies_total, copies_available),
            created_at=created,
            updated_at=created,
        )

    return _make
