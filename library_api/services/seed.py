"""Sample books loaded into an empty catalog on start-up."""

import logging

from library_api.services.store import BookDraft, CatalogStore

logger = logging.getLogger(__name__)

SAMPLE_BOOKS: list[BookDraft] = [
    BookDraft(
        title="The Hobbit",
        author="J.R.R. Tolkien",
        isbn="978-0547928227",
        published_year=1937,
        category="fiction",
        copies_available=3,
        copies_total=5,
    ),
    BookDraft(
        title="Clean Code",
        author="Robert C. Martin",
        isbn="978-0132350884",
        published_year=2008,
        category="technology",
        copies_available=2,
        copies_total=2,
    ),
    BookDraft(
        title="1984",
        author="George Orwell",
        isbn="978-0451524935",
        published_year=1949,
        category="fiction",
        copies_available=0,
        copies_total=4,
    ),
    BookDraft(
        title="Introduction to Algorithms",
        author="Thomas H. Cormen",
        isbn="978-0262033848",
        published_year=2009,
        category="technology",
        copies_available=1,
        copies_total=3,
    ),
    BookDraft(
        title="The Lord of the Rings",
        author="J.R.R. Tolkien",
        isbn="978-0544003415",
        published_year=1954,
        category="fiction",
        copies_available=2,
        copies_total=6,
    ),
]


async def seed_store(store: CatalogStore, books: list[BookDraft] | None = None) -> int:
    """Insert the sample books if the store is empty.

    Returns the number of books inserted.
    """
    existing = await store.count()
    if existing:
        logger.info(f"Catalog has {existing} books, skipping seed")
        return 0

    drafts = SAMPLE_BOOKS if books is None else books
    for draft in drafts:
        await store.create(draft)

    logger.info(f"Seeded {len(drafts)} books")
    return len(drafts)
