"""Book API routes."""

from fastapi import APIRouter, Depends, Response, status

from library_api.api.schemas import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
    ErrorResponse,
    PaginationResponse,
)
from library_api.core.config import get_settings
from library_api.services.query import BookQuery, SortField, SortOrder, run_query
from library_api.services.store import CatalogStore, get_store

router = APIRouter(prefix="/books", tags=["books"])

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
}


def get_book_query(
    category: str | None = None,
    author: str | None = None,
    available: str | None = None,
    sort_by: str = SortField.TITLE.value,
    order: str = SortOrder.ASC.value,
    page: str = "1",
    limit: str | None = None,
) -> BookQuery:
    """Collect the list parameters into a validated ``BookQuery``.

    Parameters arrive as raw strings so that ``BookQuery.from_params`` decides
    the order in which they are checked.
    """
    return BookQuery.from_params(
        category=category,
        author=author,
        available=available,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=get_settings().default_page_size if limit is None else limit,
    )


@router.get("", response_model=BookListResponse, responses=ERROR_RESPONSES)
async def list_books(
    query: BookQuery = Depends(get_book_query),
    store: CatalogStore = Depends(get_store),
) -> BookListResponse:
    """List books with filtering, sorting and pagination."""
    records = await store.list_all()
    page = run_query(records, query)

    return BookListResponse(
        data=[BookResponse.model_validate(book) for book in page.items],
        pagination=PaginationResponse.model_validate(page.pagination),
    )


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_book(
    book_data: BookCreate,
    response: Response,
    store: CatalogStore = Depends(get_store),
) -> BookResponse:
    """Create a new book."""
    book = await store.create(book_data.to_draft())
    response.headers["Location"] = f"{router.prefix}/{book.id}"
    return BookResponse.model_validate(book)


@router.get("/{book_id}", response_model=BookResponse, responses=ERROR_RESPONSES)
async def get_book(
    book_id: int,
    store: CatalogStore = Depends(get_store),
) -> BookResponse:
    """Get a specific book by ID."""
    book = await store.get(book_id)
    return BookResponse.model_validate(book)


@router.put("/{book_id}", response_model=BookResponse, responses=ERROR_RESPONSES)
async def update_book(
    book_id: int,
    book_data: BookUpdate,
    store: CatalogStore = Depends(get_store),
) -> BookResponse:
    """Replace a book."""
    book = await store.update(book_id, book_data.to_draft())
    return BookResponse.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ERROR_RESPONSES,
)
async def delete_book(
    book_id: int,
    store: CatalogStore = Depends(get_store),
) -> None:
    """Delete a book."""
    await store.delete(book_id)
