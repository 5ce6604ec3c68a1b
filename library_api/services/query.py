"""Filter, sort and paginate a full scan of the catalog."""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from library_api.core.errors import InvalidParameter, ValidationError
from library_api.core.tracing import get_tracer
from library_api.services.store import BookRecord

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20


class SortField(str, Enum):
    """Fields a listing can be sorted by."""

    TITLE = "title"
    PUBLISHED_YEAR = "published_year"
    AUTHOR = "author"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


def _parse_enum(enum_cls: type[Enum], value: str, param: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidParameter(
            f"Invalid {param} parameter",
            [{"field": param, "message": f"Must be one of: {allowed}"}],
        ) from None


def _parse_int(value: str | int, param: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "Invalid pagination parameters",
            [{"field": param, "message": "Must be an integer"}],
        ) from None


def _parse_available(value: str | bool | None) -> bool | None:
    # Only the literal "true" selects available books; any other value
    # selects books with no copies left.
    if value is None or isinstance(value, bool):
        return value
    return value == "true"


@dataclass(frozen=True)
class BookQuery:
    """Filter, sort and page criteria for listing books."""

    category: str | None = None
    author: str | None = None
    available: bool | None = None
    sort_by: SortField = SortField.TITLE
    order: SortOrder = SortOrder.ASC
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        details = []
        if self.page < 1:
            details.append({"field": "page", "message": "Must be 1 or greater"})
        if self.limit < 1:
            details.append({"field": "limit", "message": "Must be 1 or greater"})
        if details:
            raise ValidationError("Invalid pagination parameters", details)

    @classmethod
    def from_params(
        cls,
        *,
        category: str | None = None,
        author: str | None = None,
        available: str | bool | None = None,
        sort_by: str = SortField.TITLE.value,
        order: str = SortOrder.ASC.value,
        page: str | int = DEFAULT_PAGE,
        limit: str | int = DEFAULT_LIMIT,
    ) -> "BookQuery":
        """Build a query from raw request parameters.

        ``sort_by`` and ``order`` are checked first, before any other
        parameter is parsed or any records are read, and raise
        ``InvalidParameter`` when unsupported. ``order`` is case-insensitive.
        ``page`` and ``limit`` may arrive as strings and must parse as
        integers of at least 1. Empty filter strings count as absent.
        """
        sort_field = _parse_enum(SortField, sort_by, "sort_by")
        sort_order = _parse_enum(SortOrder, order.lower(), "order")
        return cls(
            category=category or None,
            author=author or None,
            available=_parse_available(available),
            sort_by=sort_field,
            order=sort_order,
            page=_parse_int(page, "page"),
            limit=_parse_int(limit, "limit"),
        )


@dataclass(frozen=True)
class Pagination:
    """Pagination metadata for a page of results."""

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


@dataclass(frozen=True)
class Page:
    """One page of books plus its pagination metadata."""

    items: list[BookRecord]
    pagination: Pagination


def filter_books(records: Iterable[BookRecord], query: BookQuery) -> list[BookRecord]:
    """Apply the category, author and availability filters (all must match)."""
    books = list(records)

    if query.category is not None:
        category = query.category.lower()
        books = [b for b in books if b.category is not None and b.category.lower() == category]

    if query.author is not None:
        author = query.author.lower()
        books = [b for b in books if author in b.author.lower()]

    if query.available is not None:
        if query.available:
            books = [b for b in books if b.copies_available > 0]
        else:
            books = [b for b in books if b.copies_available == 0]

    return books


def _sort_key(sort_by: SortField):
    if sort_by is SortField.PUBLISHED_YEAR:
        # Books without a year come first ascending, last descending
        return lambda b: (b.published_year is not None, b.published_year or 0)
    return lambda b: getattr(b, sort_by.value).lower()


def sort_books(books: Sequence[BookRecord], query: BookQuery) -> list[BookRecord]:
    """Return the books ordered by the query's sort field and direction."""
    return sorted(
        books,
        key=_sort_key(query.sort_by),
        reverse=query.order is SortOrder.DESC,
    )


def paginate(books: Sequence[BookRecord], page: int, limit: int) -> Page:
    """Slice one page out of the sorted books.

    A page past the end yields an empty item list rather than an error.
    """
    total_items = len(books)
    start = (page - 1) * limit
    end = start + limit
    return Page(
        items=list(books[start:end]),
        pagination=Pagination(
            current_page=page,
            total_pages=math.ceil(total_items / limit),
            total_items=total_items,
            items_per_page=limit,
        ),
    )


def run_query(records: Iterable[BookRecord], query: BookQuery) -> Page:
    """Filter, sort and paginate ``records``; the input is left untouched."""
    with tracer.start_as_current_span("catalog.query") as span:
        span.set_attribute("catalog.sort_by", query.sort_by.value)
        span.set_attribute("catalog.order", query.order.value)
        span.set_attribute("catalog.page", query.page)
        span.set_attribute("catalog.limit", query.limit)

        filtered = filter_books(records, query)
        ordered = sort_books(filtered, query)
        page = paginate(ordered, query.page, query.limit)

        span.set_attribute("catalog.total_items", page.pagination.total_items)
        span.set_attribute("catalog.page_items", len(page.items))

    logger.debug(
        f"Query matched {page.pagination.total_items} books, "
        f"page {query.page} of {page.pagination.total_pages} ({len(page.items)} items)"
    )
    return page
