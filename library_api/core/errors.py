"""Error taxonomy shared by the stores, the query pipeline and the API."""

from typing import Any

from fastapi import status


class CatalogError(Exception):
    """Base class for errors rendered as the JSON error envelope."""

    code: str = "INTERNAL_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(CatalogError):
    """Missing or malformed required input."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidParameter(CatalogError):
    """Unsupported sort or order value."""

    code = "INVALID_PARAMETER"
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateKey(CatalogError):
    """An isbn collision would violate uniqueness."""

    code = "DUPLICATE_ISBN"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, isbn: str, existing_book_id: int | None = None) -> None:
        detail: dict[str, Any] = {"field": "isbn", "message": f"ISBN {isbn} is already in use"}
        if existing_book_id is not None:
            detail["existing_book_id"] = existing_book_id
        super().__init__("A book with this ISBN already exists", [detail])
        self.isbn = isbn
        self.existing_book_id = existing_book_id


class NotFound(CatalogError):
    """Unknown book id."""

    code = "RESOURCE_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with ID {book_id} not found")
        self.book_id = book_id


class StorageFailure(CatalogError):
    """The underlying storage medium failed."""

    code = "DATABASE_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason
