"""Database models."""

from library_api.models.book import Book

__all__ = ["Book"]
