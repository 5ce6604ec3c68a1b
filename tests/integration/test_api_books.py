"""Integration tests for the Books API."""

from httpx import AsyncClient

BOOK_PAYLOAD = {
    "title": "Dune",
    "author": "Frank Herbert",
    "isbn": "978-0441172719",
    "published_year": 1965,
    "category": "fiction",
    "copies_total": 4,
}


class TestBooksAPI:
    """Integration tests for the Books API endpoints."""

    async def test_list_books_empty(self, client: AsyncClient):
        """Test listing books when none exist."""
        response = await client.get("/books")
        assert response.status_code == 200
        data = response.json()
        assert data["data"] == []
        assert data["pagination"] == {
            "current_page": 1,
            "total_pages": 0,
            "total_items": 0,
            "items_per_page": 20,
        }

    async def test_create_book(self, client: AsyncClient):
        """Test creating a new book."""
        response = await client.post("/books", json=BOOK_PAYLOAD)
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Dune"
        assert data["author"] == "Frank Herbert"
        assert data["copies_total"] == 4
        assert data["copies_available"] == 4
        assert "id" in data
        assert "created_at" in data
        assert data["created_at"] == data["updated_at"]
        assert response.headers["location"] == f"/books/{data['id']}"

    async def test_create_book_minimal(self, client: AsyncClient):
        """Test creating a book with minimal fields."""
        response = await client.post(
            "/books",
            json={"title": "Minimal Book", "author": "Unknown", "isbn": "42"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["copies_total"] == 1
        assert data["copies_available"] == 1
        assert data["published_year"] is None
        assert data["category"] is None

    async def test_create_book_missing_author(self, client: AsyncClient):
        """Test creating a book without an author."""
        payload = {k: v for k, v in BOOK_PAYLOAD.items() if k != "author"}
        response = await client.post("/books", json=payload)
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {"field": "author", "message": "Author is required"} in error["details"]

        response = await client.get("/books")
        assert response.json()["pagination"]["total_items"] == 0

    async def test_create_book_empty_title(self, client: AsyncClient):
        """Test creating a book with an empty title."""
        response = await client.post("/books", json={**BOOK_PAYLOAD, "title": ""})
        assert response.status_code == 400
        assert response.json()["error"]["details"] == [
            {"field": "title", "message": "Title is required"}
        ]

    async def test_create_book_available_above_total(self, client: AsyncClient):
        """Test creating a book with more available than total copies."""
        response = await client.post(
            "/books", json={**BOOK_PAYLOAD, "copies_total": 1, "copies_available": 2}
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "copies_available"

    async def test_create_book_duplicate_isbn(self, client: AsyncClient, sample_book):
        """Test creating a book with an isbn already in use."""
        response = await client.post("/books", json={**BOOK_PAYLOAD, "isbn": sample_book.isbn})
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "DUPLICATE_ISBN"
        assert error["details"][0]["existing_book_id"] == sample_book.id

        response = await client.get("/books")
        assert response.json()["pagination"]["total_items"] == 1

    async def test_get_book(self, client: AsyncClient, sample_book):
        """Test getting a specific book."""
        response = await client.get(f"/books/{sample_book.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == sample_book.id
        assert data["title"] == sample_book.title
        assert data["isbn"] == sample_book.isbn

    async def test_get_book_not_found(self, client: AsyncClient):
        """Test getting a non-existent book."""
        response = await client.get("/books/99999")
        assert response.status_code == 404
        assert response.json() == {
            "error": {
                "code": "RESOURCE_NOT_FOUND",
                "message": "Book with ID 99999 not found",
            }
        }

    async def test_get_book_bad_id(self, client: AsyncClient):
        """Test getting a book with a non-numeric id."""
        response = await client.get("/books/abc")
        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "book_id"

    async def test_update_book(self, client: AsyncClient, sample_book):
        """Test replacing a book."""
        response = await client.put(
            f"/books/{sample_book.id}",
            json={
                "title": "Updated Title",
                "author": sample_book.author,
                "isbn": sample_book.isbn,
                "published_year": 1937,
                "category": "fantasy",
                "copies_total": 2,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == sample_book.id
        assert data["title"] == "Updated Title"
        assert data["category"] == "fantasy"
        assert data["copies_total"] == 2
        # Existing 3 available copies clamped to the new total
        assert data["copies_available"] == 2

        response = await client.get(f"/books/{sample_book.id}")
        assert response.json()["title"] == "Updated Title"

    async def test_update_book_missing_fields(self, client: AsyncClient, sample_book):
        """Test replacing a book without its required fields."""
        response = await client.put(f"/books/{sample_book.id}", json={"title": "Only"})
        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["error"]["details"]}
        assert fields == {"author", "isbn"}

    async def test_update_book_not_found(self, client: AsyncClient):
        """Test replacing a non-existent book."""
        response = await client.put("/books/99999", json=BOOK_PAYLOAD)
        assert response.status_code == 404

    async def test_update_book_duplicate_isbn(self, client: AsyncClient, sample_book):
        """Test replacing a book with another book's isbn."""
        created = await client.post("/books", json=BOOK_PAYLOAD)
        other_id = created.json()["id"]

        response = await client.put(
            f"/books/{other_id}", json={**BOOK_PAYLOAD, "isbn": sample_book.isbn}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_ISBN"

    async def test_delete_book(self, client: AsyncClient, sample_book):
        """Test deleting a book."""
        response = await client.delete(f"/books/{sample_book.id}")
        assert response.status_code == 204
        assert response.content == b""

        # Verify it's gone
        response = await client.get(f"/books/{sample_book.id}")
        assert response.status_code == 404

    async def test_delete_book_not_found(self, client: AsyncClient, sample_book):
        """Test deleting a non-existent book."""
        response = await client.delete("/books/99999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

        response = await client.get("/books")
        assert response.json()["pagination"]["total_items"] == 1
