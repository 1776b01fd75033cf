"""Integration tests for the book catalog endpoints."""

import uuid
from datetime import UTC, datetime

import pytest

BOOKS = "/api/v1/books"


class TestListBooks:
    @pytest.mark.asyncio
    async def test_list_is_public(self, async_client, book_factory):
        async_client.cookies.clear()
        await book_factory(title="Dune")

        response = await async_client.get(BOOKS)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 1
        assert body["total"] == 1
        assert body["data"][0]["title"] == "Dune"

    @pytest.mark.asyncio
    async def test_list_ignores_bad_token(self, async_client, book_factory):
        await book_factory()

        response = await async_client.get(BOOKS, headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_pagination(self, async_client, book_factory):
        for i in range(5):
            await book_factory(title=f"Book {i}")

        response = await async_client.get(
            BOOKS, params={"page": 2, "limit": 2, "sort_by": "title", "sort_order": "asc"}
        )

        body = response.json()
        assert body["count"] == 2
        assert body["total"] == 5
        assert body["current_page"] == 2
        assert body["total_pages"] == 3
        assert [b["title"] for b in body["data"]] == ["Book 2", "Book 3"]

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, async_client, book_factory):
        await book_factory()

        response = await async_client.get(BOOKS, params={"page": 9})

        body = response.json()
        assert body["count"] == 0
        assert body["data"] == []
        assert body["total"] == 1

    @pytest.mark.asyncio
    async def test_search_matches_title_or_author(self, async_client, book_factory):
        await book_factory(title="The Hobbit", author="J.R.R. Tolkien")
        await book_factory(title="Emma", author="Jane Austen")
        await book_factory(title="Persuasion", author="Jane Austen")

        by_title = await async_client.get(BOOKS, params={"search": "hobbit"})
        by_author = await async_client.get(BOOKS, params={"search": "austen"})

        assert [b["title"] for b in by_title.json()["data"]] == ["The Hobbit"]
        assert by_author.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, async_client, book_factory):
        await book_factory(title="100% Pure")
        await book_factory(title="Plain")

        response = await async_client.get(BOOKS, params={"search": "%"})

        assert [b["title"] for b in response.json()["data"]] == ["100% Pure"]

    @pytest.mark.asyncio
    async def test_filter_by_category_and_author(self, async_client, book_factory, category_factory):
        fiction = await category_factory("Fiction")
        await book_factory(title="Emma", author="Jane Austen", category_id=fiction.id)
        await book_factory(title="Sapiens", author="Yuval Noah Harari")

        by_category = await async_client.get(BOOKS, params={"category_id": str(fiction.id)})
        by_author = await async_client.get(BOOKS, params={"author": "harari"})

        assert [b["title"] for b in by_category.json()["data"]] == ["Emma"]
        assert by_category.json()["data"][0]["category_name"] == "Fiction"
        assert [b["title"] for b in by_author.json()["data"]] == ["Sapiens"]

    @pytest.mark.asyncio
    async def test_sort_by_published_year(self, async_client, book_factory):
        await book_factory(title="Newer", published_year=2001)
        await book_factory(title="Older", published_year=1950)

        response = await async_client.get(
            BOOKS, params={"sort_by": "published_year", "sort_order": "asc"}
        )

        assert [b["title"] for b in response.json()["data"]] == ["Older", "Newer"]

    @pytest.mark.asyncio
    async def test_unknown_sort_field_rejected(self, async_client):
        response = await async_client.get(BOOKS, params={"sort_by": "password_hash"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_limit_bounds(self, async_client):
        assert (await async_client.get(BOOKS, params={"limit": 0})).status_code == 400
        assert (await async_client.get(BOOKS, params={"limit": 101})).status_code == 400


class TestGetBook:
    @pytest.mark.asyncio
    async def test_get_book(self, async_client, book_factory):
        book = await book_factory(title="Dune", isbn="978-0441013593")

        response = await async_client.get(f"{BOOKS}/{book.id}")

        assert response.status_code == 200
        assert response.json()["data"]["isbn"] == "978-0441013593"

    @pytest.mark.asyncio
    async def test_missing_book(self, async_client):
        missing = uuid.uuid4()

        response = await async_client.get(f"{BOOKS}/{missing}")

        assert response.status_code == 404
        assert response.json()["error"] == f"Book not found with id of {missing}"


class TestWriteAccess:
    @pytest.mark.asyncio
    async def test_anonymous_cannot_create(self, async_client):
        async_client.cookies.clear()

        response = await async_client.post(BOOKS, json={"title": "X", "author": "Y"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_user_cannot_create(self, async_client, regular_user, user_headers):
        response = await async_client.post(
            BOOKS, headers=user_headers, json={"title": "X", "author": "Y"}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_user_cannot_delete(self, async_client, regular_user, user_headers, book_factory):
        book = await book_factory()

        response = await async_client.delete(f"{BOOKS}/{book.id}", headers=user_headers)

        assert response.status_code == 403


class TestCreateBook:
    @pytest.mark.asyncio
    async def test_create_book(self, async_client, admin_user, admin_headers, category_factory):
        category = await category_factory("Science Fiction")

        response = await async_client.post(
            BOOKS,
            headers=admin_headers,
            json={
                "title": "Foundation",
                "author": "Isaac Asimov",
                "isbn": "978-0553293357",
                "category_id": str(category.id),
                "published_year": 1951,
                "pages": 255,
                "total_copies": 3,
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Foundation"
        assert data["category_name"] == "Science Fiction"
        assert data["available_copies"] == 3

    @pytest.mark.asyncio
    async def test_missing_title(self, async_client, admin_user, admin_headers):
        response = await async_client.post(BOOKS, headers=admin_headers, json={"author": "Anon"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("title")

    @pytest.mark.asyncio
    async def test_duplicate_isbn(self, async_client, admin_user, admin_headers, book_factory):
        await book_factory(isbn="978-0441013593")

        response = await async_client.post(
            BOOKS,
            headers=admin_headers,
            json={"title": "Copy", "author": "Someone", "isbn": "978-0441013593"},
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_isbn(self, async_client, admin_user, admin_headers):
        response = await async_client.post(
            BOOKS,
            headers=admin_headers,
            json={"title": "Bad", "author": "Someone", "isbn": "not an isbn"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year", [999, datetime.now(UTC).year + 1])
    async def test_published_year_bounds(self, async_client, admin_user, admin_headers, year):
        response = await async_client.post(
            BOOKS,
            headers=admin_headers,
            json={"title": "Odd", "author": "Someone", "published_year": year},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_category(self, async_client, admin_user, admin_headers):
        response = await async_client.post(
            BOOKS,
            headers=admin_headers,
            json={"title": "Lost", "author": "Someone", "category_id": str(uuid.uuid4())},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Category does not exist"

    @pytest.mark.asyncio
    async def test_available_cannot_exceed_total(self, async_client, admin_user, admin_headers):
        response = await async_client.post(
            BOOKS,
            headers=admin_headers,
            json={"title": "Few", "author": "Someone", "total_copies": 1, "available_copies": 2},
        )

        assert response.status_code == 400


class TestUpdateAndDeleteBook:
    @pytest.mark.asyncio
    async def test_update_book(self, async_client, admin_user, admin_headers, book_factory):
        book = await book_factory(title="Draft", total_copies=2)

        response = await async_client.put(
            f"{BOOKS}/{book.id}",
            headers=admin_headers,
            json={"title": "Final", "available_copies": 1},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Final"
        assert data["available_copies"] == 1
        assert data["total_copies"] == 2

    @pytest.mark.asyncio
    async def test_update_copies_over_total(self, async_client, admin_user, admin_headers, book_factory):
        book = await book_factory(total_copies=2)

        response = await async_client.put(
            f"{BOOKS}/{book.id}", headers=admin_headers, json={"available_copies": 5}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_null_copies_leave_counts_unchanged(
        self, async_client, admin_user, admin_headers, book_factory
    ):
        book = await book_factory(total_copies=3, available_copies=2)

        response = await async_client.put(
            f"{BOOKS}/{book.id}",
            headers=admin_headers,
            json={"total_copies": None, "available_copies": None},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_copies"] == 3
        assert data["available_copies"] == 2

    @pytest.mark.asyncio
    async def test_null_title_and_author_ignored(
        self, async_client, admin_user, admin_headers, book_factory
    ):
        book = await book_factory(title="Kept", author="Same Author")

        response = await async_client.put(
            f"{BOOKS}/{book.id}",
            headers=admin_headers,
            json={"title": None, "author": None, "pages": 120},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Kept"
        assert data["author"] == "Same Author"
        assert data["pages"] == 120

    @pytest.mark.asyncio
    async def test_null_category_clears_it(
        self, async_client, admin_user, admin_headers, book_factory, category_factory
    ):
        category = await category_factory("Poetry")
        book = await book_factory(category_id=category.id)

        response = await async_client.put(
            f"{BOOKS}/{book.id}", headers=admin_headers, json={"category_id": None}
        )

        assert response.status_code == 200
        assert response.json()["data"]["category_id"] is None

    @pytest.mark.asyncio
    async def test_update_missing(self, async_client, admin_user, admin_headers):
        response = await async_client.put(
            f"{BOOKS}/{uuid.uuid4()}", headers=admin_headers, json={"title": "Nope"}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_book(self, async_client, admin_user, admin_headers, book_factory):
        book = await book_factory()

        response = await async_client.delete(f"{BOOKS}/{book.id}", headers=admin_headers)

        assert response.status_code == 200
        assert (await async_client.get(f"{BOOKS}/{book.id}")).status_code == 404
