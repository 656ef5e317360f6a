from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from bookshelf.core.settings import LibrarySettings, get_library_settings
from bookshelf.main import app


@pytest.fixture()
def books_file(tmp_path: Path) -> Path:
    return tmp_path / "books.json"


@pytest.fixture()
def client(books_file: Path):
    get_library_settings.cache_clear()
    test_settings = LibrarySettings(books_file=str(books_file), library_name="Test Library")
    app.dependency_overrides[get_library_settings] = lambda: test_settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    get_library_settings.cache_clear()


def _document(*books: dict) -> dict:
    return {
        "library": "Test Library",
        "lastUpdated": "2024-05-01T10:00:00.000Z",
        "totalBooks": len(books),
        "books": list(books),
    }


def test_get_books_without_file_returns_empty_list(client: TestClient):
    response = client.get("/books")
    assert response.status_code == 200
    assert response.json() == {"books": []}


def test_get_books_with_corrupt_file_returns_empty_list(client: TestClient, books_file: Path):
    books_file.write_text("{not json", encoding="utf-8")

    response = client.get("/books")
    assert response.status_code == 200
    assert response.json() == {"books": []}


def test_get_books_with_non_object_document_returns_empty_list(client: TestClient, books_file: Path):
    books_file.write_text("[1, 2, 3]", encoding="utf-8")

    response = client.get("/books")
    assert response.json() == {"books": []}


@pytest.mark.parametrize("stored_books", [None, {"id": 1, "title": "Dune"}, "Dune"])
def test_get_books_without_book_list_returns_empty_list(client: TestClient, books_file: Path, stored_books):
    books_file.write_text(json.dumps({"library": "Test Library", "books": stored_books}), encoding="utf-8")

    body = client.get("/books").json()
    assert body["books"] == []
    assert body["library"] == "Test Library"


def test_post_accepts_loosely_typed_document_as_sent(client: TestClient, books_file: Path):
    document = {
        "library": "Test Library",
        "lastUpdated": 1700000000000,
        "totalBooks": "1",
        "books": [{"id": 1, "title": "Dune"}],
    }

    response = client.post("/books", json=document)
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert json.loads(books_file.read_text(encoding="utf-8")) == document


def test_post_then_get_returns_whole_document(client: TestClient, books_file: Path):
    document = _document({"id": 1, "title": "Dune", "author": "Herbert", "tags": ["scifi"]})

    response = client.post("/books", json=document)
    assert response.status_code == 200
    assert response.json() == {"success": True}

    stored = json.loads(books_file.read_text(encoding="utf-8"))
    assert stored == document
    assert books_file.read_text(encoding="utf-8").startswith('{\n  "library"')

    assert client.get("/books").json() == document


def test_post_overwrites_previous_document(client: TestClient):
    client.post("/books", json=_document({"id": 1, "title": "Dune"}, {"id": 2, "title": "Emma"}))
    client.post("/books", json=_document({"id": 2, "title": "Emma"}))

    body = client.get("/books").json()
    assert [book["id"] for book in body["books"]] == [2]
    assert body["totalBooks"] == 1


def test_post_keeps_unknown_fields_and_malformed_entries(client: TestClient):
    document = _document({"id": 1, "title": "Dune", "shelf": "top"}, {"id": 2})
    document["owner"] = "me"

    client.post("/books", json=document)

    body = client.get("/books").json()
    assert body["owner"] == "me"
    assert body["books"] == [{"id": 1, "title": "Dune", "shelf": "top"}, {"id": 2}]


def test_post_write_failure_returns_500_with_error(tmp_path: Path):
    get_library_settings.cache_clear()
    # A directory where the file should be makes the final rename fail.
    blocked = tmp_path / "books.json"
    blocked.mkdir()
    test_settings = LibrarySettings(books_file=str(blocked))
    app.dependency_overrides[get_library_settings] = lambda: test_settings

    try:
        with TestClient(app) as test_client:
            response = test_client.post("/books", json=_document({"id": 1, "title": "Dune"}))
    finally:
        app.dependency_overrides.clear()
        get_library_settings.cache_clear()

    assert response.status_code == 500
    assert response.json()["error"]
    assert list(tmp_path.iterdir()) == [blocked]
