from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from bookshelf.clients.library_client import IN_PROCESS_BASE_URL, LibraryClient, build_http_client
from bookshelf.core.settings import LibrarySettings, get_library_settings
from bookshelf.main import app


def _mock_client(handler) -> LibraryClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://library.test")
    return LibraryClient(http, library_name="Mock Library")


@pytest.fixture()
def settings(tmp_path: Path):
    get_library_settings.cache_clear()
    test_settings = LibrarySettings(books_file=str(tmp_path / "books.json"), library_name="Test Library")
    app.dependency_overrides[get_library_settings] = lambda: test_settings
    yield test_settings
    app.dependency_overrides.clear()
    get_library_settings.cache_clear()


@pytest.mark.asyncio
async def test_load_returns_books_list():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/books"
        return httpx.Response(200, json={"library": "x", "books": [{"id": 1, "title": "Dune"}]})

    async with _mock_client(handler) as client:
        assert await client.load() == [{"id": 1, "title": "Dune"}]


@pytest.mark.asyncio
async def test_load_connection_error_returns_empty_list():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _mock_client(handler) as client:
        assert await client.load() == []


@pytest.mark.asyncio
async def test_load_malformed_json_returns_empty_list():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    async with _mock_client(handler) as client:
        assert await client.load() == []


@pytest.mark.asyncio
async def test_load_without_books_list_returns_empty_list():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"books": {"id": 1}})

    async with _mock_client(handler) as client:
        assert await client.load() == []


@pytest.mark.asyncio
async def test_save_sends_full_document():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    books = [{"id": 1, "title": "Dune"}, {"id": 2, "title": "Emma"}]
    async with _mock_client(handler) as client:
        assert await client.save(books) is True

    body = captured["body"]
    assert captured["method"] == "POST"
    assert body["library"] == "Mock Library"
    assert body["totalBooks"] == 2
    assert body["books"] == books
    assert body["lastUpdated"].endswith("Z")


@pytest.mark.asyncio
async def test_save_rejected_by_server_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "disk full"})

    async with _mock_client(handler) as client:
        assert await client.save([{"id": 1, "title": "Dune"}]) is False


@pytest.mark.asyncio
async def test_save_transport_error_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _mock_client(handler) as client:
        assert await client.save([]) is False


@pytest.mark.asyncio
async def test_save_of_load_keeps_collection(settings: LibrarySettings):
    books = [
        {"id": 3, "title": "Dune", "author": "Herbert", "tags": ["scifi"]},
        {"id": 1, "title": "Emma", "status": "read"},
        {"id": 2, "title": "Ulysses"},
    ]
    async with LibraryClient(build_http_client(settings, app=app), settings.library_name) as client:
        assert await client.save(books) is True
        assert await client.save(await client.load()) is True
        reloaded = await client.load()

    assert {book["id"] for book in reloaded} == {book["id"] for book in books}
    assert reloaded == books

    stored = json.loads(Path(settings.books_file).read_text(encoding="utf-8"))
    assert stored["library"] == "Test Library"
    assert stored["totalBooks"] == len(stored["books"]) == 3


def test_build_http_client_uses_configured_base_url():
    http = build_http_client(LibrarySettings(api_base_url="http://books.example:3000/"))
    assert str(http.base_url).rstrip("/") == "http://books.example:3000"


def test_build_http_client_defaults_to_in_process_transport():
    http = build_http_client(LibrarySettings(), app=app)
    assert str(http.base_url).rstrip("/") == IN_PROCESS_BASE_URL


def test_build_http_client_without_url_or_app_is_an_error():
    with pytest.raises(ValueError):
        build_http_client(LibrarySettings())
