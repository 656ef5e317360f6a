"""HTTP client for the library storage API."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from fastapi import Depends, Request

from bookshelf.core.settings import LibrarySettings, get_library_settings

logger = logging.getLogger(__name__)

IN_PROCESS_BASE_URL = "http://bookshelf.local"


def utc_timestamp() -> str:
    """ISO 8601 timestamp in UTC with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LibraryClient:
    """Loads and saves the whole book collection through ``/books``.

    Neither operation raises: failures are logged and collapse to an empty
    list (``load``) or ``False`` (``save``).
    """

    def __init__(self, http: httpx.AsyncClient, library_name: str = "Little Library") -> None:
        """
        Args:
            http: Client whose ``base_url`` points at the storage API
            library_name: Value written to the ``library`` field on save
        """
        self.http = http
        self.library_name = library_name

    async def load(self) -> list[Any]:
        """
        Fetch every stored book record.

        Returns:
            The ``books`` list from the stored document, or ``[]`` on any error
        """
        try:
            logger.info("Loading books from server...")
            response = await self.http.get("/books")
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error loading books: %s", exc)
            return []

        if not isinstance(data, dict):
            logger.error("Unexpected library payload: %r", data)
            return []
        books = data.get("books") or []
        if not isinstance(books, list):
            logger.error("Library payload holds no book list: %r", books)
            return []
        logger.debug("Loaded %d book records", len(books))
        return books

    async def save(self, books: list[Any]) -> bool:
        """
        Replace the stored collection with ``books``.

        Args:
            books: The complete desired collection

        Returns:
            True when the server accepted the document
        """
        document = {
            "library": self.library_name,
            "lastUpdated": utc_timestamp(),
            "totalBooks": len(books),
            "books": list(books),
        }
        try:
            logger.info("Saving %d books to server...", len(books))
            response = await self.http.post("/books", json=document)
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            logger.error("Error saving books: %s", exc)
            return False

        if not response.is_success:
            logger.error("Save rejected with status %s: %s", response.status_code, response.text)
            return False
        return True

    async def close(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "LibraryClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def build_http_client(
    settings: LibrarySettings,
    app: Optional[Any] = None,
) -> httpx.AsyncClient:
    """Client for the configured storage API, or for ``app`` in-process when no URL is set."""
    timeout = httpx.Timeout(settings.request_timeout)
    if settings.api_base_url:
        return httpx.AsyncClient(base_url=settings.api_base_url, timeout=timeout)
    if app is None:
        raise ValueError("An ASGI app is required when BOOKSHELF_API_BASE_URL is not set")
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url=IN_PROCESS_BASE_URL,
        timeout=timeout,
    )


async def get_library_client(
    request: Request,
    settings: LibrarySettings = Depends(get_library_settings),
) -> AsyncIterator[LibraryClient]:
    """Yield a persistence client for request-scoped page actions."""
    async with LibraryClient(build_http_client(settings, app=request.app), settings.library_name) as client:
        yield client
