from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends

from bookshelf.clients.library_client import LibraryClient, get_library_client
from bookshelf.core.settings import LibrarySettings, get_library_settings
from bookshelf.services.search import search_books
from bookshelf.services.shelf_layout import ShelfGrid, build_shelf_grid

logger = logging.getLogger(__name__)


def is_valid_book(book: Any) -> bool:
    """An object whose title is a non-blank string."""
    if not isinstance(book, Mapping):
        return False
    title = book.get("title")
    return isinstance(title, str) and bool(title.strip())


@dataclass(frozen=True)
class ShelfSnapshot:
    """The valid books seen by one fetch; each render works from one snapshot."""

    books: tuple[Any, ...]

    @property
    def count(self) -> int:
        return len(self.books)

    def search(self, query: Optional[str]) -> list[Any]:
        return search_books(self.books, query)

    def grid(self, query: Optional[str] = None, columns: int = 8) -> ShelfGrid:
        return build_shelf_grid(self.search(query), collection=self.books, columns=columns)


class ShelfService:
    """Loads the list page and reconciles it when the window regains focus."""

    def __init__(self, client: LibraryClient, columns: int = 8) -> None:
        self.client = client
        self.columns = columns

    async def fetch(self) -> ShelfSnapshot:
        records = await self.client.load()
        valid = []
        for record in records:
            if is_valid_book(record):
                valid.append(record)
            else:
                logger.info("Filtering out invalid book: %r", record)
        logger.info("Loaded %d valid books (%d records)", len(valid), len(records))
        return ShelfSnapshot(books=tuple(valid))

    async def reconcile(self, known_count: int) -> Optional[ShelfSnapshot]:
        """Re-fetch; return the new snapshot only if the book count differs from ``known_count``.

        Same-count edits made elsewhere are not detected.
        """
        snapshot = await self.fetch()
        if snapshot.count == known_count:
            return None
        logger.info("Books changed (%d -> %d), updating display", known_count, snapshot.count)
        return snapshot


def get_shelf_service(
    client: LibraryClient = Depends(get_library_client),
    settings: LibrarySettings = Depends(get_library_settings),
) -> ShelfService:
    return ShelfService(client, columns=settings.shelf_columns)
