from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from fastapi import Depends

from bookshelf.clients.library_client import LibraryClient, get_library_client, utc_timestamp
from bookshelf.schemas.book import Book, BookForm
from bookshelf.services.results import LIST_PAGE, ActionResult

logger = logging.getLogger(__name__)

TITLE_REQUIRED = "Please enter a book title"


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def next_book_id(books: list[Any], now: Callable[[], int] = _epoch_millis) -> int:
    """Creation timestamp in milliseconds, bumped past any id already in ``books``."""
    candidate = now()
    taken = [
        book["id"]
        for book in books
        if isinstance(book, Mapping) and isinstance(book.get("id"), int) and not isinstance(book["id"], bool)
    ]
    if taken and max(taken) >= candidate:
        return max(taken) + 1
    return candidate


class CreateService:
    """Validates the add-book form and appends the new book to the collection."""

    def __init__(self, client: LibraryClient, clock: Callable[[], int] = _epoch_millis) -> None:
        self.client = client
        self.clock = clock

    async def create(self, form: BookForm) -> ActionResult:
        if not form.title:
            return ActionResult(ok=False, message=TITLE_REQUIRED)

        existing = await self.client.load()
        book = Book(
            id=next_book_id(existing, self.clock),
            title=form.title,
            author=form.author,
            description=form.description,
            cover_image=form.cover_image,
            review=form.review,
            tags=form.tag_list,
            status=form.status,
            date_added=utc_timestamp(),
        )
        logger.info("New book data: %s", book)

        if not await self.client.save([*existing, book.to_record()]):
            return ActionResult(ok=False, message="Error saving book. Please try again.")

        return ActionResult(
            ok=True,
            message=f'"{book.title}" has been added to your library!',
            redirect_to=LIST_PAGE,
        )


def get_create_service(client: LibraryClient = Depends(get_library_client)) -> CreateService:
    return CreateService(client)
