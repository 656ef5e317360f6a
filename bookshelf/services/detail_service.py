from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends

from bookshelf.clients.library_client import LibraryClient, get_library_client
from bookshelf.schemas.book import DEFAULT_STATUS
from bookshelf.services.results import LIST_PAGE, ActionResult, NoticeRedirect, find_book, same_id

logger = logging.getLogger(__name__)


def _text(book: Mapping[str, Any], key: str) -> str:
    value = book.get(key)
    return value.strip() if isinstance(value, str) else ""


def format_date_added(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return ""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%B %d, %Y")


@dataclass(frozen=True)
class BookDetail:
    book_id: Any
    title: str
    author: str
    status: str
    cover_url: Optional[str] = None
    description: str = ""
    review: str = ""
    tags: list[str] = field(default_factory=list)
    date_added: str = ""

    @property
    def show_description(self) -> bool:
        return bool(self.description)

    @property
    def show_review(self) -> bool:
        return bool(self.review)

    @property
    def show_tags(self) -> bool:
        return bool(self.tags)

    @classmethod
    def from_record(cls, book: Mapping[str, Any]) -> "BookDetail":
        tags = book.get("tags")
        return cls(
            book_id=book.get("id"),
            title=_text(book, "title") or "Untitled",
            author=_text(book, "author") or "Unknown Author",
            status=_text(book, "status") or DEFAULT_STATUS,
            cover_url=_text(book, "coverImage") or None,
            description=_text(book, "description"),
            review=_text(book, "review"),
            tags=[tag for tag in tags if isinstance(tag, str) and tag] if isinstance(tags, list) else [],
            date_added=format_date_added(book.get("dateAdded")),
        )


class DetailService:
    """Shows one book and applies status changes and deletes to the whole collection."""

    def __init__(self, client: LibraryClient) -> None:
        self.client = client

    async def open(self, book_id: Optional[str]) -> BookDetail:
        if not book_id:
            raise NoticeRedirect("No book selected")
        books = await self.client.load()
        book = find_book(books, book_id)
        if book is None:
            raise NoticeRedirect("Book not found")

        try:
            detail = BookDetail.from_record(book)
        except (TypeError, ValueError) as exc:
            logger.error("Error displaying book details: %s", exc)
            raise NoticeRedirect("Error loading book details") from exc
        logger.info("Displaying details for book %s", book_id)
        return detail

    async def update_status(self, book_id: Optional[str], new_status: str) -> ActionResult:
        if not book_id:
            return ActionResult(ok=False, message="No book selected")
        new_status = (new_status or "").strip() or DEFAULT_STATUS
        logger.info("Updating status for book ID %s to %r", book_id, new_status)

        books = await self.client.load()
        book = find_book(books, book_id)
        if book is None:
            return ActionResult(ok=False, message="Book not found")

        old_status = book.get("status")
        updated = [dict(b, status=new_status) if b is book else b for b in books]
        if not await self.client.save(updated):
            return ActionResult(ok=False, message="Error updating status. Please try again.")

        logger.info("Updated book %s status from %r to %r", book_id, old_status, new_status)
        return ActionResult(ok=True, message=f"Status updated to: {new_status}")

    async def delete(self, book_id: Optional[str], confirmed: bool = False) -> ActionResult:
        if not book_id:
            return ActionResult(ok=False, message="No book selected")

        books = await self.client.load()
        book = find_book(books, book_id)
        if book is None:
            return ActionResult(ok=False, message="Book not found")

        title = book.get("title")
        if not confirmed:
            return ActionResult(
                ok=False,
                message=f'Are you sure you want to delete "{title}"? This action cannot be undone.',
                needs_confirmation=True,
            )

        remaining = [b for b in books if not same_id(b, book_id)]
        if not await self.client.save(remaining):
            return ActionResult(ok=False, message="Error deleting book. Please try again.")

        logger.info("Deleted book %s (%d remaining)", book_id, len(remaining))
        return ActionResult(
            ok=True,
            message=f'"{title}" has been deleted from your library.',
            redirect_to=LIST_PAGE,
        )


def get_detail_service(client: LibraryClient = Depends(get_library_client)) -> DetailService:
    return DetailService(client)
