from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

LIST_PAGE = "/"


class NoticeRedirect(Exception):
    """Leave the current page for ``location`` and show ``message`` there."""

    def __init__(self, message: str, location: str = LIST_PAGE) -> None:
        super().__init__(message)
        self.message = message
        self.location = location


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str
    redirect_to: Optional[str] = None
    needs_confirmation: bool = False


def same_id(book: Any, book_id: Any) -> bool:
    """Match ids loosely, so ``"17"`` from a query string finds the stored ``17``."""
    if not isinstance(book, Mapping) or book.get("id") is None:
        return False
    return str(book["id"]) == str(book_id).strip()


def find_book(books: list[Any], book_id: Any) -> Optional[Mapping[str, Any]]:
    for book in books:
        if same_id(book, book_id):
            return book
    return None
