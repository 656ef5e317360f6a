from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def _contains(value: Any, needle: str) -> bool:
    return isinstance(value, str) and needle in value.lower()


def book_matches(book: Any, query: str) -> bool:
    """True when ``query`` is a case-insensitive substring of the title, author or a tag."""
    if not isinstance(book, Mapping):
        return False
    needle = query.lower()
    if _contains(book.get("title"), needle) or _contains(book.get("author"), needle):
        return True
    tags = book.get("tags")
    if isinstance(tags, list):
        return any(_contains(tag, needle) for tag in tags)
    return False


def search_books(books: Sequence[Any], query: str | None) -> list[Any]:
    """Filter ``books`` by ``query``, keeping input order. A blank query matches everything."""
    if query is None or not query.strip():
        return list(books)
    return [book for book in books if book_matches(book, query)]
