"""Bookshelf grid layout.

``build_shelf_grid`` turns a list of book records into a layout model that
templates paint; it does no I/O and knows nothing about HTML.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union
from urllib.parse import urlencode

DEFAULT_COLUMNS = 8
COVER_LABEL_CHARS = 8
PLAIN_LABEL_CHARS = 6
EMPTY_SHELF_MESSAGE = "No books to display"


@dataclass(frozen=True)
class BookCell:
    book_id: Any
    index: int
    title: str
    label: str
    tooltip: str
    cover_url: Optional[str] = None
    href: Optional[str] = None

    @property
    def clickable(self) -> bool:
        return self.href is not None


@dataclass(frozen=True)
class ErrorCell:
    """A malformed entry, shown rather than dropped."""

    position: int


@dataclass(frozen=True)
class EmptyShelfCell:
    colspan: int
    message: str = EMPTY_SHELF_MESSAGE


ShelfCell = Union[BookCell, ErrorCell, EmptyShelfCell]


@dataclass(frozen=True)
class ShelfGrid:
    columns: int
    rows: tuple[tuple[ShelfCell, ...], ...]

    @property
    def is_empty(self) -> bool:
        return len(self.rows) == 1 and isinstance(self.rows[0][0], EmptyShelfCell)


def truncate_title(title: str, limit: int) -> str:
    if len(title) > limit:
        return title[:limit] + "..."
    return title


def detail_href(book_id: Any) -> Optional[str]:
    if book_id is None or book_id == "":
        return None
    return "/detail?" + urlencode({"id": book_id})


def _has_title(book: Any) -> bool:
    return isinstance(book, Mapping) and isinstance(book.get("title"), str) and bool(book["title"].strip())


def _index_in(collection: Sequence[Any], book: Any) -> int:
    for index, candidate in enumerate(collection):
        if candidate is book:
            return index
    return -1


def _book_cell(book: Mapping[str, Any], index: int, owner: Mapping[str, Any]) -> BookCell:
    title = book["title"].strip()
    author = book.get("author")
    author = author.strip() if isinstance(author, str) and author.strip() else "Unknown"
    cover = book.get("coverImage")
    cover_url = cover.strip() if isinstance(cover, str) and cover.strip() else None
    limit = COVER_LABEL_CHARS if cover_url else PLAIN_LABEL_CHARS
    book_id = owner.get("id")
    return BookCell(
        book_id=book_id,
        index=index,
        title=title,
        label=truncate_title(title, limit),
        tooltip=f"{title} by {author}",
        cover_url=cover_url,
        href=detail_href(book_id),
    )


def build_shelf_grid(
    books: Sequence[Any],
    collection: Optional[Sequence[Any]] = None,
    columns: int = DEFAULT_COLUMNS,
) -> ShelfGrid:
    """
    Lay ``books`` out in rows of ``columns`` cells.

    ``collection`` is the unfiltered list ``books`` was drawn from; each cell
    records the book's position there, so a filtered view still links to the
    right record.
    """
    if columns < 1:
        raise ValueError("columns must be a positive integer")
    if not books:
        return ShelfGrid(columns=columns, rows=((EmptyShelfCell(colspan=columns),),))

    source = books if collection is None else collection
    cells: list[ShelfCell] = []
    for position, book in enumerate(books):
        if not _has_title(book):
            cells.append(ErrorCell(position=position))
            continue
        index = _index_in(source, book)
        owner = source[index] if index >= 0 else book
        if index < 0:
            index = position
        cells.append(_book_cell(book, index, owner))

    rows = tuple(tuple(cells[start:start + columns]) for start in range(0, len(cells), columns))
    return ShelfGrid(columns=columns, rows=rows)
