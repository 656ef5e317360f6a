from .book import (
    DEFAULT_STATUS,
    Book,
    BookForm,
    BookStatus,
    LibraryDocument,
    SaveResult,
    StorageError,
    split_tags,
)

__all__ = [
    "DEFAULT_STATUS",
    "Book",
    "BookForm",
    "BookStatus",
    "LibraryDocument",
    "SaveResult",
    "StorageError",
    "split_tags",
]
