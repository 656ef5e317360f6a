from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from fastapi import Depends

from bookshelf.core.settings import LibrarySettings, get_library_settings

logger = logging.getLogger(__name__)


def _empty_document() -> dict[str, Any]:
    return {"books": []}


class LibraryFileStore:
    """Whole-document JSON storage for the library.

    Every write replaces the file; there is no locking, so concurrent writers
    race and the last one wins.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def read_document(self) -> dict[str, Any]:
        """Return the stored document, or ``{"books": []}`` when it is absent or unusable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("Books file %s not found, returning empty library", self.path)
            return _empty_document()
        except OSError as exc:
            logger.warning("Could not read books file %s: %s", self.path, exc)
            return _empty_document()

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Books file %s is not valid JSON: %s", self.path, exc)
            return _empty_document()

        if not isinstance(document, dict):
            logger.warning("Books file %s does not hold a JSON object", self.path)
            return _empty_document()

        if not isinstance(document.get("books"), list):
            logger.warning("Books file %s holds no book list, returning empty library", self.path)
            document["books"] = []
        logger.info("Books file read successfully (%s)", self.path)
        return document

    def write_document(self, document: dict[str, Any]) -> None:
        """Replace the stored document. Raises ``OSError`` or ``TypeError`` on failure."""
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Books file written successfully (%s, %d books)", self.path, len(document.get("books") or []))


def get_library_store(settings: LibrarySettings = Depends(get_library_settings)) -> LibraryFileStore:
    return LibraryFileStore(settings.books_file)
