from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()


def _as_float(value: str | None) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


class LibrarySettings(BaseModel):
    """Runtime configuration for the library storage and pages."""

    books_file: str = Field(default="books.json", alias="BOOKSHELF_BOOKS_FILE")
    library_name: str = Field(default="Little Library", alias="BOOKSHELF_LIBRARY_NAME")
    api_base_url: Optional[str] = Field(default=None, alias="BOOKSHELF_API_BASE_URL")
    request_timeout: Optional[float] = Field(default=None, alias="BOOKSHELF_REQUEST_TIMEOUT", gt=0)
    shelf_columns: int = Field(default=8, alias="BOOKSHELF_SHELF_COLUMNS", ge=1)
    log_level: str = Field(default="INFO", alias="BOOKSHELF_LOG_LEVEL")

    model_config = {"populate_by_name": True}

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if value is None:
            return "INFO"
        return value.upper()

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _blank_url_is_unset(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.rstrip("/")


@lru_cache
def get_library_settings() -> LibrarySettings:
    """Load library configuration from environment variables."""
    return LibrarySettings(
        books_file=os.getenv("BOOKSHELF_BOOKS_FILE", "books.json"),
        library_name=os.getenv("BOOKSHELF_LIBRARY_NAME", "Little Library"),
        api_base_url=os.getenv("BOOKSHELF_API_BASE_URL"),
        request_timeout=_as_float(os.getenv("BOOKSHELF_REQUEST_TIMEOUT")),
        shelf_columns=int(os.getenv("BOOKSHELF_SHELF_COLUMNS", "8")),
        log_level=os.getenv("BOOKSHELF_LOG_LEVEL", "INFO"),
    )
