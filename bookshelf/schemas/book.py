from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookStatus(str, enum.Enum):
    WANT_TO_READ = "want to read"
    READING = "reading"
    READ = "read"


DEFAULT_STATUS = BookStatus.WANT_TO_READ.value


def split_tags(raw: str | None) -> list[str]:
    """Split a comma separated tag field, dropping blank entries."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


class Book(BaseModel):
    id: int
    title: str
    author: str = ""
    description: str = ""
    cover_image: str = Field(default="", alias="coverImage")
    review: str = ""
    tags: list[str] = Field(default_factory=list)
    status: str = DEFAULT_STATUS
    date_added: Optional[str] = Field(default=None, alias="dateAdded")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("tags")
    @classmethod
    def drop_blank_tags(cls, value: list[str]) -> list[str]:
        return [tag for tag in value if tag]

    def to_record(self) -> dict[str, Any]:
        """Return the JSON object stored in the library document."""
        return self.model_dump(by_alias=True)


class BookForm(BaseModel):
    """Fields submitted by the add-book form, trimmed."""

    title: str = ""
    author: str = ""
    description: str = ""
    cover_image: str = Field(default="", alias="coverImage")
    review: str = ""
    tags: str = ""
    status: str = DEFAULT_STATUS

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: str | None) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_STATUS
        return value

    @property
    def tag_list(self) -> list[str]:
        return split_tags(self.tags)


class LibraryDocument(BaseModel):
    """The single persisted JSON document holding the whole library."""

    library: Optional[str] = None
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")
    total_books: Optional[int] = Field(default=None, alias="totalBooks")
    books: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class SaveResult(BaseModel):
    success: bool = True


class StorageError(BaseModel):
    error: str
