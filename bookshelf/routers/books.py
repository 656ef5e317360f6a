from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from bookshelf.db.store import LibraryFileStore, get_library_store
from bookshelf.schemas.book import LibraryDocument, SaveResult, StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])


@router.get("")
def read_library(store: LibraryFileStore = Depends(get_library_store)) -> dict[str, Any]:
    """Return the stored library document; an absent or corrupt file reads as no books."""
    logger.info("GET /books requested")
    return store.read_document()


@router.post(
    "",
    response_model=SaveResult,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": StorageError}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": LibraryDocument.model_json_schema(by_alias=True)}},
        }
    },
)
def write_library(
    payload: dict[str, Any] = Body(...),
    store: LibraryFileStore = Depends(get_library_store),
):
    """Replace the whole library document with the request body, written as sent."""
    books = payload.get("books")
    logger.info("POST /books requested (%d books)", len(books) if isinstance(books, list) else 0)
    try:
        store.write_document(payload)
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Error writing books file: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=StorageError(error=str(exc)).model_dump(),
        )
    return SaveResult(success=True)
