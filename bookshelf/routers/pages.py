from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Query, Request, Response, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from bookshelf.core.settings import LibrarySettings, get_library_settings
from bookshelf.schemas.book import BookForm, BookStatus
from bookshelf.services.create_service import CreateService, get_create_service
from bookshelf.services.detail_service import DetailService, get_detail_service
from bookshelf.services.results import LIST_PAGE
from bookshelf.services.shelf_service import ShelfService, get_shelf_service

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.trim_blocks = True
templates.env.lstrip_blocks = True

router = APIRouter(tags=["pages"], default_response_class=HTMLResponse)

STATUS_CHOICES = [choice.value for choice in BookStatus]


def with_notice(location: str, notice: Optional[str]) -> str:
    if not notice:
        return location
    separator = "&" if "?" in location else "?"
    return f"{location}{separator}{urlencode({'notice': notice})}"


def redirect_with_notice(location: str, notice: Optional[str] = None) -> RedirectResponse:
    return RedirectResponse(with_notice(location, notice), status_code=status.HTTP_303_SEE_OTHER)


def _detail_location(book_id: str) -> str:
    return "/detail?" + urlencode({"id": book_id})


@router.get("/")
async def list_page(
    request: Request,
    q: Optional[str] = Query(default=None),
    notice: Optional[str] = Query(default=None),
    service: ShelfService = Depends(get_shelf_service),
    settings: LibrarySettings = Depends(get_library_settings),
):
    """Bookshelf grid, optionally filtered by ``q``."""
    snapshot = await service.fetch()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "library_name": settings.library_name,
            "count": snapshot.count,
            "grid": snapshot.grid(q, columns=service.columns),
            "query": q or "",
            "notice": notice,
        },
    )


@router.get("/shelf")
async def shelf_fragment(
    request: Request,
    known: int = Query(ge=0),
    q: Optional[str] = Query(default=None),
    service: ShelfService = Depends(get_shelf_service),
):
    """Re-render the grid after a refocus, but only when the book count moved."""
    snapshot = await service.reconcile(known)
    if snapshot is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return templates.TemplateResponse(
        request,
        "_shelf.html",
        {"grid": snapshot.grid(q, columns=service.columns), "count": snapshot.count},
        headers={"X-Book-Count": str(snapshot.count)},
    )


@router.get("/detail")
async def detail_page(
    request: Request,
    book_id: Optional[str] = Query(default=None, alias="id"),
    notice: Optional[str] = Query(default=None),
    service: DetailService = Depends(get_detail_service),
    settings: LibrarySettings = Depends(get_library_settings),
):
    book = await service.open(book_id)
    return templates.TemplateResponse(
        request,
        "detail.html",
        {
            "library_name": settings.library_name,
            "book": book,
            "statuses": STATUS_CHOICES,
            "notice": notice,
        },
    )


@router.post("/detail/status")
async def update_status(
    book_id: str = Form(default="", alias="id"),
    new_status: str = Form(default="", alias="status"),
    service: DetailService = Depends(get_detail_service),
):
    result = await service.update_status(book_id, new_status)
    if not book_id:
        return redirect_with_notice(LIST_PAGE, result.message)
    return redirect_with_notice(_detail_location(book_id), result.message)


@router.post("/detail/delete")
async def delete_book(
    request: Request,
    book_id: str = Form(default="", alias="id"),
    confirm: str = Form(default=""),
    service: DetailService = Depends(get_detail_service),
    settings: LibrarySettings = Depends(get_library_settings),
):
    result = await service.delete(book_id, confirmed=confirm == "yes")
    if result.needs_confirmation:
        return templates.TemplateResponse(
            request,
            "confirm_delete.html",
            {"library_name": settings.library_name, "book_id": book_id, "prompt": result.message},
        )
    if result.ok:
        return redirect_with_notice(result.redirect_to or LIST_PAGE, result.message)
    if not book_id:
        return redirect_with_notice(LIST_PAGE, result.message)
    return redirect_with_notice(_detail_location(book_id), result.message)


def _render_add_form(
    request: Request,
    settings: LibrarySettings,
    form: BookForm,
    error: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
):
    return templates.TemplateResponse(
        request,
        "add.html",
        {
            "library_name": settings.library_name,
            "form": form,
            "statuses": STATUS_CHOICES,
            "error": error,
        },
        status_code=status_code,
    )


@router.get("/add")
async def add_page(
    request: Request,
    settings: LibrarySettings = Depends(get_library_settings),
):
    return _render_add_form(request, settings, BookForm())


@router.post("/add")
async def add_book(
    request: Request,
    title: str = Form(default=""),
    author: str = Form(default=""),
    description: str = Form(default=""),
    cover_image: str = Form(default="", alias="coverImage"),
    review: str = Form(default=""),
    tags: str = Form(default=""),
    book_status: str = Form(default="", alias="status"),
    service: CreateService = Depends(get_create_service),
    settings: LibrarySettings = Depends(get_library_settings),
):
    form = BookForm(
        title=title,
        author=author,
        description=description,
        cover_image=cover_image,
        review=review,
        tags=tags,
        status=book_status,
    )
    result = await service.create(form)
    if result.ok:
        return redirect_with_notice(result.redirect_to or LIST_PAGE, result.message)

    # Keep what was typed so the user can fix it and resubmit.
    status_code = status.HTTP_400_BAD_REQUEST if not form.title else status.HTTP_502_BAD_GATEWAY
    return _render_add_form(request, settings, form, error=result.message, status_code=status_code)
