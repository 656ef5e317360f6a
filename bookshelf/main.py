from __future__ import annotations

import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from bookshelf.core.settings import get_library_settings
from bookshelf.routers.books import router as books_router
from bookshelf.routers.pages import redirect_with_notice, router as pages_router
from bookshelf.services.results import NoticeRedirect

STATIC_DIR = Path(__file__).resolve().parent / "static"

logging.basicConfig(
    level=get_library_settings().log_level,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Little Library")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NoticeRedirect)
async def notice_redirect_handler(request: Request, exc: NoticeRedirect):
    logger.info("Redirecting %s to %s: %s", request.url.path, exc.location, exc.message)
    return redirect_with_notice(exc.location, exc.message)


app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

app.include_router(books_router)
app.include_router(pages_router)


def run() -> None:
    """Serve the app with uvicorn on port 3000."""
    logger.info("Server running at http://localhost:3000")
    uvicorn.run("bookshelf.main:app", host="127.0.0.1", port=3000)
