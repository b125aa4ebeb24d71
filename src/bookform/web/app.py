"""FastAPI web application serving the book registration page."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from ..core.client import BooksApi
from ..core.controller import BookFormController
from ..core.render import render_page
from ..core.session import FormSession, SessionStore

load_dotenv()

log = structlog.get_logger()

STATIC_DIR = Path(__file__).parent / "static"
PAGE_TEMPLATE = Path(__file__).parent / "templates" / "index.html"
SESSION_COOKIE = "bookform_session"

API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8080")
# Unset means wait for the remote service indefinitely.
API_TIMEOUT = float(os.environ["API_TIMEOUT"]) if os.environ.get("API_TIMEOUT") else None
SESSION_TTL = int(os.environ.get("SESSION_TTL", "1800"))  # seconds
MAX_SESSIONS = int(os.environ.get("MAX_SESSIONS", "500"))

# In-memory form sessions, one per browser
sessions = SessionStore(ttl=SESSION_TTL, max_sessions=MAX_SESSIONS)


async def get_api() -> AsyncIterator[BooksApi]:
    async with BooksApi(API_BASE_URL, timeout=API_TIMEOUT) as api:
        yield api


app = FastAPI(title="Book Form", docs_url=None, redoc_url=None)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


def _session(request: Request) -> tuple[str, FormSession, bool]:
    """Return (session_id, session, is_new) for the requesting browser."""
    session_id = request.cookies.get(SESSION_COOKIE)
    session = sessions.get(session_id)
    if session is not None:
        return session_id, session, False
    session_id, session = sessions.create()
    log.debug("session_started", session_id=session_id)
    return session_id, session, True


def _remember(response, session_id: str, is_new: bool):
    if is_new:
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return response


def _page(session_id: str, session: FormSession, is_new: bool) -> HTMLResponse:
    html = render_page(session, PAGE_TEMPLATE.read_text(encoding="utf-8"))
    return _remember(HTMLResponse(html), session_id, is_new)


def _to_view(session_id: str, is_new: bool) -> RedirectResponse:
    """Post/redirect/get: send the browser to the session view after a form post."""
    return _remember(RedirectResponse("/books", status_code=303), session_id, is_new)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "0.1.0",
        "environment": os.environ.get("ENV", "dev"),
        "api_base_url": API_BASE_URL,
        "sessions_active": len(sessions),
    }


@app.get("/", response_class=HTMLResponse)
async def index(request: Request, api: BooksApi = Depends(get_api)):
    session_id, session, is_new = _session(request)
    await BookFormController(api, session).open_page()
    return _page(session_id, session, is_new)


@app.get("/books", response_class=HTMLResponse)
async def view_books(request: Request, api: BooksApi = Depends(get_api)):
    session_id, session, is_new = _session(request)
    if not session.listed:
        await BookFormController(api, session).load_books()
    return _page(session_id, session, is_new)


@app.post("/books")
async def submit_book(request: Request, api: BooksApi = Depends(get_api)):
    session_id, session, is_new = _session(request)
    form = await request.form()
    await BookFormController(api, session).submit(dict(form))
    return _to_view(session_id, is_new)


@app.post("/books/{book_id}/edit")
async def edit_book(book_id: int, request: Request, api: BooksApi = Depends(get_api)):
    session_id, session, is_new = _session(request)
    await BookFormController(api, session).edit(book_id)
    return _to_view(session_id, is_new)


@app.post("/books/{book_id}/delete")
async def delete_book(book_id: int, request: Request, api: BooksApi = Depends(get_api)):
    session_id, session, is_new = _session(request)
    form = await request.form()
    # The browser's confirm() answer, filled in by the delete form's onsubmit.
    confirmed = form.get("confirmed") == "1"
    await BookFormController(api, session).delete(book_id, lambda prompt: confirmed)
    return _to_view(session_id, is_new)


@app.post("/cancel")
async def cancel_edit(request: Request, api: BooksApi = Depends(get_api)):
    session_id, session, is_new = _session(request)
    BookFormController(api, session).cancel()
    return _to_view(session_id, is_new)


def main():
    port = int(os.environ.get("PORT", "8000"))
    is_dev = os.environ.get("ENV", "dev") == "dev"
    uvicorn.run(
        "bookform.web.app:app",
        host="0.0.0.0",
        port=port,
        reload=is_dev,
    )
