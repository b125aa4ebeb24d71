"""User actions on the book form, one handler per action.

Each handler is its own failure boundary: remote rejections, transport
errors and malformed responses are logged and turned into the session's
status line. Nothing here raises to the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import structlog

from .client import BooksApi, BooksApiError
from .models import BookDraft
from .render import DELETE_PROMPT
from .session import FormSession
from .validator import validate_book

log = structlog.get_logger()

LOAD_FAILED = "도서 목록을 불러오지 못했습니다."
CREATED = "도서가 등록되었습니다."
UPDATED = "도서가 수정되었습니다."
DELETED = "도서가 삭제되었습니다."
EDIT_STARTED = "수정 모드로 전환되었습니다."
EDIT_CANCELLED = "수정을 취소했습니다."
SUBMIT_FAILED = "요청 처리 중 오류가 발생했습니다."
EDIT_FAILED = "도서 정보를 불러오지 못했습니다."
DELETE_FAILED = "삭제 중 오류가 발생했습니다."

CREATE_REJECTED = "등록 실패"
UPDATE_REJECTED = "수정 실패"
FETCH_REJECTED = "조회 실패"
DELETE_REJECTED = "삭제 실패"


class BookFormController:
    """Apply user commands to a FormSession through the books API."""

    def __init__(self, api: BooksApi, session: FormSession) -> None:
        self.api = api
        self.session = session

    async def open_page(self) -> None:
        """Fresh page load: back to create mode with an empty status line."""
        self.session.start_create()
        self.session.clear_status()
        await self.load_books()

    async def load_books(self) -> None:
        """Replace the table with the full list. On failure the table is emptied."""
        try:
            books = await self.api.list_books()
        except (BooksApiError, httpx.HTTPError, ValueError) as e:
            log.warning("books_load_failed", error=str(e))
            self.session.error(LOAD_FAILED)
            books = []
        self.session.books = books
        self.session.listed = True

    async def submit(self, form: dict[str, Any]) -> None:
        """Create or update depending on the session mode.

        A page rendered in update mode posts its record id as `editingId`;
        when present it wins over the session, which may have expired or
        been replaced since the page was shown.

        Invalid input never reaches the network. On success the session goes
        back to create mode and the list is reloaded.
        """
        session = self.session
        session.clear_status()
        posted_id = _editing_id(form)
        if posted_id is not None and posted_id != session.editing_id:
            log.info("edit_mode_restored", book_id=posted_id, previous=session.editing_id)
            session.start_edit(posted_id, session.form)
        draft = BookDraft.from_form(form)
        session.form = draft

        problem = validate_book(draft)
        if problem:
            session.error(problem)
            return

        editing_id = session.editing_id
        try:
            if editing_id is None:
                await self.api.create_book(draft)
                session.start_create()
                session.info(CREATED)
            else:
                await self.api.update_book(editing_id, draft)
                session.start_create()
                session.info(UPDATED)
        except BooksApiError as e:
            prefix = CREATE_REJECTED if editing_id is None else UPDATE_REJECTED
            log.warning("book_submit_rejected", book_id=editing_id, status=e.status_code, error=e.message)
            session.error(f"{prefix}: {e.message}")
            return
        except (httpx.HTTPError, ValueError) as e:
            log.error("book_submit_failed", book_id=editing_id, error=str(e))
            session.error(SUBMIT_FAILED)
            return

        log.info("book_saved", book_id=editing_id, isbn=draft.isbn)
        await self.load_books()

    async def edit(self, book_id: int) -> None:
        """Fetch one book into the form and switch to update mode."""
        try:
            book = await self.api.get_book(book_id)
        except BooksApiError as e:
            log.warning("book_fetch_rejected", book_id=book_id, status=e.status_code, error=e.message)
            self.session.error(f"{FETCH_REJECTED}: {e.message}")
            return
        except (httpx.HTTPError, ValueError) as e:
            log.error("book_fetch_failed", book_id=book_id, error=str(e))
            self.session.error(EDIT_FAILED)
            return

        editing_id = book.id if book.id is not None else book_id
        self.session.start_edit(editing_id, BookDraft.from_book(book))
        self.session.info(EDIT_STARTED)

    async def delete(self, book_id: int, confirm: Callable[[str], bool]) -> None:
        """Delete after confirmation; a declined prompt changes nothing."""
        if not confirm(DELETE_PROMPT):
            return

        try:
            await self.api.delete_book(book_id)
        except BooksApiError as e:
            log.warning("book_delete_rejected", book_id=book_id, status=e.status_code, error=e.message)
            self.session.error(f"{DELETE_REJECTED}: {e.message}")
            return
        except httpx.HTTPError as e:
            log.error("book_delete_failed", book_id=book_id, error=str(e))
            self.session.error(DELETE_FAILED)
            return

        self.session.info(DELETED)
        await self.load_books()
        if self.session.editing_id == book_id:
            self.session.start_create()

    def cancel(self) -> None:
        self.session.start_create()
        self.session.info(EDIT_CANCELLED)


def _editing_id(form: dict[str, Any]) -> int | None:
    raw = str(form.get("editingId") or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        log.warning("editing_id_invalid", value=raw)
        return None
