"""Form session state and the in-memory store that holds one per browser."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field

import structlog

from .models import Book, BookDraft

log = structlog.get_logger()

DEFAULT_TTL = 1800  # 30 minutes
DEFAULT_MAX_SESSIONS = 500


@dataclass(frozen=True)
class Creating:
    """No record is being edited; submitting the form registers a new book."""


@dataclass(frozen=True)
class Editing:
    book_id: int


Mode = Creating | Editing


@dataclass
class StatusMessage:
    text: str
    is_error: bool = False


@dataclass
class FormSession:
    """Everything the page shows for one browser.

    `mode` only changes through `start_create` and `start_edit`, so the form
    fields and labels always agree with it.
    """

    mode: Mode = field(default_factory=Creating)
    form: BookDraft = field(default_factory=BookDraft)
    books: list[Book] = field(default_factory=list)
    # False until the first list load, successful or not
    listed: bool = False
    status: StatusMessage | None = None
    touched_at: float = field(default_factory=time.time)

    @property
    def editing_id(self) -> int | None:
        return self.mode.book_id if isinstance(self.mode, Editing) else None

    @property
    def is_editing(self) -> bool:
        return isinstance(self.mode, Editing)

    def start_create(self) -> None:
        self.mode = Creating()
        self.form = BookDraft()

    def start_edit(self, book_id: int, form: BookDraft) -> None:
        self.mode = Editing(book_id)
        self.form = form

    def info(self, text: str) -> None:
        self.status = StatusMessage(text)

    def error(self, text: str) -> None:
        self.status = StatusMessage(text, is_error=True)

    def clear_status(self) -> None:
        self.status = None


class SessionStore:
    """Keep form sessions in memory, expiring idle ones."""

    def __init__(self, ttl: float = DEFAULT_TTL, max_sessions: int = DEFAULT_MAX_SESSIONS):
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._sessions: dict[str, FormSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def clean_expired(self) -> None:
        now = time.time()
        expired = [sid for sid, s in self._sessions.items() if now - s.touched_at > self.ttl]
        for sid in expired:
            self._sessions.pop(sid, None)
        if expired:
            log.debug("sessions_expired", count=len(expired))

    def get(self, session_id: str | None) -> FormSession | None:
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if not session:
            return None
        if time.time() - session.touched_at > self.ttl:
            self._sessions.pop(session_id, None)
            return None
        session.touched_at = time.time()
        return session

    def create(self) -> tuple[str, FormSession]:
        """Start a new session, evicting the least recently used one when full."""
        self.clean_expired()
        if len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions, key=lambda sid: self._sessions[sid].touched_at)
            self._sessions.pop(oldest, None)
            log.info("session_evicted", session_id=oldest)
        session_id = uuid.uuid4().hex[:12]
        session = FormSession()
        self._sessions[session_id] = session
        return session_id, session
