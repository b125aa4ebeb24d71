"""Async client for the remote book-management API."""

from __future__ import annotations

import httpx
import structlog

from .models import Book, BookDraft

log = structlog.get_logger()

BOOKS_PATH = "/api/books"


class BooksApiError(Exception):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def error_message(resp: httpx.Response) -> str:
    """Pull a human-readable message out of an error response.

    Uses the body's `message` field when the body is JSON and carries one,
    otherwise the status code.
    """
    try:
        data = resp.json()
    except ValueError:
        return str(resp.status_code)
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(resp.status_code)


class BooksApi:
    """Thin wrapper over the /api/books endpoints.

    Non-2xx responses raise BooksApiError. Transport failures surface as
    httpx.HTTPError and unparseable success bodies as ValueError; callers
    decide what to show for those.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> BooksApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: object) -> httpx.Response:
        resp = await self._client.request(method, path, **kwargs)
        if not resp.is_success:
            message = error_message(resp)
            log.debug(
                "books_api_rejected",
                method=method,
                path=path,
                status=resp.status_code,
                message=message,
            )
            raise BooksApiError(resp.status_code, message)
        return resp

    async def list_books(self) -> list[Book]:
        resp = await self._request("GET", BOOKS_PATH)
        data = resp.json()
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ValueError("expected a list of book objects")
        return [Book.from_dict(item) for item in data]

    async def get_book(self, book_id: int) -> Book:
        resp = await self._request("GET", f"{BOOKS_PATH}/{book_id}")
        return _book_from(resp)

    async def create_book(self, draft: BookDraft) -> Book:
        resp = await self._request("POST", BOOKS_PATH, json=draft.to_payload())
        return _book_from(resp)

    async def update_book(self, book_id: int, draft: BookDraft) -> Book:
        resp = await self._request(
            "PUT", f"{BOOKS_PATH}/{book_id}", json=draft.to_payload()
        )
        return _book_from(resp)

    async def delete_book(self, book_id: int) -> None:
        await self._request("DELETE", f"{BOOKS_PATH}/{book_id}")


def _book_from(resp: httpx.Response) -> Book:
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"expected a book object, got {type(data).__name__}")
    return Book.from_dict(data)
