import json
import re

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from bookform.core.client import BooksApi
from bookform.core.controller import BookFormController
from bookform.core.session import FormSession, SessionStore
from bookform.web import app as web_app

BASE_URL = "http://books.test"
_BOOK_PATH = re.compile(r"^/api/books/(\d+)$")


class FakeBooksApi:
    """In-memory stand-in for the remote /api/books service."""

    def __init__(self):
        self.books: dict[int, dict] = {}
        self.next_id = 1
        self.requests: list[httpx.Request] = []
        # (method, path) -> httpx.Response to return, or exception to raise
        self.failures: dict[tuple[str, str], object] = {}

    def add(self, **fields) -> dict:
        book = {
            "id": self.next_id,
            "title": "",
            "author": "",
            "isbn": "",
            "price": 0,
            "publishDate": "",
        }
        book.update(fields)
        self.books[book["id"]] = book
        self.next_id += 1
        return book

    def fail(self, method: str, path: str, result: object) -> None:
        self.failures[(method, path)] = result

    def calls(self, method: str | None = None) -> list[tuple[str, str]]:
        return [
            (r.method, r.url.path)
            for r in self.requests
            if method is None or r.method == method
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        failure = self.failures.get((request.method, request.url.path))
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return failure

        path = request.url.path
        if path == "/api/books":
            if request.method == "GET":
                return httpx.Response(200, json=list(self.books.values()))
            if request.method == "POST":
                body = json.loads(request.content)
                book = self.add(**body)
                return httpx.Response(201, json=book)

        match = _BOOK_PATH.match(path)
        if match:
            book_id = int(match.group(1))
            if book_id not in self.books:
                return httpx.Response(404, json={"message": "Book not found"})
            if request.method == "GET":
                return httpx.Response(200, json=self.books[book_id])
            if request.method == "PUT":
                body = json.loads(request.content)
                self.books[book_id].update(body)
                return httpx.Response(200, json=self.books[book_id])
            if request.method == "DELETE":
                del self.books[book_id]
                return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def fake_api():
    return FakeBooksApi()


@pytest_asyncio.fixture
async def api(fake_api):
    async with BooksApi(BASE_URL, transport=httpx.MockTransport(fake_api.handler)) as client:
        yield client


@pytest.fixture
def session():
    return FormSession()


@pytest.fixture
def controller(api, session):
    return BookFormController(api, session)


@pytest.fixture
def client(fake_api, monkeypatch):
    async def get_test_api():
        async with BooksApi(BASE_URL, transport=httpx.MockTransport(fake_api.handler)) as api:
            yield api

    monkeypatch.setattr(web_app, "sessions", SessionStore())
    web_app.app.dependency_overrides[web_app.get_api] = get_test_api
    with TestClient(web_app.app) as test_client:
        yield test_client
    web_app.app.dependency_overrides.clear()
