import json

import httpx
import pytest

from bookform.core.client import BooksApiError, error_message
from bookform.core.models import BookDraft

pytestmark = pytest.mark.asyncio

DUNE = BookDraft("Dune", "Frank Herbert", "9780441013593", "15000", "2021-01-01")


async def test_list_books(api, fake_api):
    fake_api.add(title="Dune", author="Frank Herbert", isbn="9780441013593",
                 price=15000, publishDate="2021-01-01T00:00:00")
    books = await api.list_books()
    assert len(books) == 1
    assert books[0].id == 1
    assert books[0].title == "Dune"
    assert books[0].publish_date == "2021-01-01T00:00:00"
    assert fake_api.calls() == [("GET", "/api/books")]


async def test_create_sends_payload_without_id(api, fake_api):
    created = await api.create_book(DUNE)
    assert created.id == 1
    request = fake_api.requests[-1]
    assert (request.method, request.url.path) == ("POST", "/api/books")
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {
        "title": "Dune",
        "author": "Frank Herbert",
        "isbn": "9780441013593",
        "price": "15000",
        "publishDate": "2021-01-01",
    }


async def test_update_addresses_record(api, fake_api):
    fake_api.add(title="Old")
    updated = await api.update_book(1, DUNE)
    assert updated.title == "Dune"
    assert fake_api.calls("PUT") == [("PUT", "/api/books/1")]


async def test_delete(api, fake_api):
    fake_api.add(title="Dune")
    await api.delete_book(1)
    assert fake_api.books == {}


async def test_not_found_raises_with_body_message(api):
    with pytest.raises(BooksApiError) as exc_info:
        await api.get_book(7)
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Book not found"


async def test_rejection_without_message_uses_status(api, fake_api):
    fake_api.fail("POST", "/api/books", httpx.Response(500, text="Internal Server Error"))
    with pytest.raises(BooksApiError) as exc_info:
        await api.create_book(DUNE)
    assert exc_info.value.message == "500"


async def test_malformed_success_body_raises_value_error(api, fake_api):
    fake_api.fail("GET", "/api/books", httpx.Response(200, text="<html>"))
    with pytest.raises(ValueError):
        await api.list_books()


async def test_list_must_be_array(api, fake_api):
    fake_api.fail("GET", "/api/books", httpx.Response(200, json={"books": []}))
    with pytest.raises(ValueError):
        await api.list_books()


async def test_transport_errors_propagate(api, fake_api):
    fake_api.fail("GET", "/api/books", httpx.ConnectError("connection refused"))
    with pytest.raises(httpx.HTTPError):
        await api.list_books()


@pytest.mark.parametrize(
    "response, expected",
    [
        (httpx.Response(400, json={"message": "duplicate isbn"}), "duplicate isbn"),
        (httpx.Response(400, json={"message": ""}), "400"),
        (httpx.Response(409, json={"error": "conflict"}), "409"),
        (httpx.Response(422, json=["bad"]), "422"),
        (httpx.Response(502, text="Bad Gateway"), "502"),
        (httpx.Response(503), "503"),
    ],
)
async def test_error_message(response, expected):
    assert error_message(response) == expected


async def test_long_price_is_sent_as_typed(api, fake_api):
    price = "9" * 5000
    await api.create_book(BookDraft("Dune", "Frank Herbert", "9780441013593", price, "2021-01-01"))
    assert json.loads(fake_api.requests[-1].content)["price"] == price
