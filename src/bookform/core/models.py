"""Data models for book records and the registration form."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any

_ISBN_NOISE = re.compile(r"[-\s]")


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


@dataclass
class Book:
    """A book as served by the remote API."""

    id: int | None = None
    title: str = ""
    author: str = ""
    isbn: str = ""
    price: Any = None
    publish_date: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Book:
        return cls(
            id=data.get("id"),
            title=_text(data, "title"),
            author=_text(data, "author"),
            isbn=_text(data, "isbn"),
            price=data.get("price"),
            publish_date=_text(data, "publishDate"),
        )


@dataclass
class BookDraft:
    """Form fields as typed by the user, all strings."""

    title: str = ""
    author: str = ""
    isbn: str = ""
    price: str = ""
    publish_date: str = ""

    @classmethod
    def from_form(cls, form: dict[str, Any]) -> BookDraft:
        """Normalize raw form input.

        Every field is trimmed; the ISBN additionally loses all hyphens and
        whitespace so "978-0-441-01359-3" becomes "9780441013593".
        """
        return cls(
            title=_text(form, "title").strip(),
            author=_text(form, "author").strip(),
            isbn=_ISBN_NOISE.sub("", _text(form, "isbn")).strip(),
            price=_text(form, "price").strip(),
            publish_date=_text(form, "publishDate").strip(),
        )

    @classmethod
    def from_book(cls, book: Book) -> BookDraft:
        """Prefill the form from a fetched record."""
        return cls(
            title=book.title,
            author=book.author,
            isbn=book.isbn,
            price="" if book.price is None else str(book.price),
            publish_date=book.publish_date[:10],
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON body for POST/PUT; price goes out as the digit string typed."""
        return {
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "price": self.price,
            "publishDate": self.publish_date,
        }

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))
