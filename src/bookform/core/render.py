"""Render the book form page as HTML.

Every value that came from the user or the remote API goes through
`escape()` before it is placed in markup.
"""

from __future__ import annotations

import html
import math
import re
from decimal import Decimal
from string import Template

from .models import Book
from .session import FormSession

CREATE_LABEL = "도서 등록"
UPDATE_TITLE = "도서 수정"
UPDATE_LABEL = "수정 저장"
EDIT_BUTTON = "수정"
DELETE_BUTTON = "삭제"
DELETE_PROMPT = "이 도서를 삭제하시겠습니까?"

INFO_COLOR = "#2d6a4f"
ERROR_COLOR = "#c0392b"

# String forms Number() accepts, ASCII digits only
_DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)
_RADIX_RE = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")
_INFINITY_RE = re.compile(r"[+-]?Infinity")


def escape(value: object) -> str:
    """Neutralize &, <, >, " and ' in any value. None renders as ""."""
    return html.escape("" if value is None else str(value), quote=True)


def format_date(value: object) -> str:
    if not value:
        return ""
    return str(value)[:10]


def format_price(value: object) -> str:
    """Group thousands with commas, like Number(x).toLocaleString("ko-KR").

    Missing or blank prices count as 0. Text that Number() rejects, such as
    "1_000" or "inf", renders "NaN". Numbers past 2**53 keep only the digits
    a double holds. Fractions keep at most three digits.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return "0"
    if isinstance(value, int) and not isinstance(value, bool):
        if abs(value) < 2**53:
            return f"{value:,}"
        number = _to_double(value)
    elif isinstance(value, float):
        number = value
    else:
        text = str(value).strip()
        if _INFINITY_RE.fullmatch(text):
            return "-∞" if text.startswith("-") else "∞"
        if _RADIX_RE.fullmatch(text):
            number = _to_double(int(text, 0))
        elif _DECIMAL_RE.fullmatch(text):
            number = float(text)
        else:
            return "NaN"
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "-∞" if number < 0 else "∞"
    if number.is_integer():
        # repr() gives the shortest digits that round-trip, as Intl does.
        return f"{int(Decimal(repr(number))):,}"
    return f"{number:,.3f}".rstrip("0").rstrip(".")


def _to_double(number: int) -> float:
    try:
        return float(number)
    except OverflowError:
        return math.inf if number > 0 else -math.inf


def render_actions(book: Book) -> str:
    """Edit and delete controls; records without an id get none."""
    if book.id is None:
        return ""
    book_id = escape(book.id)
    return f"""
          <form method="post" action="/books/{book_id}/edit" class="inline">
            <button type="submit">{EDIT_BUTTON}</button>
          </form>
          <form method="post" action="/books/{book_id}/delete" class="inline"
                onsubmit="this.confirmed.value = confirm('{escape(DELETE_PROMPT)}') ? '1' : '';">
            <input type="hidden" name="confirmed" value="">
            <button type="submit" class="btn-secondary">{DELETE_BUTTON}</button>
          </form>"""


def render_row(book: Book) -> str:
    return f"""
      <tr>
        <td>{escape(book.title)}</td>
        <td>{escape(book.author)}</td>
        <td>{escape(book.isbn)}</td>
        <td>{escape(format_price(book.price))}</td>
        <td>{escape(format_date(book.publish_date))}</td>
        <td>{render_actions(book)}
        </td>
      </tr>"""


def render_table(books: list[Book]) -> str:
    return "".join(render_row(book) for book in books)


def render_status(session: FormSession) -> str:
    if session.status is None:
        return '<p id="formMessage"></p>'
    color = ERROR_COLOR if session.status.is_error else INFO_COLOR
    return f'<p id="formMessage" style="color: {color}">{escape(session.status.text)}</p>'


def render_editing_field(session: FormSession) -> str:
    """Carry the edited record's id with the form so a submit stays an update."""
    if session.editing_id is None:
        return ""
    return f'<input type="hidden" name="editingId" value="{escape(session.editing_id)}">'


def render_page(session: FormSession, template: str) -> str:
    """Fill the page template from the session's mode, form, table and status."""
    form = session.form
    return Template(template).substitute(
        form_title=UPDATE_TITLE if session.is_editing else CREATE_LABEL,
        submit_label=UPDATE_LABEL if session.is_editing else CREATE_LABEL,
        cancel_style="inline-block" if session.is_editing else "none",
        editing_field=render_editing_field(session),
        title=escape(form.title),
        author=escape(form.author),
        isbn=escape(form.isbn),
        price=escape(form.price),
        publish_date=escape(form.publish_date),
        status=render_status(session),
        rows=render_table(session.books),
    )
