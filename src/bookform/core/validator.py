"""Field validation for the book registration form."""

from __future__ import annotations

import re

from .models import BookDraft

_ISBN_RE = re.compile(r"\d{10}(\d{3})?", re.ASCII)
_PRICE_RE = re.compile(r"\d+", re.ASCII)


def validate_book(draft: BookDraft) -> str | None:
    """Return the first validation error for the draft, or None when valid.

    Checks run in a fixed order and stop at the first failure. The draft is
    expected to be normalized already (see BookDraft.from_form).
    """
    if not draft.title:
        return "제목을 입력하세요."
    if not draft.author:
        return "저자를 입력하세요."
    if not draft.isbn:
        return "ISBN을 입력하세요."
    if not _ISBN_RE.fullmatch(draft.isbn):
        return "ISBN은 10자리 또는 13자리 숫자여야 합니다."
    if draft.price is None or draft.price == "":
        return "가격을 입력하세요."
    if not _PRICE_RE.fullmatch(str(draft.price)):
        return "가격은 0 이상의 정수입니다."
    if not draft.publish_date:
        return "출판일을 선택하세요."
    return None
