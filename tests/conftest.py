"""Shared fixtures."""
import pytest

from shelfcraft.parse import normalize_book


@pytest.fixture
def make_book():
    """Build a normalized book from keyword fields."""
    def _make(book_id, **fields):
        fields.setdefault("title", f"Book {book_id}")
        return normalize_book(dict(fields, id=book_id))
    return _make
