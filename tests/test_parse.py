"""Tests for parsing functions."""
from shelfcraft.config import Config
from shelfcraft.models import ColorStatus
from shelfcraft.parse import (
    normalize_book, normalize_books, parse_sheet_tsv, sheet_row_to_record,
    parse_sheet_books, deduplicate_books
)


def test_normalize_book_complete():
    """Test normalizing a record with all fields present."""
    record = {
        "id": 1,
        "title": "1984",
        "author": "George Orwell",
        "genre": "Dystopia",
        "tags": ["Politics", "Surveillance"],
        "height": 190,
        "width": 18,
        "color": "#333333"
    }

    book = normalize_book(record)

    assert book.id == 1
    assert book.title == "1984"
    assert book.author == "George Orwell"
    assert book.tags == frozenset({"Politics", "Surveillance"})
    assert book.height == 190
    assert book.width == 18
    assert book.base_color == "#333333"
    assert book.display_color == "#333333"
    assert book.color_status == ColorStatus.USER_SET
    assert book.is_anchor


def test_normalize_book_missing_fields():
    """Test that blanks and bad dimensions fall back to defaults."""
    record = {
        "id": 2,
        "title": "  ",
        "height": None,
        "width": -4,
        "color": None
    }

    book = normalize_book(record)

    assert book.title == Config.DEFAULT_TITLE
    assert book.author == Config.DEFAULT_AUTHOR
    assert book.genre == Config.DEFAULT_GENRE
    assert book.tags == frozenset()
    assert book.height == Config.DEFAULT_HEIGHT
    assert book.width == Config.DEFAULT_WIDTH
    assert book.base_color is None
    assert book.display_color is None
    assert book.color_status == ColorStatus.UNSET


def test_normalize_book_never_raises():
    """Test that garbage degrades instead of failing."""
    book = normalize_book({"height": "tall", "width": float("inf"), "tags": 7, "color": "-"}, fallback_id=9)

    assert book.id == 9
    assert book.height == Config.DEFAULT_HEIGHT
    assert book.width == Config.DEFAULT_WIDTH
    assert book.tags == frozenset({"7"})
    assert book.color_status == ColorStatus.UNSET

    assert normalize_book(None, fallback_id=3).id == 3


def test_normalize_book_tags_are_a_set():
    """Test tag de-duplication and blank removal."""
    book = normalize_book({"id": 1, "tags": ["War", "", "war", "War ", None]})
    assert book.tags == frozenset({"War", "war"})

    book = normalize_book({"id": 1, "tags": "Sea, Whales,,Sea"})
    assert book.tags == frozenset({"Sea", "Whales"})


def test_normalize_book_color_forms():
    """Test that short and uppercase hex are normalized."""
    assert normalize_book({"id": 1, "color": "#ABC"}).display_color == "#aabbcc"
    assert normalize_book({"id": 1, "color": "FF0000"}).display_color == "#ff0000"
    assert normalize_book({"id": 1, "color": "red"}).display_color is None


def test_render_size():
    """Test the pixel projection of the dimensions."""
    book = normalize_book({"id": 1, "height": 100, "width": 20})

    assert book.render_height == 100 * Config.PX_PER_MM
    assert book.render_width == 20 * Config.PX_PER_MM


def test_normalize_books_fallback_ids():
    """Test fallback IDs follow position plus offset."""
    books = normalize_books([{"title": "A"}, {"id": "7", "title": "B"}, {"id": 0}], id_offset=2)

    assert [b.id for b in books] == [3, 7, 5]


def test_parse_sheet_tsv():
    """Test parsing a spreadsheet export."""
    text = (
        "id\ttitle\tauthor\ttags 1\n"
        "1\tDune\tFrank Herbert\tDesert\n"
        "2\t\tNobody\t-\n"
        "3\tEmma\n"
    )

    rows = parse_sheet_tsv(text)

    assert len(rows) == 2
    assert rows[0]["title"] == "Dune"
    assert rows[1]["title"] == "Emma"
    assert rows[1]["author"] == ""
    assert parse_sheet_tsv("") == []


def test_sheet_row_to_record():
    """Test tag columns are merged and centimeters converted."""
    row = {
        "id": "4",
        "title": "Moby Dick",
        "author": "Herman Melville",
        "genre": "Adventure",
        "tags": "Sea, Whales",
        "Tags 2": "-",
        "tags3": "Obsession",
        "Fronte (cm)": "23.5",
        "Dorso (cm)": "",
        "color": ""
    }

    book = normalize_book(sheet_row_to_record(row))

    assert book.id == 4
    assert book.tags == frozenset({"Sea", "Whales", "Obsession"})
    assert book.height == 235
    assert book.width == Config.DEFAULT_WIDTH
    assert book.display_color is None


def test_parse_sheet_books():
    """Test spreadsheet text straight to books."""
    text = "title\tgenre\nDune\tSci-Fi\nEmma\tClassic\n"

    books = parse_sheet_books(text, id_offset=2)

    assert [b.id for b in books] == [3, 4]
    assert [b.genre for b in books] == ["Sci-Fi", "Classic"]



def test_sheet_headers_ignore_case():
    """Test capitalized headers map onto the same fields."""
    text = "Title\tAuthor\tGenre\tTags\tFRONTE (CM)\nDune\tFrank Herbert\tSci-Fi\tdesert, spice\t21\n"

    book = parse_sheet_books(text)[0]

    assert book.title == "Dune"
    assert book.author == "Frank Herbert"
    assert book.genre == "Sci-Fi"
    assert book.tags == frozenset({"desert", "spice"})
    assert book.height == 210


def test_deduplicate_books():
    """Test deduplication by book ID."""
    books = normalize_books([
        {"id": 1, "title": "Book A"},
        {"id": 2, "title": "Book B"},
        {"id": 1, "title": "Book A Duplicate"},
    ])

    unique = deduplicate_books(books)

    assert len(unique) == 2
    assert unique[0].title == "Book A"
    assert unique[1].id == 2


if __name__ == "__main__":
    # Run tests
    test_normalize_book_complete()
    test_normalize_book_missing_fields()
    test_normalize_book_never_raises()
    test_parse_sheet_tsv()
    test_deduplicate_books()
    print("✅ All tests passed!")
