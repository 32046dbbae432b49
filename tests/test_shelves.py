"""Tests for shelves and the library store."""
from shelfcraft.config import Config
from shelfcraft.models import ColorStatus, Shelf, ShelfKind
from shelfcraft.shelves import Library, build_genre_shelves, fill_shelves
from shelfcraft.sorter import SortMode


def _library(make_book):
    return Library([
        make_book(1, genre="Dystopia", author="Orwell", color="#333333"),
        make_book(2, genre="Satire", author="Orwell"),
        make_book(3, genre="Dystopia", author="Huxley"),
        make_book(4, genre="Sci-Fi", author="Herbert"),
        make_book(5, genre="Satire", author="Swift"),
    ])


def test_build_genre_shelves(make_book):
    """Test first-seen genre order and input order inside a genre."""
    library = _library(make_book)

    shelves = build_genre_shelves(library.book_list())

    assert [s.name for s in shelves] == ["Dystopia", "Satire", "Sci-Fi"]
    assert [s.book_ids for s in shelves] == [[1, 3], [2, 5], [4]]
    assert all(s.kind == ShelfKind.AUTO_GENRE for s in shelves)


def test_build_genre_shelves_is_repeatable(make_book):
    """Test two builds from the same books agree."""
    books = _library(make_book).book_list()

    first = build_genre_shelves(books)
    second = build_genre_shelves(books)

    assert [(s.name, s.book_ids) for s in first] == [(s.name, s.book_ids) for s in second]


def test_library_build_replaces_shelves(make_book):
    """Test the library drops old shelves when rebuilding."""
    library = _library(make_book)
    library.create_manual_shelf("Favourites")

    library.build_genre_shelves()

    assert [s.name for s in library.shelves] == ["Dystopia", "Satire", "Sci-Fi"]


def test_fill_shelves(make_book):
    """Test capacity is ceil(n / count), in order."""
    books = [make_book(i) for i in range(1, 8)]

    shelves = fill_shelves(books, 3)

    assert [s.book_ids for s in shelves] == [[1, 2, 3], [4, 5, 6], [7]]
    assert [s.name for s in shelves] == ["Shelf 1", "Shelf 2", "Shelf 3"]
    assert [s.book_ids for s in fill_shelves(books[:2], 3)] == [[1], [2], []]
    assert [s.book_ids for s in fill_shelves([], 2)] == [[], []]


def test_arrange_sorts_then_fills(make_book):
    """Test arrange pours the sorted collection into shelves."""
    library = _library(make_book)

    library.arrange(SortMode.AUTHOR, 2)

    assert [s.book_ids for s in library.shelves] == [[4, 3, 1], [2, 5]]


def test_create_manual_shelf(make_book):
    """Test manual shelves are appended empty with unique IDs."""
    library = _library(make_book)
    library.build_genre_shelves()

    named = library.create_manual_shelf("To read")
    unnamed = library.create_manual_shelf()
    blank = library.create_manual_shelf("   ")

    assert library.shelves[-3:] == [named, unnamed, blank]
    assert named.name == "To read"
    assert unnamed.name == Config.DEFAULT_SHELF_NAME
    assert blank.name == Config.DEFAULT_SHELF_NAME
    assert named.kind == ShelfKind.MANUAL
    assert named.book_ids == []
    assert len({s.id for s in library.shelves}) == len(library.shelves)
    assert library.shelves[0].book_ids == [1, 3]


def test_rename_rejects_blank_names():
    """Test the old name survives an empty rename."""
    shelf = Shelf(id="s", name="Old")

    assert not shelf.rename("  ")
    assert shelf.name == "Old"
    assert shelf.rename(" New ")
    assert shelf.name == "New"


def test_rename_shelf_unknown(make_book):
    """Test renaming a missing shelf fails quietly."""
    assert not _library(make_book).rename_shelf("nope", "Name")


def test_resolve_skips_unknown_ids(make_book):
    """Test dangling IDs are ignored when resolving a shelf."""
    library = _library(make_book)
    shelf = Shelf(id="s", name="Mixed", book_ids=[1, 99, 2])
    library.shelves.append(shelf)

    assert [b.id for b in library.resolve(shelf)] == [1, 2]
    assert set(library.shelf_colors("s")) == {1, 2}


def test_move_book_between_shelves(make_book):
    """Test a cross-shelf move reports both shelves."""
    library = _library(make_book)
    library.build_genre_shelves()

    changed = library.move_book(3, "genre-2", position=1)

    assert changed == ["genre-1", "genre-2"]
    assert library.get_shelf("genre-1").book_ids == [1]
    assert library.get_shelf("genre-2").book_ids == [2, 3, 5]


def test_move_book_within_shelf(make_book):
    """Test reordering inside one shelf."""
    library = _library(make_book)
    library.build_genre_shelves()

    changed = library.move_book(5, "genre-2", position=0)

    assert changed == ["genre-2"]
    assert library.get_shelf("genre-2").book_ids == [5, 2]


def test_move_book_unknown(make_book):
    """Test moves to unknown shelves or of unknown books do nothing."""
    library = _library(make_book)
    library.build_genre_shelves()

    assert library.move_book(1, "nope") == []
    assert library.move_book(42, "genre-1") == []
    assert library.get_shelf("genre-1").book_ids == [1, 3]


def test_reorder_shelves(make_book):
    """Test new order with unknown IDs ignored and leftovers kept."""
    library = _library(make_book)
    library.build_genre_shelves()

    library.reorder_shelves(["genre-3", "missing", "genre-1"])

    assert [s.id for s in library.shelves] == ["genre-3", "genre-1", "genre-2"]


def test_color_transitions(make_book):
    """Test set, clear and reset of a book's color."""
    library = _library(make_book)

    book = library.set_user_color(2, "#00FF00")
    assert book.display_color == "#00ff00"
    assert book.color_status == ColorStatus.USER_SET

    assert library.set_user_color(2, "green").display_color == "#00ff00"

    book = library.clear_user_color(1)
    assert book.display_color is None
    assert book.color_status == ColorStatus.UNSET
    assert book.base_color == "#333333"

    assert library.reset_color(1).display_color == "#333333"
    assert library.reset_color(2).color_status == ColorStatus.UNSET
    assert library.set_user_color(42, "#000000") is None


def test_shelf_colors_follow_anchors(make_book):
    """Test recoloring after an anchor is added."""
    library = _library(make_book)
    library.build_genre_shelves()

    assert library.shelf_colors("genre-1") == {1: "#333333", 3: None}

    library.set_user_color(3, "#999999")
    colors = library.all_colors()

    assert colors["genre-1"] == {1: "#333333", 3: "#999999"}
    assert colors["genre-3"] == {4: None}
    assert library.shelf_colors("missing") == {}
