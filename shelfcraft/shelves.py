"""Shelves and the in-memory library that owns them."""
import math
import uuid
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from shelfcraft.config import Config
from shelfcraft.colors import compute_shelf_colors
from shelfcraft.models import (
    Book, Shelf, ShelfKind, set_user_color, clear_user_color, reset_color
)
from shelfcraft.sorter import SortMode, sort_books

logger = logging.getLogger(__name__)


def build_genre_shelves(books: Sequence[Book]) -> List[Shelf]:
    """
    Group books into one shelf per genre.

    Genres appear in the order they are first seen; books keep their
    input order within a genre.

    Args:
        books: Books in collection order

    Returns:
        New list of Auto-by-genre shelves
    """
    groups: Dict[str, List[int]] = {}
    for book in books:
        groups.setdefault(book.genre, []).append(book.id)

    return [
        Shelf(id=f"genre-{index}", name=genre, kind=ShelfKind.AUTO_GENRE, book_ids=ids)
        for index, (genre, ids) in enumerate(groups.items(), 1)
    ]


def fill_shelves(books: Sequence[Book], count: int = Config.DEFAULT_SHELF_COUNT) -> List[Shelf]:
    """
    Pour books, in order, into a fixed number of shelves.

    Args:
        books: Books in the order they should stand
        count: Number of shelves (at least 1)

    Returns:
        New list of shelves named "Shelf 1".."Shelf N"
    """
    count = max(1, count)
    shelves = [
        Shelf(id=f"shelf-{i}", name=f"Shelf {i}", kind=ShelfKind.AUTO_FILL)
        for i in range(1, count + 1)
    ]
    capacity = max(1, math.ceil(len(books) / count))

    for position, book in enumerate(books):
        index = min(position // capacity, count - 1)
        shelves[index].book_ids.append(book.id)

    return shelves


class Library:
    """Book store keyed by ID plus the ordered list of shelves."""

    def __init__(self, books: Iterable[Book] = ()):
        """
        Initialize the library.

        Args:
            books: Normalized books; later duplicates of an ID are ignored
        """
        self.books: Dict[int, Book] = {}
        for book in books:
            self.books.setdefault(book.id, book)
        self.shelves: List[Shelf] = []

    def book_list(self) -> List[Book]:
        """All books in collection order."""
        return list(self.books.values())

    def get_shelf(self, shelf_id: str) -> Optional[Shelf]:
        """Find a shelf by ID."""
        for shelf in self.shelves:
            if shelf.id == shelf_id:
                return shelf
        return None

    def resolve(self, shelf: Shelf) -> List[Book]:
        """
        Books on a shelf, in order.

        IDs missing from the store are skipped.
        """
        books = []
        for book_id in shelf.book_ids:
            book = self.books.get(book_id)
            if book is None:
                logger.debug(f"Shelf {shelf.id} references unknown book {book_id}")
                continue
            books.append(book)
        return books

    # Building shelves

    def build_genre_shelves(self) -> List[Shelf]:
        """Replace all shelves with one shelf per genre."""
        self.shelves = build_genre_shelves(self.book_list())
        logger.info(f"Built {len(self.shelves)} genre shelves")
        return self.shelves

    def arrange(self, mode: SortMode, count: int = Config.DEFAULT_SHELF_COUNT) -> List[Shelf]:
        """Sort the whole collection and pour it into shelves."""
        ordered = sort_books(self.book_list(), mode)
        self.shelves = fill_shelves(ordered, count)
        return self.shelves

    def create_manual_shelf(self, name: Optional[str] = None) -> Shelf:
        """
        Append an empty manual shelf.

        Args:
            name: Shelf name (default name if blank)

        Returns:
            The new shelf
        """
        shelf = Shelf(
            id=f"manual-{uuid.uuid4().hex[:12]}",
            name=Config.DEFAULT_SHELF_NAME,
            kind=ShelfKind.MANUAL
        )
        if name is not None:
            shelf.rename(name)
        self.shelves.append(shelf)
        return shelf

    def rename_shelf(self, shelf_id: str, name: str) -> bool:
        """Rename a shelf; False if unknown or the name is blank."""
        shelf = self.get_shelf(shelf_id)
        return shelf.rename(name) if shelf else False

    # Rearranging

    def move_book(self, book_id: int, shelf_id: str, position: Optional[int] = None) -> List[str]:
        """
        Move a book onto a shelf.

        Args:
            book_id: Book to move
            shelf_id: Destination shelf
            position: Index on the destination (append when None)

        Returns:
            IDs of every shelf whose contents changed, to be recolored
        """
        target = self.get_shelf(shelf_id)
        if target is None or book_id not in self.books:
            logger.warning(f"Cannot move book {book_id} to shelf {shelf_id}")
            return []

        changed = []
        for shelf in self.shelves:
            if book_id in shelf.book_ids:
                shelf.book_ids = [i for i in shelf.book_ids if i != book_id]
                changed.append(shelf.id)

        if position is None:
            target.book_ids.append(book_id)
        else:
            index = min(max(position, 0), len(target.book_ids))
            target.book_ids.insert(index, book_id)

        if target.id not in changed:
            changed.append(target.id)
        return changed

    def reorder_shelves(self, shelf_ids: Sequence[str]) -> None:
        """
        Put shelves in a new top-to-bottom order.

        Unknown IDs are ignored; shelves not mentioned follow in their
        current order.
        """
        by_id = {shelf.id: shelf for shelf in self.shelves}
        ordered = []
        for shelf_id in shelf_ids:
            shelf = by_id.pop(shelf_id, None)
            if shelf is not None:
                ordered.append(shelf)
        ordered.extend(shelf for shelf in self.shelves if shelf.id in by_id)
        self.shelves = ordered

    # Colors

    def _replace_book(self, book_id: int, transition, *args) -> Optional[Book]:
        book = self.books.get(book_id)
        if book is None:
            logger.warning(f"Unknown book {book_id}")
            return None
        self.books[book_id] = transition(book, *args)
        return self.books[book_id]

    def set_user_color(self, book_id: int, color: str) -> Optional[Book]:
        """Anchor a book to a user-chosen color."""
        return self._replace_book(book_id, set_user_color, color)

    def clear_user_color(self, book_id: int) -> Optional[Book]:
        """Remove a book's explicit color."""
        return self._replace_book(book_id, clear_user_color)

    def reset_color(self, book_id: int) -> Optional[Book]:
        """Return a book to its catalog color."""
        return self._replace_book(book_id, reset_color)

    def shelf_colors(self, shelf_id: str) -> Dict[int, Optional[str]]:
        """Rendered colors for one shelf (empty for an unknown shelf)."""
        shelf = self.get_shelf(shelf_id)
        if shelf is None:
            return {}
        return compute_shelf_colors(self.resolve(shelf))

    def all_colors(self) -> Dict[str, Dict[int, Optional[str]]]:
        """Rendered colors for every shelf, keyed by shelf ID."""
        return {shelf.id: compute_shelf_colors(self.resolve(shelf)) for shelf in self.shelves}
