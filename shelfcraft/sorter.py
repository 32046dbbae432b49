"""Ordering strategies for a book collection."""
import logging
import unicodedata
from enum import Enum
from typing import List, Sequence, Tuple

from shelfcraft.models import Book
from shelfcraft.similarity import similarity_score

logger = logging.getLogger(__name__)


class SortMode(str, Enum):
    """Available orderings."""
    AUTHOR = "author"
    SIMILARITY = "similarity"
    HYBRID = "hybrid"


def collation_key(text: str) -> Tuple[str, str]:
    """
    Key approximating locale-aware comparison.

    Accents and case are ignored at the first level ("émile" sits with
    "emile", "apple" before "Banana"); the raw text breaks remaining ties
    so the order stays total and deterministic.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), text


def _by_author_and_title(book: Book):
    return collation_key(book.author), collation_key(book.title)


def _by_author(book: Book):
    return collation_key(book.author)


def chain_by_similarity(books: Sequence[Book]) -> List[Book]:
    """
    Greedy nearest-neighbour chain.

    Starts from the first book and repeatedly appends the remaining book
    scoring highest against the last one placed. Ties go to the book that
    comes first in the input.

    Args:
        books: Books in their current order

    Returns:
        New list with the same books
    """
    pool = list(books)
    if len(pool) < 2:
        return pool

    current = pool.pop(0)
    result = [current]

    while pool:
        best_idx = 0
        best_score = similarity_score(current, pool[0])
        for i in range(1, len(pool)):
            score = similarity_score(current, pool[i])
            if score > best_score:
                best_score = score
                best_idx = i

        current = pool.pop(best_idx)
        result.append(current)

    return result


def sort_books(books: Sequence[Book], mode: SortMode) -> List[Book]:
    """
    Order a collection.

    Args:
        books: Books in their current order (not modified)
        mode: author (author, then title), similarity (greedy chain) or
              hybrid (author only, stable within an author); any other
              value keeps the current order

    Returns:
        New list with the same books
    """
    try:
        mode = SortMode(mode)
    except ValueError:
        logger.warning(f"Unknown sort mode {mode!r}, keeping current order")
        return list(books)

    if len(books) < 2:
        return list(books)

    logger.info(f"Sorting {len(books)} books by {mode.value}")

    if mode == SortMode.AUTHOR:
        return sorted(books, key=_by_author_and_title)
    if mode == SortMode.HYBRID:
        return sorted(books, key=_by_author)
    return chain_by_similarity(books)
