"""Closeness score between two books."""
from shelfcraft.models import Book

GENRE_BONUS = 0.5
AUTHOR_BONUS = 0.3


def jaccard(a: frozenset, b: frozenset) -> float:
    """Intersection over union; 0 when both sets are empty."""
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def similarity_score(a: Book, b: Book) -> float:
    """
    Score how close two books are.

    Only meaningful for ranking: shared tags (Jaccard index) plus a bonus
    for the same genre and a smaller one for the same author.

    Args:
        a: First book
        b: Second book

    Returns:
        Non-negative, symmetric score
    """
    score = jaccard(a.tags, b.tags)
    if a.genre == b.genre:
        score += GENRE_BONUS
    if a.author == b.author:
        score += AUTHOR_BONUS
    return score
