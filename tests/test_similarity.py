"""Tests for the similarity score."""
import pytest

from shelfcraft.similarity import jaccard, similarity_score


def test_jaccard():
    """Test intersection over union, including empty sets."""
    assert jaccard(frozenset({"a", "b"}), frozenset({"b", "c"})) == pytest.approx(1 / 3)
    assert jaccard(frozenset(), frozenset()) == 0


def test_score_combines_tags_genre_and_author(make_book):
    """Test genre and author bonuses on top of shared tags."""
    a = make_book(1, tags=["a", "b"], genre="Sci-Fi", author="Le Guin")
    b = make_book(2, tags=["b", "c"], genre="Sci-Fi", author="Herbert")
    c = make_book(3, tags=["x"], genre="History", author="Le Guin")

    assert similarity_score(a, b) == pytest.approx(1 / 3 + 0.5)
    assert similarity_score(a, c) == pytest.approx(0.3)


def test_score_is_symmetric(make_book):
    """Test score(a, b) == score(b, a)."""
    books = [
        make_book(1, tags=["a", "b"], genre="X", author="P"),
        make_book(2, tags=["b"], genre="Y", author="P"),
        make_book(3, tags=[], genre="X", author="Q"),
    ]

    for a in books:
        for b in books:
            assert similarity_score(a, b) == similarity_score(b, a)


def test_score_with_itself(make_book):
    """Test a tagged book scores at least 1.3 against itself."""
    a = make_book(1, tags=["a"], genre="X", author="P")
    assert similarity_score(a, a) >= 1.3


def test_no_shared_signal_scores_zero(make_book):
    """Test unrelated books score exactly 0."""
    a = make_book(1, tags=["a"], genre="X", author="P")
    b = make_book(2, tags=["b"], genre="Y", author="Q")

    assert similarity_score(a, b) == 0
