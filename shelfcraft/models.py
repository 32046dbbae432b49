"""Data models for books and shelves."""
import re
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, List, FrozenSet

from shelfcraft.config import Config

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class ColorStatus(str, Enum):
    """Whether a book's display color is a user-set gradient anchor."""
    UNSET = "unset"
    USER_SET = "user_set"


class ShelfKind(str, Enum):
    """How a shelf came into existence."""
    AUTO_GENRE = "auto_genre"
    AUTO_FILL = "auto_fill"
    MANUAL = "manual"


def normalize_hex(value) -> Optional[str]:
    """
    Normalize a hex color to lowercase ``#rrggbb``.

    Args:
        value: Candidate color (``#rgb``, ``#rrggbb``, ``#`` optional)

    Returns:
        Normalized color or None if the value is not a hex color
    """
    if not isinstance(value, str):
        return None
    match = _HEX_RE.match(value.strip())
    if not match:
        return None
    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return f"#{digits}"


@dataclass(frozen=True)
class Book:
    """Normalized, render-ready book."""
    id: int
    title: str
    author: str
    genre: str
    tags: FrozenSet[str] = frozenset()
    height: float = Config.DEFAULT_HEIGHT
    width: float = Config.DEFAULT_WIDTH
    base_color: Optional[str] = None
    display_color: Optional[str] = None
    color_status: ColorStatus = ColorStatus.UNSET

    @property
    def is_anchor(self) -> bool:
        """True when the display color was set explicitly by the user."""
        return self.color_status == ColorStatus.USER_SET and normalize_hex(self.display_color) is not None

    @property
    def render_height(self) -> float:
        """Height in pixels."""
        return self.height * Config.PX_PER_MM

    @property
    def render_width(self) -> float:
        """Spine width in pixels."""
        return self.width * Config.PX_PER_MM

    @property
    def tags_str(self) -> str:
        """Format tags as sorted comma-separated string."""
        return ", ".join(sorted(self.tags)) if self.tags else "None"


def set_user_color(book: Book, color: str) -> Book:
    """
    Make a book a gradient anchor with the given color.

    Args:
        book: Book to recolor
        color: Hex color chosen by the user

    Returns:
        New Book; the original book is returned if the color is not valid hex
    """
    normalized = normalize_hex(color)
    if normalized is None:
        logger.warning(f"Ignoring invalid color {color!r} for book {book.id}")
        return book
    return replace(book, display_color=normalized, color_status=ColorStatus.USER_SET)


def clear_user_color(book: Book) -> Book:
    """Drop the explicit color so the book is painted by its neighbours."""
    return replace(book, display_color=None, color_status=ColorStatus.UNSET)


def reset_color(book: Book) -> Book:
    """Return to the color supplied by the catalog, if any."""
    if book.base_color is None:
        return clear_user_color(book)
    return replace(book, display_color=book.base_color, color_status=ColorStatus.USER_SET)


@dataclass
class Shelf:
    """Ordered, named row of book IDs."""
    id: str
    name: str
    kind: ShelfKind = ShelfKind.MANUAL
    book_ids: List[int] = field(default_factory=list)

    def rename(self, name: str) -> bool:
        """
        Rename the shelf.

        Args:
            name: New name

        Returns:
            True if renamed, False if the name was blank (old name kept)
        """
        if not isinstance(name, str) or not name.strip():
            logger.debug(f"Rejected blank name for shelf {self.id}")
            return False
        self.name = name.strip()
        return True
