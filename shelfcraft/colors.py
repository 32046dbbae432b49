"""Anchor-based gradient coloring of a shelf."""
import bisect
import colorsys
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from shelfcraft.models import Book, normalize_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HSL:
    """Hue in degrees (0-360), saturation and lightness in percent."""
    h: float
    s: float
    l: float

    def css(self) -> str:
        """Format as a CSS ``hsl()`` value."""
        return f"hsl({_number(self.h)}, {_number(self.s)}%, {_number(self.l)}%)"


def _number(value: float) -> str:
    return f"{round(value, 4):.10g}"


def hex_to_hsl(color: str) -> HSL:
    """
    Convert a ``#rrggbb`` color to HSL.

    Args:
        color: Hex color (``#rgb`` also accepted)

    Returns:
        HSL triple

    Raises:
        ValueError: If the color is not valid hex
    """
    normalized = normalize_hex(color)
    if normalized is None:
        raise ValueError(f"Not a hex color: {color!r}")

    value = int(normalized[1:], 16)
    r = ((value >> 16) & 255) / 255
    g = ((value >> 8) & 255) / 255
    b = (value & 255) / 255

    high, low = max(r, g, b), min(r, g, b)
    l = (high + low) / 2

    if high == low:
        return HSL(0.0, 0.0, l * 100)

    d = high - low
    s = d / (2 - high - low) if l > 0.5 else d / (high + low)

    if high == r:
        h = (g - b) / d + (6 if g < b else 0)
    elif high == g:
        h = (b - r) / d + 2
    else:
        h = (r - g) / d + 4

    return HSL(h * 60, s * 100, l * 100)


def hsl_to_hex(color: HSL) -> str:
    """Convert an HSL triple back to ``#rrggbb``."""
    r, g, b = colorsys.hls_to_rgb(
        (color.h % 360) / 360,
        min(max(color.l, 0.0), 100.0) / 100,
        min(max(color.s, 0.0), 100.0) / 100
    )
    return "#{:02x}{:02x}{:02x}".format(*(round(c * 255) for c in (r, g, b)))


def parse_css_hsl(value: str) -> Optional[HSL]:
    """Parse a value produced by HSL.css(); None for anything else."""
    if not value.startswith("hsl(") or not value.endswith(")"):
        return None
    parts = [p.strip().rstrip("%") for p in value[4:-1].split(",")]
    if len(parts) != 3:
        return None
    try:
        return HSL(*(float(p) for p in parts))
    except ValueError:
        return None


def to_hex(value: str) -> str:
    """Render an engine color (hex or CSS hsl) as ``#rrggbb``."""
    hsl = parse_css_hsl(value)
    return hsl_to_hex(hsl) if hsl else value


def lerp(start: float, end: float, t: float) -> float:
    """Linear interpolation."""
    return start + (end - start) * t


def interpolate(start: HSL, end: HSL, t: float) -> HSL:
    """
    Blend two HSL colors channel by channel.

    Hue is blended as a plain number, so 10 -> 350 sweeps through 180
    rather than across 0.
    """
    return HSL(lerp(start.h, end.h, t), lerp(start.s, end.s, t), lerp(start.l, end.l, t))


Anchor = Tuple[int, str]


@dataclass(frozen=True)
class NoAnchors:
    """Nothing on the shelf has a user color."""


@dataclass(frozen=True)
class SingleAnchor:
    """Exactly one colored book; it does not spread."""
    position: int
    color: str


@dataclass(frozen=True)
class MultipleAnchors:
    """Two or more colored books, ordered by position."""
    anchors: Tuple[Anchor, ...]

    def neighbours(self, position: int) -> Tuple[Optional[Anchor], Optional[Anchor]]:
        """Nearest anchor strictly left and strictly right of a position."""
        positions = [p for p, _ in self.anchors]
        i = bisect.bisect_left(positions, position)
        left = self.anchors[i - 1] if i > 0 else None
        if i < len(positions) and positions[i] == position:
            i += 1
        right = self.anchors[i] if i < len(positions) else None
        return left, right


AnchorLayout = Union[NoAnchors, SingleAnchor, MultipleAnchors]


def classify_anchors(books: Sequence[Book]) -> AnchorLayout:
    """
    Find the anchors of a shelf.

    Args:
        books: Books in shelf order

    Returns:
        NoAnchors, SingleAnchor or MultipleAnchors
    """
    anchors = tuple(
        (position, book.display_color)
        for position, book in enumerate(books)
        if book.is_anchor
    )
    if not anchors:
        return NoAnchors()
    if len(anchors) == 1:
        return SingleAnchor(*anchors[0])
    return MultipleAnchors(anchors)


def _gradient_color(layout: MultipleAnchors, position: int) -> str:
    left, right = layout.neighbours(position)
    if left is None:
        return right[1]
    if right is None:
        return left[1]

    t = (position - left[0]) / (right[0] - left[0])
    return interpolate(hex_to_hsl(left[1]), hex_to_hsl(right[1]), t).css()


def shelf_color_sequence(books: Sequence[Book]) -> List[Optional[str]]:
    """
    Compute the color of every position on a shelf.

    Anchors keep their own color. With two or more anchors every other
    position takes its neighbours' colors: flat beyond the outermost
    anchors, interpolated in HSL between two anchors. Zero or one anchor
    leaves non-anchors without an explicit color (None).

    Args:
        books: Books in shelf order (unresolvable IDs already removed)

    Returns:
        One entry per position: a hex or CSS hsl() string, or None
    """
    layout = classify_anchors(books)

    if isinstance(layout, NoAnchors):
        return [None] * len(books)

    if isinstance(layout, SingleAnchor):
        return [
            layout.color if position == layout.position else None
            for position in range(len(books))
        ]

    return [
        book.display_color if book.is_anchor else _gradient_color(layout, position)
        for position, book in enumerate(books)
    ]


def compute_shelf_colors(books: Sequence[Book]) -> Dict[int, Optional[str]]:
    """
    Map each book on a shelf to its rendered color.

    Args:
        books: Books in shelf order

    Returns:
        Dict of book ID to color string or None (use the default color)
    """
    colors = shelf_color_sequence(books)
    logger.debug(f"Colored shelf of {len(books)} books")
    return {book.id: color for book, color in zip(books, colors)}
