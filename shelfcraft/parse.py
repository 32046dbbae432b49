"""Parse and normalize catalog records into books."""
import math
import logging
from typing import Dict, Any, List, Optional, Iterable

from shelfcraft.config import Config
from shelfcraft.models import Book, ColorStatus, normalize_hex

logger = logging.getLogger(__name__)

# Spreadsheet columns (centimeters)
HEIGHT_COLUMN = "Fronte (cm)"
WIDTH_COLUMN = "Dorso (cm)"
EMPTY_CELL = "-"


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _positive(value: Any, default: float) -> float:
    """Return value as a positive finite float, or the default."""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number) or number <= 0:
        return default
    return number


def _tags(value: Any) -> frozenset:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, (list, tuple, set, frozenset)):
        value = [value]
    cleaned = (str(tag).strip() for tag in value if tag is not None)
    return frozenset(tag for tag in cleaned if tag and tag != EMPTY_CELL)


def _book_id(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number) or number == 0 or number != int(number):
        return fallback
    return int(number)


def normalize_book(record: Dict[str, Any], fallback_id: int = 0) -> Book:
    """
    Convert a raw catalog record into a Book.

    Never raises: blank text becomes a placeholder, bad dimensions become
    the configured defaults and a missing or invalid color leaves the
    book without an anchor.

    Args:
        record: Raw record (id, title, author, genre, tags, height, width, color)
        fallback_id: ID to use when the record has no usable numeric id

    Returns:
        Book object
    """
    if not isinstance(record, dict):
        logger.warning(f"Record {fallback_id} is not a mapping, using defaults")
        record = {}

    color = normalize_hex(record.get("color"))

    return Book(
        id=_book_id(record.get("id"), fallback_id),
        title=_text(record.get("title"), Config.DEFAULT_TITLE),
        author=_text(record.get("author"), Config.DEFAULT_AUTHOR),
        genre=_text(record.get("genre"), Config.DEFAULT_GENRE),
        tags=_tags(record.get("tags")),
        height=_positive(record.get("height"), Config.DEFAULT_HEIGHT),
        width=_positive(record.get("width"), Config.DEFAULT_WIDTH),
        base_color=color,
        display_color=color,
        color_status=ColorStatus.USER_SET if color else ColorStatus.UNSET
    )


def normalize_books(records: Iterable[Dict[str, Any]], id_offset: int = 0) -> List[Book]:
    """
    Normalize a list of raw records.

    Args:
        records: Raw records
        id_offset: Added to the 1-based position to build fallback IDs

    Returns:
        List of Book objects, in input order
    """
    return [
        normalize_book(record, fallback_id=id_offset + index + 1)
        for index, record in enumerate(records)
    ]


def parse_sheet_tsv(text: str) -> List[Dict[str, str]]:
    """
    Parse a published spreadsheet export.

    Args:
        text: Tab separated text, first line is the header

    Returns:
        One dict per row with a non-blank title (empty if no rows)
    """
    lines = (text or "").strip().splitlines()
    if not lines:
        return []

    headers = [h.strip() for h in lines[0].split("\t")]
    rows = []

    for line in lines[1:]:
        values = line.split("\t")
        row = {
            header: values[i].strip() if i < len(values) else ""
            for i, header in enumerate(headers)
        }
        title = next(
            (v for k, v in row.items() if k.lower() == "title"),
            ""
        )
        if title:
            rows.append(row)

    return rows


def _centimeters(value: Optional[str]) -> Optional[float]:
    number = _positive(value, 0.0)
    return number * 10 if number else None


def sheet_row_to_record(row: Dict[str, str]) -> Dict[str, Any]:
    """
    Map a spreadsheet row onto the raw record shape.

    Headers are matched regardless of case. Every column whose header
    starts with ``tags`` contributes comma-separated tags; height and
    spine width are given in centimeters.

    Args:
        row: Parsed spreadsheet row

    Returns:
        Raw record suitable for normalize_book
    """
    cells = {header.lower(): value for header, value in row.items()}
    tags = []
    for header, value in row.items():
        if header.lower().startswith("tags") and value and value != EMPTY_CELL:
            tags.extend(value.split(","))

    return {
        "id": cells.get("id"),
        "title": cells.get("title"),
        "author": cells.get("author"),
        "genre": cells.get("genre"),
        "tags": tags,
        "height": _centimeters(cells.get(HEIGHT_COLUMN.lower())),
        "width": _centimeters(cells.get(WIDTH_COLUMN.lower())),
        "color": cells.get("color")
    }


def parse_sheet_books(text: str, id_offset: int = 0) -> List[Book]:
    """
    Parse spreadsheet text straight into books.

    Args:
        text: Tab separated export
        id_offset: Offset for fallback IDs (number of books loaded before)

    Returns:
        List of Book objects
    """
    records = [sheet_row_to_record(row) for row in parse_sheet_tsv(text)]
    logger.info(f"Parsed {len(records)} spreadsheet rows")
    return normalize_books(records, id_offset=id_offset)


def deduplicate_books(books: List[Book]) -> List[Book]:
    """
    Remove duplicate books by ID.

    Args:
        books: List of Book objects

    Returns:
        Deduplicated list of books (first occurrence wins)
    """
    seen_ids = set()
    unique_books = []

    for book in books:
        if book.id not in seen_ids:
            seen_ids.add(book.id)
            unique_books.append(book)
        else:
            logger.debug(f"Dropping duplicate book id {book.id}")

    return unique_books
