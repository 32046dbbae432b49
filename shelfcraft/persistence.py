"""Snapshot of shelf layout and user colors."""
import json
import logging
from typing import Dict, Any, List, Optional, Union

from shelfcraft.models import Shelf, ShelfKind, set_user_color, clear_user_color, normalize_hex
from shelfcraft.shelves import Library

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Snapshot cannot be used at all."""


def take_snapshot(library: Library) -> Dict[str, Any]:
    """
    Capture shelf order and user colors.

    Args:
        library: Library to capture

    Returns:
        JSON-serializable dict with "layout" and "book_colors"
    """
    return {
        "layout": [
            {
                "id": shelf.id,
                "name": shelf.name,
                "kind": shelf.kind.value,
                "book_ids": list(shelf.book_ids)
            }
            for shelf in library.shelves
        ],
        "book_colors": [
            {"id": book.id, "color": book.display_color if book.is_anchor else None}
            for book in library.book_list()
        ]
    }


def dumps(library: Library) -> str:
    """Serialize a library snapshot to JSON."""
    return json.dumps(take_snapshot(library), indent=2)


def parse_snapshot(data: Union[str, bytes, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Check the overall shape of a snapshot.

    Args:
        data: JSON text or already decoded dict

    Returns:
        Decoded snapshot

    Raises:
        SnapshotError: Invalid JSON, or "layout"/"book_colors" are not lists
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except (ValueError, RecursionError) as e:
            raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be an object")

    layout = data.get("layout", data.get("shelves"))
    if not isinstance(layout, list):
        raise SnapshotError("Snapshot has no layout list")

    colors = data.get("book_colors", data.get("bookColors", []))
    if not isinstance(colors, list):
        raise SnapshotError("book_colors must be a list")

    return {"layout": layout, "book_colors": colors}


def _shelf_from_entry(entry: Any, index: int) -> Optional[Shelf]:
    if isinstance(entry, list):
        return Shelf(id=f"shelf-{index}", name=f"Shelf {index}", kind=ShelfKind.MANUAL, book_ids=entry)

    if not isinstance(entry, dict) or not isinstance(entry.get("book_ids", []), list):
        logger.warning(f"Skipping malformed shelf entry #{index}")
        return None

    try:
        kind = ShelfKind(entry.get("kind", ShelfKind.MANUAL.value))
    except ValueError:
        kind = ShelfKind.MANUAL

    shelf = Shelf(
        id=str(entry.get("id") or f"shelf-{index}"),
        name=f"Shelf {index}",
        kind=kind,
        book_ids=entry.get("book_ids", [])
    )
    shelf.rename(entry.get("name"))
    return shelf


def _build_shelves(layout: List[Any], known_ids) -> List[Shelf]:
    shelves = []
    placed = set()
    used_shelf_ids = set()

    for index, entry in enumerate(layout, 1):
        shelf = _shelf_from_entry(entry, index)
        if shelf is None:
            continue
        if shelf.id in used_shelf_ids:
            shelf.id = f"{shelf.id}-{index}"
        used_shelf_ids.add(shelf.id)

        book_ids = []
        for book_id in shelf.book_ids:
            if isinstance(book_id, bool) or not isinstance(book_id, int):
                logger.warning(f"Dropping non-integer book id {book_id!r}")
                continue
            if book_id not in known_ids or book_id in placed:
                logger.debug(f"Dropping book id {book_id} from shelf {shelf.id}")
                continue
            placed.add(book_id)
            book_ids.append(book_id)

        shelf.book_ids = book_ids
        shelves.append(shelf)

    return shelves


def restore_snapshot(library: Library, data: Union[str, bytes, Dict[str, Any]]) -> bool:
    """
    Restore shelf layout and user colors into a library.

    Books the snapshot does not mention lose any explicit color. Unknown
    book IDs are ignored. The library is only modified once the whole
    snapshot has been read.

    Args:
        library: Library holding the current catalog
        data: Snapshot as JSON text or dict

    Returns:
        True if restored, False if the snapshot was unusable (state unchanged)
    """
    try:
        snapshot = parse_snapshot(data)
    except SnapshotError as e:
        logger.error(f"Failed to restore layout: {e}")
        return False

    shelves = _build_shelves(snapshot["layout"], library.books.keys())

    saved_colors: Dict[int, Optional[str]] = {}
    for entry in snapshot["book_colors"]:
        book_id = entry.get("id") if isinstance(entry, dict) else None
        if isinstance(book_id, bool) or not isinstance(book_id, int) or book_id not in library.books:
            logger.debug(f"Skipping color entry {entry!r}")
            continue
        saved_colors[book_id] = normalize_hex(entry.get("color"))

    books = {}
    for book_id, book in library.books.items():
        color = saved_colors.get(book_id)
        books[book_id] = set_user_color(book, color) if color else clear_user_color(book)

    library.shelves = shelves
    library.books = books
    logger.info(f"Restored {len(shelves)} shelves and {sum(1 for c in saved_colors.values() if c)} colors")
    return True
