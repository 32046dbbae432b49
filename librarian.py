#!/usr/bin/env python3
"""Librarian CLI - arrange and color a personal bookshelf."""
import argparse
import csv
import json
import sys
import logging
from typing import List, Optional

from tabulate import tabulate

from shelfcraft.client import SheetClient
from shelfcraft.colors import to_hex
from shelfcraft.config import Config
from shelfcraft.database import Database
from shelfcraft.models import Book
from shelfcraft.parse import normalize_books, parse_sheet_books, deduplicate_books
from shelfcraft.persistence import take_snapshot, restore_snapshot
from shelfcraft.shelves import Library
from shelfcraft.sorter import SortMode, sort_books

logger = logging.getLogger(__name__)

ARRANGE_MODES = ["genre"] + [mode.value for mode in SortMode]


def setup_database(config: Config) -> Database:
    """Initialize database."""
    db = Database(config.DATABASE_URL)
    db.init_schema()
    return db


def load_books(args, config: Config, db: Optional[Database] = None) -> List[Book]:
    """Load local records and the spreadsheet, local books first."""
    books = []

    if args.file:
        with open(args.file, encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError(f"{args.file} must contain a JSON list of books")
        books.extend(normalize_books(records))
        logger.info(f"Loaded {len(books)} books from {args.file}")

    url = args.sheet_url or config.SHEET_URL
    if url and not args.no_sheet:
        with SheetClient(
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES
        ) as client:
            body = client.fetch_with_cache(url, cache_db=db, cache_ttl=config.DEFAULT_CACHE_TTL)
        if body:
            books.extend(parse_sheet_books(body, id_offset=len(books)))
        else:
            logger.warning("Spreadsheet unavailable, using local books only")

    books = deduplicate_books(books)
    logger.info(f"Catalog has {len(books)} books")
    return books


def arrange(books: List[Book], mode: str, shelf_count: int) -> Library:
    """Build a library and place its books on shelves."""
    library = Library(books)
    if mode == "genre":
        library.build_genre_shelves()
    else:
        library.arrange(SortMode(mode), shelf_count)
    return library


def restore_or_fail(library: Library, db: Database, name: str) -> bool:
    """Apply a saved layout, reporting problems to the user."""
    snapshot = db.load_layout(name)
    if snapshot is None:
        logger.error(f"No saved layout named '{name}'")
        return False
    if not restore_snapshot(library, snapshot):
        logger.error(f"Saved layout '{name}' is unreadable, keeping the fresh arrangement")
        return False
    return True


def library_rows(library: Library):
    """Yield (shelf, position, book, color) for every placed book."""
    colors = library.all_colors()
    for shelf in library.shelves:
        for position, book in enumerate(library.resolve(shelf)):
            yield shelf, position, book, colors[shelf.id].get(book.id)


def display_library(library: Library, format_type: str):
    """Display shelves in specified format."""
    if format_type == "table":
        for shelf in library.shelves:
            colors = library.shelf_colors(shelf.id)
            rows = [
                [
                    position + 1,
                    book.id,
                    book.title[:40] + "..." if len(book.title) > 40 else book.title,
                    book.author[:25] + "..." if len(book.author) > 25 else book.author,
                    book.tags_str[:30] + "..." if len(book.tags_str) > 30 else book.tags_str,
                    f"{book.height:g}x{book.width:g}",
                    _color_label(book, colors.get(book.id))
                ]
                for position, book in enumerate(library.resolve(shelf))
            ]
            print(f"\n{shelf.name} [{shelf.kind.value}]")
            print(tabulate(rows, headers=["#", "ID", "Title", "Author", "Tags", "mm", "Color"], tablefmt="grid"))

    elif format_type == "json":
        colors = library.all_colors()
        data = [
            {
                "id": shelf.id,
                "name": shelf.name,
                "kind": shelf.kind.value,
                "books": [
                    {
                        "id": book.id,
                        "title": book.title,
                        "author": book.author,
                        "color": colors[shelf.id].get(book.id),
                        "anchor": book.is_anchor
                    }
                    for book in library.resolve(shelf)
                ]
            }
            for shelf in library.shelves
        ]
        print(json.dumps(data, indent=2))

    elif format_type == "compact":
        for shelf in library.shelves:
            titles = ", ".join(book.title for book in library.resolve(shelf))
            print(f"{shelf.name}: {titles or '(empty)'}")


def _color_label(book: Book, color: Optional[str]) -> str:
    if color is None:
        return f"({Config.DEFAULT_COLOR})"
    label = to_hex(color)
    return f"{label} *" if book.is_anchor else label


def show_library(args, config: Config):
    """Arrange the catalog and print every shelf."""
    db = setup_database(config) if (args.restore or args.cache) else None

    try:
        library = arrange(load_books(args, config, db), args.mode, args.shelves)
        if args.restore:
            restore_or_fail(library, db, args.restore)
        display_library(library, args.format)

    finally:
        if db:
            db.close()


def show_sorted(args, config: Config):
    """Print the catalog in sequencer order."""
    books = sort_books(load_books(args, config), SortMode(args.sort_mode))
    rows = [[i, book.id, book.title, book.author, book.genre] for i, book in enumerate(books, 1)]
    print("\n" + tabulate(rows, headers=["#", "ID", "Title", "Author", "Genre"], tablefmt="grid"))


def save_layout(args, config: Config):
    """Arrange the catalog and store it under a name."""
    db = setup_database(config)

    try:
        library = arrange(load_books(args, config, db), args.mode, args.shelves)
        if db.save_layout(args.name, take_snapshot(library)):
            logger.info(f"✅ Layout '{args.name}' saved")

    finally:
        db.close()


def color_book(args, config: Config):
    """Change one book's anchor color inside a saved layout."""
    db = setup_database(config)

    try:
        library = Library(load_books(args, config, db))
        if not restore_or_fail(library, db, args.name):
            return

        if args.clear:
            book = library.clear_user_color(args.book_id)
        elif args.reset:
            book = library.reset_color(args.book_id)
        elif args.color:
            book = library.set_user_color(args.book_id, args.color)
        else:
            logger.error("Give a color, --clear or --reset")
            return

        if book is None:
            logger.error(f"Book {args.book_id} is not in the catalog")
            return

        db.save_layout(args.name, take_snapshot(library))
        display_library(library, "table")

    finally:
        db.close()


def delete_layout(args, config: Config):
    """Remove a saved layout."""
    db = setup_database(config)

    try:
        if db.delete_layout(args.name):
            logger.info(f"✅ Layout '{args.name}' deleted")
        else:
            logger.error(f"No saved layout named '{args.name}'")

    finally:
        db.close()


def show_stats(args, config: Config):
    """Show database statistics."""
    db = setup_database(config)

    try:
        stats = db.get_stats()

        print("\n" + "=" * 50)
        print("DATABASE STATISTICS")
        print("=" * 50)
        print(f"Saved layouts: {stats['saved_layouts']}")
        print(f"Cached downloads: {stats['cached_downloads']}")
        print(f"Expired cache entries: {stats['expired_cache_entries']}")
        print("=" * 50 + "\n")

        layouts = db.list_layouts()
        if layouts:
            print(tabulate(
                [[layout["name"], layout["book_count"], layout["saved_at"]] for layout in layouts],
                headers=["Layout", "Books", "Saved"],
                tablefmt="grid"
            ))

        if args.cleanup:
            deleted = db.cleanup_expired_cache()
            print(f"✅ Cleaned up {deleted} expired cache entries\n")

    finally:
        db.close()


def export_data(args, config: Config):
    """Export every placed book with its shelf and color."""
    db = setup_database(config) if args.restore else None

    try:
        library = arrange(load_books(args, config, db), args.mode, args.shelves)
        if args.restore:
            restore_or_fail(library, db, args.restore)

        rows = [
            {
                "shelf": shelf.name,
                "position": position + 1,
                "id": book.id,
                "title": book.title,
                "author": book.author,
                "genre": book.genre,
                "tags": sorted(book.tags),
                "height_mm": book.height,
                "width_mm": book.width,
                "color": to_hex(color) if color else None,
                "anchor": book.is_anchor
            }
            for shelf, position, book, color in library_rows(library)
        ]

        if args.format == "json":
            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    json.dump(rows, f, indent=2)
                logger.info(f"✅ Exported {len(rows)} books to {args.output}")
            else:
                print(json.dumps(rows, indent=2))

        elif args.format == "csv":
            output_file = args.output or "shelves_export.csv"
            with open(output_file, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(["Shelf", "Position", "ID", "Title", "Author", "Genre", "Tags", "Color", "Anchor"])
                for row in rows:
                    writer.writerow([
                        row["shelf"],
                        row["position"],
                        row["id"],
                        row["title"],
                        row["author"],
                        row["genre"],
                        ", ".join(row["tags"]),
                        row["color"] or Config.DEFAULT_COLOR,
                        "yes" if row["anchor"] else ""
                    ])

            logger.info(f"✅ Exported {len(rows)} books to {output_file}")

    finally:
        if db:
            db.close()


def add_catalog_arguments(parser):
    """Options shared by every command that loads the catalog."""
    parser.add_argument("--file", help="JSON list of local book records")
    parser.add_argument("--sheet-url", help="Published spreadsheet URL (default: $SHEET_URL)")
    parser.add_argument("--no-sheet", action="store_true", help="Skip the spreadsheet")


def add_arrange_arguments(parser):
    """Options controlling how books are placed on shelves."""
    parser.add_argument("--mode", choices=ARRANGE_MODES, default="genre", help="Shelf arrangement (default: genre)")
    parser.add_argument("--shelves", type=int, default=Config.DEFAULT_SHELF_COUNT, help="Shelves for sorted modes")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Librarian - arrange and color a personal bookshelf",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One shelf per genre
  %(prog)s show --file books.json

  # Similarity chain poured into 4 shelves
  %(prog)s show --mode similarity --shelves 4

  # Save, recolor and reload a layout
  %(prog)s save living-room --mode hybrid
  %(prog)s color living-room 12 "#aa3300"
  %(prog)s show --restore living-room
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Show command
    show_parser = subparsers.add_parser("show", help="Print the shelves")
    add_catalog_arguments(show_parser)
    add_arrange_arguments(show_parser)
    show_parser.add_argument("--restore", metavar="NAME", help="Apply a saved layout")
    show_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    show_parser.add_argument("--cache", action="store_true", help="Cache the spreadsheet in the database")

    # Sort command
    sort_parser = subparsers.add_parser("sort", help="Print the catalog in sorted order")
    sort_parser.add_argument("sort_mode", choices=[mode.value for mode in SortMode])
    add_catalog_arguments(sort_parser)

    # Save command
    save_parser = subparsers.add_parser("save", help="Save an arrangement")
    save_parser.add_argument("name", help="Layout name")
    add_catalog_arguments(save_parser)
    add_arrange_arguments(save_parser)

    # Color command
    color_parser = subparsers.add_parser("color", help="Set a book's color in a saved layout")
    color_parser.add_argument("name", help="Layout name")
    color_parser.add_argument("book_id", type=int, help="Book ID")
    color_parser.add_argument("color", nargs="?", help="Hex color, e.g. #aa3300")
    color_parser.add_argument("--clear", action="store_true", help="Remove the explicit color")
    color_parser.add_argument("--reset", action="store_true", help="Return to the catalog color")
    add_catalog_arguments(color_parser)

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a saved layout")
    delete_parser.add_argument("name", help="Layout name")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show database statistics")
    stats_parser.add_argument("--cleanup", action="store_true", help="Clean up expired cache")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export shelves and colors")
    add_catalog_arguments(export_parser)
    add_arrange_arguments(export_parser)
    export_parser.add_argument("--restore", metavar="NAME", help="Apply a saved layout")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    config = Config()
    commands = {
        "show": show_library,
        "sort": show_sorted,
        "save": save_layout,
        "color": color_book,
        "delete": delete_layout,
        "stats": show_stats,
        "export": export_data,
    }

    try:
        commands[args.command](args, config)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
