"""Database layer for saved layouts and spreadsheet caching."""
import psycopg2
from psycopg2 import pool
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta
import json
import logging

logger = logging.getLogger(__name__)


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(
        self,
        connection_string: str,
        min_conn: int = 1,
        max_conn: int = 10,
        connection_pool=None
    ):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
            connection_pool: Existing pool to use instead of opening one
        """
        self.connection_pool = connection_pool or psycopg2.pool.SimpleConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )

        if self.connection_pool:
            logger.info("Database connection pool created successfully")
        else:
            raise Exception("Failed to create connection pool")

    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                # Saved layouts (shelf order + user colors)
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS saved_layouts (
                        name VARCHAR(255) PRIMARY KEY,
                        snapshot JSONB NOT NULL,
                        book_count INTEGER NOT NULL DEFAULT 0,
                        saved_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                # Spreadsheet download cache
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS sheet_cache (
                        cache_key VARCHAR(1024) PRIMARY KEY,
                        body TEXT NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        expires_at TIMESTAMP NOT NULL
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_sheet_cache_expires
                    ON sheet_cache (expires_at)
                """)

                conn.commit()
                logger.info("Database schema initialized successfully")

        finally:
            self.connection_pool.putconn(conn)

    def save_layout(self, name: str, snapshot: Dict[str, Any]) -> bool:
        """
        Insert or replace a saved layout.

        Args:
            name: Layout name
            snapshot: Snapshot from persistence.take_snapshot

        Returns:
            True if successful, False otherwise
        """
        book_count = sum(len(shelf.get("book_ids", [])) for shelf in snapshot.get("layout", []))
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO saved_layouts (name, snapshot, book_count, saved_at)
                    VALUES (%s, %s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (name) DO UPDATE SET
                        snapshot = EXCLUDED.snapshot,
                        book_count = EXCLUDED.book_count,
                        saved_at = CURRENT_TIMESTAMP
                """, (name, json.dumps(snapshot), book_count))
                conn.commit()
                logger.info(f"Saved layout: {name} ({book_count} books)")
                return True
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to save layout: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def load_layout(self, name: str) -> Optional[Dict[str, Any]]:
        """Get a saved layout snapshot by name."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT snapshot FROM saved_layouts WHERE name = %s
                """, (name,))

                row = cur.fetchone()
                if row:
                    return row[0]  # JSONB is automatically deserialized
                logger.info(f"No saved layout named {name}")
                return None
        finally:
            self.connection_pool.putconn(conn)

    def list_layouts(self) -> List[Dict[str, Any]]:
        """List saved layouts, most recent first."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT name, book_count, saved_at
                    FROM saved_layouts
                    ORDER BY saved_at DESC
                """)
                return [
                    {"name": name, "book_count": count, "saved_at": saved_at}
                    for name, count, saved_at in cur.fetchall()
                ]
        finally:
            self.connection_pool.putconn(conn)

    def delete_layout(self, name: str) -> bool:
        """Delete a saved layout; True if one was removed."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM saved_layouts WHERE name = %s", (name,))
                deleted = cur.rowcount
                conn.commit()
                return deleted > 0
        finally:
            self.connection_pool.putconn(conn)

    def cache_get(self, cache_key: str) -> Optional[str]:
        """
        Get a cached spreadsheet download if not expired.

        Args:
            cache_key: Cache key

        Returns:
            Cached body or None
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT body
                    FROM sheet_cache
                    WHERE cache_key = %s AND expires_at > CURRENT_TIMESTAMP
                """, (cache_key,))

                row = cur.fetchone()
                if row:
                    logger.info(f"Cache hit: {cache_key}")
                    return row[0]

                logger.info(f"Cache miss: {cache_key}")
                return None
        finally:
            self.connection_pool.putconn(conn)

    def cache_set(self, cache_key: str, body: str, ttl_seconds: int = 3600) -> bool:
        """
        Cache a spreadsheet download with TTL.

        Args:
            cache_key: Cache key
            body: Downloaded text
            ttl_seconds: Time to live in seconds

        Returns:
            True if successful
        """
        conn = self.connection_pool.getconn()
        try:
            expires_at = datetime.now() + timedelta(seconds=ttl_seconds)

            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO sheet_cache (cache_key, body, expires_at)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (cache_key) DO UPDATE SET
                        body = EXCLUDED.body,
                        expires_at = EXCLUDED.expires_at,
                        created_at = CURRENT_TIMESTAMP
                """, (cache_key, body, expires_at))

                conn.commit()
                logger.info(f"Cached download: {cache_key} (TTL: {ttl_seconds}s)")
                return True
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to cache download: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def get_stats(self) -> Dict[str, Any]:
        """Get database statistics."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM saved_layouts")
                layout_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM sheet_cache WHERE expires_at > CURRENT_TIMESTAMP")
                cache_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM sheet_cache WHERE expires_at <= CURRENT_TIMESTAMP")
                expired_count = cur.fetchone()[0]

                return {
                    "saved_layouts": layout_count,
                    "cached_downloads": cache_count,
                    "expired_cache_entries": expired_count
                }
        finally:
            self.connection_pool.putconn(conn)

    def cleanup_expired_cache(self) -> int:
        """Remove expired cache entries."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    DELETE FROM sheet_cache
                    WHERE expires_at <= CURRENT_TIMESTAMP
                """)
                deleted = cur.rowcount
                conn.commit()
                logger.info(f"Cleaned up {deleted} expired cache entries")
                return deleted
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
