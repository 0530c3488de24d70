"""SQLite record store for request history with FTS5 full-text search."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, List, Optional

from .models import HistoryRecord

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class RequestHistoryDatabase:
    """SQLite record store for request history with FTS5 full-text search.

    Records are ordered by ``updated`` and then by ``id``, so records sharing a
    timestamp always come back in the same order. The pagination cursor
    relies on that.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize database connection and schema.

        Args:
            db_path: Optional path to database file. Defaults to XDG data directory.
        """
        if db_path is None:
            db_path = Path.home() / ".local/share/request_history/history.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()
        logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def _connection(self):
        """
        Context manager for database connections.

        Yields:
            sqlite3.Connection with Row factory
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self):
        """Initialize database schema with tables, indexes, and triggers."""
        with self._connection() as conn:
            cursor = conn.cursor()

            current_version = cursor.execute("PRAGMA user_version").fetchone()[0]
            if current_version == 0:
                logger.info(f"Creating fresh database schema (version {SCHEMA_VERSION})")
                self._create_tables(cursor)
                cursor.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            else:
                logger.debug(f"Database schema version {current_version} is up to date")

    def _create_tables(self, cursor):
        """
        Create all tables, indexes, FTS5 virtual tables, and triggers.

        Args:
            cursor: sqlite3.Cursor
        """
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS history_requests (
                id TEXT PRIMARY KEY,
                type TEXT DEFAULT 'history',
                method TEXT,
                url TEXT,
                created INTEGER NOT NULL,
                updated INTEGER NOT NULL,
                payload TEXT
            )
        """)

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_updated ON history_requests(updated DESC, id DESC)"
        )

        cursor.execute("""
            CREATE VIRTUAL TABLE IF NOT EXISTS history_requests_fts
            USING fts5(
                url,
                method,
                payload,
                content=history_requests,
                content_rowid=rowid
            )
        """)

        # Triggers to keep FTS index synchronized
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS history_requests_ai AFTER INSERT ON history_requests BEGIN
                INSERT INTO history_requests_fts(rowid, url, method, payload)
                VALUES (new.rowid, new.url, new.method, new.payload);
            END
        """)

        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS history_requests_ad AFTER DELETE ON history_requests BEGIN
                INSERT INTO history_requests_fts(history_requests_fts, rowid, url, method, payload)
                VALUES ('delete', old.rowid, old.url, old.method, old.payload);
            END
        """)

        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS history_requests_au AFTER UPDATE ON history_requests BEGIN
                INSERT INTO history_requests_fts(history_requests_fts, rowid, url, method, payload)
                VALUES ('delete', old.rowid, old.url, old.method, old.payload);
                INSERT INTO history_requests_fts(rowid, url, method, payload)
                VALUES (new.rowid, new.url, new.method, new.payload);
            END
        """)

        logger.debug("Database schema created successfully")

    def _row_to_doc(self, row: sqlite3.Row) -> dict:
        """
        Convert database row to a history document.

        Args:
            row: sqlite3.Row from query

        Returns:
            Document dict accepted by HistoryRecord.from_dict()
        """
        doc = json.loads(row['payload']) if row['payload'] else {}
        doc.update({
            "_id": row['id'],
            "type": row['type'],
            "method": row['method'],
            "url": row['url'],
            "created": row['created'],
            "updated": row['updated'],
        })
        return doc

    def upsert(self, record: HistoryRecord) -> str:
        """
        Insert or replace a record.

        Args:
            record: HistoryRecord with timestamps set (see ensure_timestamps())

        Returns:
            ID of the stored record
        """
        doc = record.to_dict()
        payload = {k: v for k, v in doc.items()
                   if k not in ("_id", "type", "method", "url", "created", "updated")}
        with self._connection() as conn:
            conn.execute("""
                INSERT INTO history_requests (id, type, method, url, created, updated, payload)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    type = excluded.type,
                    method = excluded.method,
                    url = excluded.url,
                    created = excluded.created,
                    updated = excluded.updated,
                    payload = excluded.payload
            """, (
                record.id,
                record.type,
                record.method,
                record.url,
                record.created_at,
                record.updated_at,
                json.dumps(payload),
            ))
            logger.debug(f"Stored history record {record.id}: {record.method} {record.url[:50]}")
            return record.id

    def get(self, record_id: str) -> Optional[dict]:
        """
        Get a document by ID.

        Args:
            record_id: ID of record to retrieve

        Returns:
            Document dict if found, None otherwise
        """
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM history_requests WHERE id = ?", (record_id,)
            ).fetchone()
            return self._row_to_doc(row) if row else None

    def delete(self, record_id: str) -> bool:
        """
        Delete a record by ID.

        Args:
            record_id: ID of record to delete

        Returns:
            True if deletion succeeded, False if record not found
        """
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM history_requests WHERE id = ?", (record_id,))
            success = cursor.rowcount > 0
            if success:
                logger.debug(f"Deleted history record {record_id}")
            return success

    def list_page(
        self,
        limit: int,
        descending: bool = True,
        start_key: Optional[int] = None,
        skip: int = 0,
    ) -> List[dict[str, Any]]:
        """
        Get one page of records ordered by ``updated``.

        ``start_key`` is inclusive: the page starts at the first record whose
        ``updated`` equals or passes it, then ``skip`` records are dropped.

        Args:
            limit: Maximum number of rows
            descending: Newest first when True
            start_key: Optional ``updated`` value to start from
            skip: Number of rows to skip after the start key

        Returns:
            List of ``{"key", "id", "doc"}`` rows
        """
        order = "DESC" if descending else "ASC"
        where = ""
        params: list[Any] = []
        if start_key is not None:
            where = "WHERE updated <= ?" if descending else "WHERE updated >= ?"
            params.append(start_key)
        params.extend([limit, skip or 0])

        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM history_requests {where} "
                f"ORDER BY updated {order}, id {order} LIMIT ? OFFSET ?",
                params,
            ).fetchall()
            return [
                {"key": row['updated'], "id": row['id'], "doc": self._row_to_doc(row)}
                for row in rows
            ]

    def search(self, query: str, limit: int = 150) -> List[dict]:
        """
        Prefix full-text search over URL, method and payload.

        Args:
            query: Search text, matched literally as a phrase prefix
            limit: Maximum number of results

        Returns:
            List of matching documents, newest first
        """
        query = (query or "").strip()
        if not query:
            return []
        phrase = '"' + query.replace('"', '""') + '"*'
        with self._connection() as conn:
            rows = conn.execute("""
                SELECT h.* FROM history_requests h
                JOIN history_requests_fts fts ON h.rowid = fts.rowid
                WHERE history_requests_fts MATCH ?
                ORDER BY h.updated DESC, h.id DESC
                LIMIT ?
            """, (phrase, limit)).fetchall()
            return [self._row_to_doc(row) for row in rows]

    def count(self) -> int:
        """Return the number of stored records."""
        with self._connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM history_requests").fetchone()[0]

    def destroy(self) -> int:
        """
        Delete every record.

        Returns:
            Number of records deleted
        """
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM history_requests")
            deleted_count = cursor.rowcount
            logger.info(f"Destroyed history store ({deleted_count} records)")
            return deleted_count
