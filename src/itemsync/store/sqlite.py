"""SQLite-backed primary store."""

import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

import structlog

from itemsync.errors import DuplicateError, NotFoundError
from itemsync.schemas import Category, Item

logger = structlog.get_logger()

_WRITABLE_COLUMNS: tuple[str, ...] = ("name", "category", "year")

_SELECT = "SELECT id, name, category, year FROM items"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_item(row: tuple[str, str, str, int]) -> Item:
    item_id, name, category, year = row
    return Item(id=item_id, name=name, category=Category(category), year=year)


class SqliteItemStore:
    """Item table in a single SQLite database.

    Thread-safe via a lock; the connection uses check_same_thread=False
    because calls arrive from asyncio worker threads.
    """

    def __init__(self, path: str = ":memory:") -> None:
        """Initialize the store (call initialize() before use).

        Args:
            path: Database file path, or ":memory:" for a private database.
        """
        self._path = path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def initialize(self) -> None:
        """Open the connection and create the items table if missing."""
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS items (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                category TEXT NOT NULL,
                year INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """)
        self._conn.commit()
        logger.info("item_store_initialized", path=self._path)

    def create(self, fields: dict[str, Any]) -> Item:
        item_id = uuid.uuid4().hex
        stamp = _now()
        with self._lock:
            assert self._conn is not None
            try:
                self._conn.execute(
                    """
                    INSERT INTO items (id, name, category, year, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        item_id,
                        fields["name"],
                        fields["category"],
                        int(fields["year"]),
                        stamp,
                        stamp,
                    ),
                )
                self._conn.commit()
            except sqlite3.IntegrityError as e:
                self._conn.rollback()
                raise DuplicateError("name", fields["name"]) from e

        return Item(
            id=item_id,
            name=fields["name"],
            category=Category(fields["category"]),
            year=int(fields["year"]),
        )

    def get(self, item_id: str) -> Item:
        with self._lock:
            assert self._conn is not None
            row = self._conn.execute(f"{_SELECT} WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            raise NotFoundError(item_id)
        return _row_to_item(row)

    def find_many(self) -> list[Item]:
        with self._lock:
            assert self._conn is not None
            rows = self._conn.execute(f"{_SELECT} ORDER BY name").fetchall()
        return [_row_to_item(row) for row in rows]

    def update(self, item_id: str, patch: dict[str, Any]) -> Item:
        """Apply a partial update.

        Unknown keys in the patch are ignored. An empty patch still
        verifies that the item exists.

        Args:
            item_id: Item to modify.
            patch: Column values to change.

        Returns:
            The item as stored after the update.
        """
        changes = {k: v for k, v in patch.items() if k in _WRITABLE_COLUMNS}
        if not changes:
            return self.get(item_id)

        assignments = ", ".join(f"{column} = ?" for column in changes)
        params = [*changes.values(), _now(), item_id]

        with self._lock:
            assert self._conn is not None
            try:
                cursor = self._conn.execute(
                    f"UPDATE items SET {assignments}, updated_at = ? WHERE id = ?",
                    params,
                )
                self._conn.commit()
            except sqlite3.IntegrityError as e:
                self._conn.rollback()
                raise DuplicateError("name", str(changes.get("name"))) from e
            if cursor.rowcount == 0:
                raise NotFoundError(item_id)
            row = self._conn.execute(f"{_SELECT} WHERE id = ?", (item_id,)).fetchone()

        return _row_to_item(row)

    def delete(self, item_id: str) -> None:
        with self._lock:
            assert self._conn is not None
            cursor = self._conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
            self._conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(item_id)

    def count(self) -> int:
        with self._lock:
            assert self._conn is not None
            return self._conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]

    def ping(self) -> None:
        with self._lock:
            if self._conn is None:
                raise sqlite3.ProgrammingError("item store is not initialized")
            self._conn.execute("SELECT 1")

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.info("item_store_closed")
