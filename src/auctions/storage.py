"""
Ordered Map Service: SQLite-backed key-ordered map of JSON records.
"""

import sqlite3
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from auctions.errors import StorageFault

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class SQLiteOrderedMap:
    """
    Persistent ordered map with get/insert/remove/values.

    Keys are strings, values are JSON objects. Enumeration follows key order.
    Every SQLite failure surfaces as StorageFault.
    """

    def __init__(
        self,
        db_path: Union[Path, str] = MEMORY,
        table: str = "auctions",
        max_key_bytes: int = 44,
        max_value_bytes: int = 1024,
    ):
        """
        Initialize the map.

        Args:
            db_path: Path to SQLite database, or ":memory:"
            table: Table holding the map entries
            max_key_bytes: Largest accepted key (UTF-8 bytes)
            max_value_bytes: Largest accepted serialized value (UTF-8 bytes)
        """
        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table}")

        self.db_path = db_path
        self.table = table
        self.max_key_bytes = max_key_bytes
        self.max_value_bytes = max_value_bytes
        self.lock = threading.Lock()

        try:
            self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._init_schema()
        except sqlite3.Error as e:
            raise StorageFault(f"Failed to open ordered map at {db_path}: {e}")

    def _init_schema(self):
        """Initialize map table"""
        with self.conn:
            self.conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """
            )

    def encode(self, value: Dict[str, Any]) -> str:
        """Serialize a value, raising ValueError if it exceeds the value slot"""
        encoded = json.dumps(value, sort_keys=True, separators=(",", ":"))
        size = len(encoded.encode("utf-8"))
        if size > self.max_value_bytes:
            raise ValueError(
                f"Value of {size} bytes exceeds limit of {self.max_value_bytes} bytes"
            )
        return encoded

    def _check_key(self, key: str) -> None:
        if len(key.encode("utf-8")) > self.max_key_bytes:
            raise ValueError(
                f"Key {key!r} exceeds limit of {self.max_key_bytes} bytes"
            )

    def _decode(self, key: str, raw: str) -> Dict[str, Any]:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageFault(f"Undecodable value at key {key}: {e}")

    def _get_unsafe(self, key: str) -> Optional[Dict[str, Any]]:
        cursor = self.conn.execute(
            f"SELECT value FROM {self.table} WHERE key = ?", (key,)
        )
        row = cursor.fetchone()
        if not row:
            return None
        return self._decode(key, row[0])

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get value by key.

        Returns:
            Stored value or None if absent
        """
        with self.lock:
            try:
                return self._get_unsafe(key)
            except sqlite3.Error as e:
                raise StorageFault(f"Failed to read key {key}: {e}")

    def insert(self, key: str, value: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert or replace the value at key.

        Raises:
            ValueError: If the key or serialized value is too large

        Returns:
            Previous value or None
        """
        self._check_key(key)
        encoded = self.encode(value)

        with self.lock:
            try:
                previous = self._get_unsafe(key)
                with self.conn:
                    self.conn.execute(
                        f"INSERT OR REPLACE INTO {self.table} (key, value) VALUES (?, ?)",
                        (key, encoded),
                    )
            except sqlite3.Error as e:
                raise StorageFault(f"Failed to write key {key}: {e}")

        return previous

    def remove(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Remove the value at key.

        Returns:
            Removed value or None if absent
        """
        with self.lock:
            try:
                previous = self._get_unsafe(key)
                if previous is None:
                    return None
                with self.conn:
                    self.conn.execute(
                        f"DELETE FROM {self.table} WHERE key = ?", (key,)
                    )
            except sqlite3.Error as e:
                raise StorageFault(f"Failed to remove key {key}: {e}")

        return previous

    def values(self) -> List[Dict[str, Any]]:
        """All values in key order"""
        with self.lock:
            try:
                rows = self.conn.execute(
                    f"SELECT key, value FROM {self.table} ORDER BY key"
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageFault(f"Failed to enumerate values: {e}")

        return [self._decode(key, raw) for key, raw in rows]

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self.lock:
            try:
                return self.conn.execute(
                    f"SELECT COUNT(*) FROM {self.table}"
                ).fetchone()[0]
            except sqlite3.Error as e:
                raise StorageFault(f"Failed to count entries: {e}")

    def close(self) -> None:
        with self.lock:
            self.conn.close()
        logger.debug(f"Closed ordered map {self.db_path}")
