"""
Key-value storage media.

MemoryStorage keeps values in-process; SQLiteStorage persists them in a
local SQLite file.
"""
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from ..exceptions import LocalStorageError
from .protocols import KeyValueStorage


class MemoryStorage(KeyValueStorage):
    """
    In-memory storage.

    Data is lost when the object is destroyed. Useful for tests and
    short-lived processes.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass

    def __enter__(self) -> 'MemoryStorage':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class SQLiteStorage(KeyValueStorage):
    """
    SQLite-based key-value storage.

    Example:
        >>> storage = SQLiteStorage("my_app")
        >>> # Creates my_app.db
        >>> storage.set_item("key", "value")
    """

    EXTENSION = '.db'
    SCHEMA_VERSION = 1

    def __init__(
        self,
        name: Union[str, Path],
        base_path: Optional[Path] = None
    ):
        """
        Initialize SQLite storage.

        Args:
            name: Database name (without extension) or full path
            base_path: Optional base directory for the database file

        Raises:
            LocalStorageError: If the database cannot be created
        """
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        if isinstance(name, Path) or name.endswith(self.EXTENSION) or name == ':memory:':
            self._path = Path(name)
        elif base_path:
            self._path = base_path / f"{name}{self.EXTENSION}"
        else:
            self._path = Path(f"{name}{self.EXTENSION}")

        try:
            if str(self._path) != ':memory:':
                self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalStorageError(f"Cannot create storage directory {self._path.parent}: {e}") from e

        self._init_db()

    @property
    def path(self) -> Path:
        """Get database file path."""
        return self._path

    @contextmanager
    def _get_connection(self):
        """Get thread-safe database connection, translating sqlite errors."""
        with self._lock:
            try:
                if self._conn is None:
                    self._conn = sqlite3.connect(
                        str(self._path),
                        check_same_thread=False
                    )
                yield self._conn
            except sqlite3.Error as e:
                raise LocalStorageError(f"Local storage failure ({self._path}): {e}") from e

    def _init_db(self) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS version (
                    version INTEGER PRIMARY KEY
                )
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')
            cursor.execute('SELECT version FROM version LIMIT 1')
            if cursor.fetchone() is None:
                cursor.execute(
                    'INSERT INTO version (version) VALUES (?)',
                    (self.SCHEMA_VERSION,)
                )
            conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute('SELECT value FROM kv WHERE key = ?', (key,)).fetchone()
            return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
            ''', (key, value, datetime.now(timezone.utc).isoformat()))
            conn.commit()

    def remove_item(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute('DELETE FROM kv WHERE key = ?', (key,))
            conn.commit()

    def keys(self) -> Iterator[str]:
        with self._get_connection() as conn:
            rows = conn.execute('SELECT key FROM kv ORDER BY key').fetchall()
        return iter([row[0] for row in rows])

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def delete_file(self) -> None:
        """Delete the database file completely."""
        self.close()
        if self._path.exists():
            self._path.unlink()

    def __enter__(self) -> 'SQLiteStorage':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
