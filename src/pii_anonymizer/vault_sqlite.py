"""Persistent vault backed by SQLite — survives process restarts.

Drop-in replacement for Vault when you need durability.  All mappings
live in one table keyed by token; inserts are ``INSERT OR IGNORE`` so two
requests tokenizing the same value at once cannot race or overwrite.

Usage:
    vault = SqliteVault(db_path="~/.pii-anonymizer/mappings.db")
    vault.put("<PII_EMAIL_1a2b3c4d>", "john@x.com")
    vault.get("<PII_EMAIL_1a2b3c4d>")   # "john@x.com"

Retention is a deployment concern; nothing here expires rows.
"""

from __future__ import annotations
import logging
import sqlite3
import threading
from pathlib import Path

from .errors import StorageError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pii_mapping (
    token TEXT PRIMARY KEY,
    original TEXT NOT NULL,
    created_at REAL NOT NULL DEFAULT (julianday('now'))
);
"""


class SqliteVault:
    """Persistent token → PII store."""

    __slots__ = ("_db_path", "_db", "_lock")

    backend = "sqlite"
    volatile = False

    def __init__(self, db_path: str | Path = "mappings.db", *, timeout: float = 10.0) -> None:
        db_path = Path(db_path).expanduser()
        self._db_path = db_path
        self._lock = threading.Lock()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = sqlite3.connect(str(db_path), timeout=timeout, check_same_thread=False)
            self._db.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"cannot open mapping database: {e}") from e

    @property
    def path(self) -> Path:
        return self._db_path

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def put(self, token: str, original: str) -> None:
        with self._lock:
            try:
                self._db.execute(
                    "INSERT OR IGNORE INTO pii_mapping (token, original) VALUES (?, ?)",
                    (token, original),
                )
                self._db.commit()
            except sqlite3.Error as e:
                raise StorageError(f"failed to store mapping for {token}: {e}") from e

    def get(self, token: str) -> str | None:
        with self._lock:
            try:
                row = self._db.execute(
                    "SELECT original FROM pii_mapping WHERE token = ?", (token,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"failed to read mapping for {token}: {e}") from e
        return row[0] if row else None

    def ensure_ready(self) -> None:
        return None

    # ------------------------------------------------------------------
    # Operator tooling
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM pii_mapping").fetchone()[0]

    def dump(self) -> dict[str, str]:
        with self._lock:
            rows = self._db.execute(
                "SELECT token, original FROM pii_mapping ORDER BY created_at, token"
            ).fetchall()
        return {token: original for token, original in rows}

    def clear(self) -> None:
        with self._lock:
            self._db.execute("DELETE FROM pii_mapping")
            self._db.commit()
        logger.info("Cleared mapping database %s", self._db_path)

    def close(self) -> None:
        with self._lock:
            self._db.close()
