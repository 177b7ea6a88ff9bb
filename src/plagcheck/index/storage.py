"""SQLite persistence for fingerprint indexes."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, Tuple

from plagcheck.models import SourceLocation

FORMAT_VERSION = "1"


class SQLiteFingerprintStore:
    """Persistence layer for one strategy's fingerprint -> location entries."""

    def __init__(self, db_path: Path, *, readonly: bool = False) -> None:
        self.db_path = Path(db_path)
        self.readonly = readonly
        if readonly:
            uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._conn.row_factory = sqlite3.Row
        if not readonly:
            self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteFingerprintStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entries (
                    id INTEGER PRIMARY KEY,
                    fingerprint INTEGER NOT NULL,
                    article TEXT NOT NULL,
                    paragraph INTEGER NOT NULL,
                    position INTEGER NOT NULL,
                    text TEXT
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_entries_fingerprint
                    ON entries(fingerprint)
                """
            )

    def write_metadata(self, *, strategy: str, window: int) -> None:
        """Record how the entries were produced. Call within a transaction."""
        values = {"format_version": FORMAT_VERSION, "strategy": strategy, "window": str(window)}
        self._conn.executemany(
            "INSERT OR REPLACE INTO metadata(key, value) VALUES (?, ?)",
            list(values.items()),
        )

    def read_metadata(self) -> Dict[str, str]:
        rows = self._conn.execute("SELECT key, value FROM metadata").fetchall()
        return {row["key"]: row["value"] for row in rows}

    def insert_entries(self, entries: Iterable[Tuple[int, SourceLocation]]) -> int:
        """Insert a batch of entries. Call within a transaction."""
        cursor = self._conn.executemany(
            """
            INSERT INTO entries(fingerprint, article, paragraph, position, text)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                (int(value), loc.article, loc.paragraph, loc.position, loc.text)
                for value, loc in entries
            ),
        )
        return cursor.rowcount

    def iter_entries(self) -> Iterator[Tuple[int, SourceLocation]]:
        """Yield every entry in insertion order."""
        rows = self._conn.execute(
            """
            SELECT fingerprint, article, paragraph, position, text
            FROM entries
            ORDER BY id
            """
        )
        for row in rows:
            yield row["fingerprint"], SourceLocation(
                article=row["article"],
                paragraph=row["paragraph"],
                position=row["position"],
                text=row["text"],
            )

    def count_entries(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0])
