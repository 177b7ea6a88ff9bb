"""Tests for SQLiteFingerprintStore."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from plagcheck.index.storage import FORMAT_VERSION, SQLiteFingerprintStore
from plagcheck.models import SourceLocation


@pytest.fixture
def temp_store(tmp_path):
    """Create a temporary store for testing."""
    store = SQLiteFingerprintStore(tmp_path / "test.idx")
    yield store
    store.close()


class TestSQLiteFingerprintStore:
    """Test store initialization and schema."""

    def test_init_creates_database(self, tmp_path: Path) -> None:
        db_path = tmp_path / "new.idx"
        assert not db_path.exists()

        store = SQLiteFingerprintStore(db_path)

        assert db_path.exists()
        assert store.db_path == db_path
        store.close()

    def test_schema_creation(self, temp_store: SQLiteFingerprintStore) -> None:
        conn = temp_store.connection
        tables = {
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        assert {"metadata", "entries"} <= tables

        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index' AND name='idx_entries_fingerprint'"
        )
        assert cursor.fetchone() is not None

    def test_close(self, tmp_path: Path) -> None:
        store = SQLiteFingerprintStore(tmp_path / "close.idx")
        conn = store.connection
        store.close()

        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")


class TestTransaction:
    """Test transaction context manager."""

    def test_commit_on_success(self, temp_store: SQLiteFingerprintStore) -> None:
        with temp_store.transaction():
            temp_store.insert_entries([(1, SourceLocation("a", 0, 0))])

        assert temp_store.count_entries() == 1

    def test_rollback_on_exception(self, temp_store: SQLiteFingerprintStore) -> None:
        with pytest.raises(ValueError):
            with temp_store.transaction():
                temp_store.insert_entries([(1, SourceLocation("a", 0, 0))])
                raise ValueError("Test error")

        assert temp_store.count_entries() == 0


class TestEntries:
    """Test metadata and entry persistence."""

    def test_metadata_round_trip(self, temp_store: SQLiteFingerprintStore) -> None:
        with temp_store.transaction():
            temp_store.write_metadata(strategy="shingle-simple", window=3)

        assert temp_store.read_metadata() == {
            "format_version": FORMAT_VERSION,
            "strategy": "shingle-simple",
            "window": "3",
        }

    def test_entries_keep_insertion_order(self, temp_store: SQLiteFingerprintStore) -> None:
        entries = [
            (7, SourceLocation("doc-b", 1, 2, "second")),
            (-3, SourceLocation("doc-a", 0, 0, None)),
            (7, SourceLocation("doc-a", 0, 1, "first")),
        ]
        with temp_store.transaction():
            inserted = temp_store.insert_entries(entries)

        assert inserted == 3
        assert list(temp_store.iter_entries()) == entries

    def test_large_fingerprints(self, temp_store: SQLiteFingerprintStore) -> None:
        """Should store the full signed 64-bit range."""
        entries = [(2**63 - 1, SourceLocation("a", 0, 0)), (-(2**63), SourceLocation("b", 0, 0))]
        with temp_store.transaction():
            temp_store.insert_entries(entries)

        assert [value for value, _ in temp_store.iter_entries()] == [2**63 - 1, -(2**63)]

    def test_readonly_store_rejects_writes(self, tmp_path: Path) -> None:
        db_path = tmp_path / "ro.idx"
        SQLiteFingerprintStore(db_path).close()

        with SQLiteFingerprintStore(db_path, readonly=True) as store:
            with pytest.raises(sqlite3.OperationalError):
                with store.transaction():
                    store.insert_entries([(1, SourceLocation("a", 0, 0))])
