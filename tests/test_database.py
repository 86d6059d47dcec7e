"""
================================================================================
TEST: SQLite Storage
================================================================================

Backend-specific behaviour of SQLiteStore.

Test Coverage:
    - Schema, foreign keys and indexes
    - Corruption detection and recovery on open
    - Storage errors wrapped as StorageError

Author: Animal Impact Team
================================================================================
"""

import sqlite3

import pytest

from animal_impact.core.database import SQLiteStore, table_names
from animal_impact.core.errors import StorageError


def test_schema_created(sqlite_store, settings):
    conn = sqlite3.connect(str(settings.database_path))
    try:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        indexes = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='index'")}
    finally:
        conn.close()

    assert set(table_names()) <= tables
    assert {
        'idx_donations_user_id',
        'idx_conversions_user_id',
        'idx_media_user_id',
        'idx_campaigns_user_id',
    } <= indexes


def test_foreign_keys_enforced(sqlite_store):
    with sqlite_store._connection() as conn:
        assert conn.execute('PRAGMA foreign_keys').fetchone()[0] == 1


def test_corrupted_database_recovered(tmp_path):
    db_path = tmp_path / 'broken.db'
    db_path.write_bytes(b'this is not a sqlite database' * 100)

    store = SQLiteStore(db_path)
    store.initialize()

    assert store.count_users() == 0
    assert list(tmp_path.glob('CORRUPT_*_broken.db'))


def test_creates_parent_directory(tmp_path):
    store = SQLiteStore(tmp_path / 'nested' / 'dir' / 'impact.db')
    store.initialize()
    assert (tmp_path / 'nested' / 'dir' / 'impact.db').exists()


def test_sqlite_errors_become_storage_errors(tmp_path):
    store = SQLiteStore(tmp_path / 'empty.db')
    # No initialize(): tables are missing
    with pytest.raises(StorageError):
        store.list_records('donations', 1)


def test_ping_reports_database_time(sqlite_store):
    assert len(sqlite_store.ping()) == len('2024-01-01 00:00:00')
