"""
Database Management Module

Relational storage backend for the impact tracker:
- SQLite connection management (one short-lived connection per operation)
- Schema creation with foreign-key cascade and per-user indexes
- User and contribution record CRUD, always scoped by user_id
- Integrity check and recovery of corrupted database files
"""

import shutil
import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from animal_impact.core.errors import ConflictError, StorageError
from animal_impact.core.records import RECORD_KINDS, get_kind, timestamp_now

logger = logging.getLogger("animal_impact")


SCHEMA = '''
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    password TEXT NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS donations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    organization TEXT NOT NULL,
    amount REAL NOT NULL,
    date DATE NOT NULL,
    notes TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS vegan_conversions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    person_name TEXT NOT NULL,
    conversion_date DATE NOT NULL,
    influence_type TEXT,
    notes TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS media_shared (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    platform TEXT NOT NULL,
    content_type TEXT NOT NULL,
    reach_estimate INTEGER DEFAULT 0,
    date DATE NOT NULL,
    url TEXT,
    notes TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS campaigns (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    campaign_name TEXT NOT NULL,
    organization TEXT,
    participation_type TEXT NOT NULL,
    date DATE NOT NULL,
    impact_description TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_donations_user_id ON donations(user_id);
CREATE INDEX IF NOT EXISTS idx_conversions_user_id ON vegan_conversions(user_id);
CREATE INDEX IF NOT EXISTS idx_media_user_id ON media_shared(user_id);
CREATE INDEX IF NOT EXISTS idx_campaigns_user_id ON campaigns(user_id);
'''


class SQLiteStore:
    """
    Relational storage backend.

    Features:
    - Referential integrity (ON DELETE CASCADE) and unique emails enforced
      by SQLite itself
    - Parameterized queries only
    - Integrity checking and recovery on open
    - No explicit multi-statement transactions: each operation commits
      on its own
    """

    backend = 'sqlite'

    def __init__(self, db_path):
        self.db_path = Path(db_path)

    def __repr__(self):
        return f"SQLiteStore({str(self.db_path)!r})"

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _connection(self):
        """
        Yield a connection that commits on success and rolls back on error.

        sqlite3.IntegrityError is re-raised untouched so callers can map
        constraint violations; every other sqlite3.Error becomes StorageError.
        """
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        try:
            with conn:
                yield conn
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            raise StorageError(f"Database error: {e}") from e
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self):
        """Create the database file, schema and indexes if missing."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create database directory: {e}") from e
        self._ensure_integrity()
        with self._connection() as conn:
            conn.executescript(SCHEMA)
        logger.info(f"Database schema ready at {self.db_path}")

    def _ensure_integrity(self):
        """
        Check database integrity before opening.
        Recovers corrupted database by moving it aside and starting fresh.
        """
        if not self.db_path.exists():
            return
        conn = None
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
            result = conn.execute("PRAGMA integrity_check").fetchone()
            healthy = result is not None and result[0] == 'ok'
        except sqlite3.DatabaseError:
            healthy = False
        finally:
            if conn:
                conn.close()
        if not healthy:
            self._recover_db()

    def _recover_db(self):
        """
        Recover from corrupted database by moving it aside.
        A fresh database is created by the following schema setup.
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        corrupt_path = self.db_path.with_name(f"CORRUPT_{timestamp}_{self.db_path.name}")
        shutil.move(str(self.db_path), str(corrupt_path))
        logger.error(f"[!] Database corrupted. Moved to {corrupt_path}. Created fresh DB.")

    def ping(self) -> str:
        """Round-trip check used by the health endpoint."""
        with self._connection() as conn:
            row = conn.execute("SELECT datetime('now') AS now").fetchone()
        return row['now']

    def reset(self):
        """Delete every row by recreating the database file."""
        if self.db_path.exists():
            try:
                self.db_path.unlink()
            except OSError as e:
                raise StorageError(f"Cannot remove database: {e}") from e
        self.initialize()

    def close(self):
        """Connections are per-operation; nothing is held open."""

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, email: str, name: str, password_hash: str) -> Dict:
        created_at = timestamp_now()
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    'INSERT INTO users (email, name, password, created_at) VALUES (?, ?, ?, ?)',
                    (email, name, password_hash, created_at)
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise ConflictError('User already exists') from e
        return {
            'id': user_id,
            'email': email,
            'name': name,
            'password': password_hash,
            'created_at': created_at,
        }

    def get_user_by_email(self, email: str) -> Optional[Dict]:
        with self._connection() as conn:
            row = conn.execute('SELECT * FROM users WHERE email = ?', (email,)).fetchone()
        return dict(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[Dict]:
        with self._connection() as conn:
            row = conn.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
        return dict(row) if row else None

    def delete_user(self, user_id: int) -> bool:
        """Remove a user; child records go with it through ON DELETE CASCADE."""
        with self._connection() as conn:
            cursor = conn.execute('DELETE FROM users WHERE id = ?', (user_id,))
            deleted = cursor.rowcount
        return deleted > 0

    def count_users(self) -> int:
        with self._connection() as conn:
            return conn.execute('SELECT COUNT(*) FROM users').fetchone()[0]

    # ------------------------------------------------------------------
    # Contribution records
    # ------------------------------------------------------------------

    def insert_record(self, kind, user_id: int, fields: Dict) -> int:
        """
        Insert one contribution record for a user.

        Args:
            kind: RecordKind or its key ('donations', 'conversions', ...)
            user_id: Owning user id
            fields: Cleaned column values (see RecordValidator.clean)

        Returns:
            The new record id
        """
        kind = get_kind(kind)
        columns = ['user_id', *kind.columns, 'created_at']
        values = [user_id, *(fields.get(c, kind.defaults.get(c)) for c in kind.columns), timestamp_now()]
        placeholders = ', '.join('?' for _ in columns)
        query = f"INSERT INTO {kind.table} ({', '.join(columns)}) VALUES ({placeholders})"
        try:
            with self._connection() as conn:
                cursor = conn.execute(query, values)
                record_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            # Only reachable when the owning user no longer exists
            raise StorageError(f"Cannot insert into {kind.table}: {e}") from e
        return record_id

    def list_records(self, kind, user_id: int) -> List[Dict]:
        """All records of one kind for a user, most recent first."""
        kind = get_kind(kind)
        query = (
            f"SELECT * FROM {kind.table} WHERE user_id = ? "
            f"ORDER BY {kind.date_field} DESC, created_at DESC, id DESC"
        )
        with self._connection() as conn:
            rows = conn.execute(query, (user_id,)).fetchall()
        return [dict(row) for row in rows]

    def count_records(self, kind, user_id: int) -> int:
        kind = get_kind(kind)
        with self._connection() as conn:
            return conn.execute(
                f"SELECT COUNT(*) FROM {kind.table} WHERE user_id = ?", (user_id,)
            ).fetchone()[0]


def table_names() -> List[str]:
    return ['users'] + [kind.table for kind in RECORD_KINDS.values()]
