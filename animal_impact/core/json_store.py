"""
JSON Document Storage Module

File-backed storage backend for small single-node deployments. The whole
dataset is one JSON document:

    {"users": [...], "donations": [...], "conversions": [...],
     "media": [...], "campaigns": [...], "lastId": 0}

The document is owned by a JsonStore instance. Reads and read-modify-write
cycles go through _read() / _write() under a re-entrant lock, and every
mutation is persisted by writing a temp file next to the target and
renaming it into place while holding a FileLock.
"""

import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import filelock

from animal_impact.core.errors import ConflictError, StorageError
from animal_impact.core.records import RECORD_KINDS, get_kind, sort_key, timestamp_now

logger = logging.getLogger("animal_impact")


def empty_document() -> dict:
    doc = {'users': []}
    for key in RECORD_KINDS:
        doc[key] = []
    doc['lastId'] = 0
    return doc


class JsonStore:
    """
    Document storage backend.

    All entities share one monotonically increasing id counter (lastId).
    Email uniqueness and cascade deletes are enforced here rather than by
    a database engine.
    """

    backend = 'json'

    def __init__(self, json_path):
        self.json_path = Path(json_path)
        self._lock = threading.RLock()
        self._file_lock = filelock.FileLock(str(self.json_path) + '.lock', timeout=10)
        self._state: Optional[dict] = None

    def __repr__(self):
        return f"JsonStore({str(self.json_path)!r})"

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @contextmanager
    def _read(self):
        """Yield the current document for read-only use."""
        with self._lock:
            if self._state is None:
                self._state = self._load()
            yield self._state

    @contextmanager
    def _write(self):
        """
        Yield a working copy of the document; commit and persist it on exit.

        If the block raises, or persisting fails, the in-memory state is
        left untouched.
        """
        with self._lock:
            if self._state is None:
                self._state = self._load()
            working = copy.deepcopy(self._state)
            yield working
            self._persist(working)
            self._state = working

    def _load(self) -> dict:
        if not self.json_path.exists():
            return empty_document()
        try:
            with open(self.json_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.error(f"[!] Data file {self.json_path} unreadable ({e}). Starting with empty data.")
            self._set_aside()
            return empty_document()
        if not isinstance(data, dict):
            logger.error(f"[!] Data file {self.json_path} is not a JSON object. Starting with empty data.")
            self._set_aside()
            return empty_document()

        doc = empty_document()
        for key in doc:
            if key == 'lastId':
                continue
            if isinstance(data.get(key), list):
                doc[key] = data[key]
        try:
            doc['lastId'] = int(data.get('lastId') or 0)
        except (TypeError, ValueError):
            logger.error(f"[!] Data file {self.json_path} has an invalid id counter. Starting with empty data.")
            self._set_aside()
            return empty_document()
        return doc

    def _set_aside(self):
        """Keep a copy of a corrupt data file for inspection."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        corrupt_path = self.json_path.with_name(f"CORRUPT_{timestamp}_{self.json_path.name}")
        try:
            os.replace(self.json_path, corrupt_path)
            logger.error(f"[!] Moved unreadable data file to {corrupt_path}")
        except OSError as e:
            logger.error(f"[!] Could not move unreadable data file aside: {e}")

    def _persist(self, doc: dict):
        """Write the document atomically (temp file + rename) under the file lock."""
        target = self.json_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with self._file_lock:
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{target.name}.", suffix='.tmp', dir=str(target.parent)
                )
                try:
                    with os.fdopen(fd, 'w', encoding='utf-8') as f:
                        json.dump(doc, f, indent=2)
                        f.flush()
                        os.fsync(f.fileno())
                    os.replace(tmp_name, target)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
        except filelock.Timeout as e:
            logger.error(f"Failed to acquire lock for {target}")
            raise StorageError(f"Timed out waiting for lock on {target}") from e
        except OSError as e:
            logger.error(f"Failed to save data file {target}: {e}")
            raise StorageError(f"Cannot write {target}: {e}") from e

    @staticmethod
    def _next_id(doc: dict) -> int:
        doc['lastId'] = int(doc.get('lastId') or 0) + 1
        return doc['lastId']

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self):
        """Load the document, creating the data file if it does not exist."""
        with self._lock:
            self._state = self._load()
            if not self.json_path.exists():
                self._persist(self._state)
        logger.info(f"JSON data file ready at {self.json_path}")

    def ping(self) -> str:
        with self._read():
            pass
        if not self.json_path.exists():
            raise StorageError(f"Data file {self.json_path} is missing")
        return timestamp_now()

    def reset(self):
        with self._lock:
            doc = empty_document()
            self._persist(doc)
            self._state = doc

    def close(self):
        with self._lock:
            self._state = None

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, email: str, name: str, password_hash: str) -> Dict:
        with self._write() as doc:
            if any(u['email'] == email for u in doc['users']):
                raise ConflictError('User already exists')
            user = {
                'id': self._next_id(doc),
                'email': email,
                'name': name,
                'password': password_hash,
                'created_at': timestamp_now(),
            }
            doc['users'].append(user)
        return dict(user)

    def get_user_by_email(self, email: str) -> Optional[Dict]:
        with self._read() as doc:
            for user in doc['users']:
                if user['email'] == email:
                    return dict(user)
        return None

    def get_user_by_id(self, user_id: int) -> Optional[Dict]:
        with self._read() as doc:
            for user in doc['users']:
                if user['id'] == user_id:
                    return dict(user)
        return None

    def delete_user(self, user_id: int) -> bool:
        """Remove a user together with every record it owns."""
        with self._lock:
            if self.get_user_by_id(user_id) is None:
                return False
            with self._write() as doc:
                doc['users'] = [u for u in doc['users'] if u['id'] != user_id]
                for key in RECORD_KINDS:
                    doc[key] = [r for r in doc[key] if r['user_id'] != user_id]
        return True

    def count_users(self) -> int:
        with self._read() as doc:
            return len(doc['users'])

    # ------------------------------------------------------------------
    # Contribution records
    # ------------------------------------------------------------------

    def insert_record(self, kind, user_id: int, fields: Dict) -> int:
        kind = get_kind(kind)
        with self._write() as doc:
            if not any(u['id'] == user_id for u in doc['users']):
                raise StorageError(f"Cannot insert into {kind.key}: user {user_id} does not exist")
            record = {'id': self._next_id(doc), 'user_id': user_id}
            for column in kind.columns:
                record[column] = fields.get(column, kind.defaults.get(column))
            record['created_at'] = timestamp_now()
            doc[kind.key].append(record)
        return record['id']

    def list_records(self, kind, user_id: int) -> List[Dict]:
        kind = get_kind(kind)
        with self._read() as doc:
            rows = [dict(r) for r in doc[kind.key] if r['user_id'] == user_id]
        rows.sort(key=sort_key(kind), reverse=True)
        return rows

    def count_records(self, kind, user_id: int) -> int:
        kind = get_kind(kind)
        with self._read() as doc:
            return sum(1 for r in doc[kind.key] if r['user_id'] == user_id)
