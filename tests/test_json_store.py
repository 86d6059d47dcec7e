"""
================================================================================
TEST: JSON Document Storage
================================================================================

Backend-specific behaviour of JsonStore.

Test Coverage:
    - Data survives a restart (new instance reading the same file)
    - Shared, increasing id counter across entity kinds
    - Corrupt data file recovery
    - Failed writes leave memory and disk unchanged
    - Concurrent registrations from several threads

Author: Animal Impact Team
================================================================================
"""

import json
import threading

import pytest

from animal_impact.core.errors import ConflictError, StorageError
from animal_impact.core.json_store import JsonStore


def test_document_layout(json_store, settings):
    data = json.loads(settings.json_path.read_text())
    assert data == {
        'users': [], 'donations': [], 'conversions': [], 'media': [], 'campaigns': [], 'lastId': 0,
    }


def test_survives_restart(json_store, settings):
    user = json_store.create_user('p@example.com', 'P', 'h')
    json_store.insert_record('donations', user['id'], {
        'organization': 'Org', 'amount': 25.0, 'date': '2024-01-01', 'notes': '',
    })

    reopened = JsonStore(settings.json_path)
    reopened.initialize()
    assert reopened.get_user_by_email('p@example.com')['id'] == user['id']
    rows = reopened.list_records('donations', user['id'])
    assert len(rows) == 1
    assert rows[0]['amount'] == 25.0


def test_ids_shared_and_increasing(json_store, settings):
    user = json_store.create_user('i@example.com', 'I', 'h')
    donation_id = json_store.insert_record('donations', user['id'], {'organization': 'O', 'amount': 1, 'date': '2024-01-01'})
    media_id = json_store.insert_record('media', user['id'], {'platform': 'X', 'content_type': 'Post', 'date': '2024-01-01'})
    second_user = json_store.create_user('j@example.com', 'J', 'h')

    ids = [user['id'], donation_id, media_id, second_user['id']]
    assert ids == sorted(set(ids))
    assert json.loads(settings.json_path.read_text())['lastId'] == ids[-1]


def test_ids_continue_after_restart(json_store, settings):
    first = json_store.create_user('a@example.com', 'A', 'h')
    reopened = JsonStore(settings.json_path)
    reopened.initialize()
    second = reopened.create_user('b@example.com', 'B', 'h')
    assert second['id'] > first['id']


def test_corrupt_file_replaced_with_empty_document(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text('{not json')

    store = JsonStore(path)
    store.initialize()

    assert store.count_users() == 0
    assert json.loads(path.read_text())['lastId'] == 0
    assert list(tmp_path.glob('CORRUPT_*_data.json'))


def test_non_object_document_treated_as_corrupt(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text('[1, 2, 3]')
    store = JsonStore(path)
    store.initialize()
    assert store.count_users() == 0


@pytest.mark.parametrize('last_id', ['abc', [1], {'n': 1}])
def test_invalid_id_counter_treated_as_corrupt(tmp_path, last_id):
    path = tmp_path / 'data.json'
    path.write_text(json.dumps({'users': [], 'lastId': last_id}))

    store = JsonStore(path)
    store.initialize()

    assert store.count_users() == 0
    assert json.loads(path.read_text())['lastId'] == 0
    assert list(tmp_path.glob('CORRUPT_*_data.json'))


def test_failed_write_keeps_previous_state(json_store, settings, monkeypatch):
    json_store.create_user('before@example.com', 'B', 'h')
    on_disk = settings.json_path.read_text()

    def boom(*args, **kwargs):
        raise OSError('disk full')

    monkeypatch.setattr('animal_impact.core.json_store.os.replace', boom)
    with pytest.raises(StorageError):
        json_store.create_user('after@example.com', 'A', 'h')

    assert json_store.get_user_by_email('after@example.com') is None
    assert settings.json_path.read_text() == on_disk
    assert not list(settings.json_path.parent.glob('.data.json.*.tmp'))


def test_conflict_does_not_persist(json_store, settings):
    json_store.create_user('c@example.com', 'C', 'h')
    last_id = json.loads(settings.json_path.read_text())['lastId']
    with pytest.raises(ConflictError):
        json_store.create_user('c@example.com', 'Other', 'h')
    assert json.loads(settings.json_path.read_text())['lastId'] == last_id


def test_concurrent_registrations(json_store):
    errors = []

    def register(n):
        try:
            json_store.create_user(f'user{n}@example.com', f'User {n}', 'h')
        except Exception as e:  # collected and asserted below
            errors.append(e)

    threads = [threading.Thread(target=register, args=(n,)) for n in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert json_store.count_users() == 10
    ids = [json_store.get_user_by_email(f'user{n}@example.com')['id'] for n in range(10)]
    assert len(set(ids)) == 10
