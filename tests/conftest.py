"""
================================================================================
PYTEST CONFIGURATION
================================================================================

Pytest configuration and shared fixtures for the entire test suite.

Global Fixtures:
    - settings: Settings pointing at a per-test temp directory, low bcrypt cost
    - sqlite_store / json_store: Initialized storage backends
    - store: Parametrized over both backends
    - auth_service: AuthService bound to `store`
    - app / app_client: Flask app and test client over `store`
    - register_user: Helper that registers through the API and returns
      (token, user)

Test Isolation Strategy:
    TEST_MODE=1 is set before any application import so no log files are
    written, and every test gets its own storage files under tmp_path.

Author: Animal Impact Team
================================================================================
"""
import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for cli imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Set environment variables before test modules are imported."""
    os.environ['TEST_MODE'] = '1'
    os.environ['PYTEST_RUNNING'] = '1'


def pytest_unconfigure(config):
    for name in ('TEST_MODE', 'PYTEST_RUNNING'):
        os.environ.pop(name, None)


@pytest.fixture()
def settings(tmp_path):
    from animal_impact.utils.config import Settings

    return Settings(
        environment='test',
        jwt_secret='test-secret-key',
        bcrypt_rounds=4,  # bcrypt minimum; keeps the suite fast
        database_path=tmp_path / 'test.db',
        json_path=tmp_path / 'data.json',
        seed_demo=False,
    )


@pytest.fixture()
def sqlite_store(settings):
    from animal_impact.core.database import SQLiteStore

    store = SQLiteStore(settings.database_path)
    store.initialize()
    yield store
    store.close()


@pytest.fixture()
def json_store(settings):
    from animal_impact.core.json_store import JsonStore

    store = JsonStore(settings.json_path)
    store.initialize()
    yield store
    store.close()


@pytest.fixture(params=['sqlite', 'json'])
def store(request):
    """Both storage backends must satisfy the same behaviour."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture()
def auth_service(store, settings):
    from animal_impact.core.auth import AuthService

    return AuthService.from_settings(store, settings)


@pytest.fixture()
def app(settings, store):
    from animal_impact.web.server import create_app

    app = create_app(settings, store=store)
    app.config['TESTING'] = True
    return app


@pytest.fixture()
def app_client(app):
    return app.test_client()


@pytest.fixture()
def register_user(app_client):
    """Register through the API; returns (token, user)."""
    def _register(email='alice@example.com', name='Alice', password='secret1'):
        resp = app_client.post('/api/register', json={'email': email, 'name': name, 'password': password})
        assert resp.status_code == 201, resp.get_json()
        body = resp.get_json()
        return body['token'], body['user']
    return _register
