"""
================================================================================
TEST: Global Rate Limiting
================================================================================

Test Coverage:
    - Requests beyond the per-client budget get 429 with a JSON error
    - Budget is per client address
    - Limiter can be disabled through settings

Author: Animal Impact Team
================================================================================
"""

import tempfile
import unittest
from dataclasses import replace
from pathlib import Path

import pytest

from animal_impact.core.json_store import JsonStore
from animal_impact.utils.config import Settings
from animal_impact.web.server import RATE_LIMIT_MESSAGE, create_app


@pytest.fixture()
def limited_client(settings, sqlite_store):
    app = create_app(replace(settings, rate_limit='3 per minute'), store=sqlite_store)
    return app.test_client()


def test_limit_exceeded_returns_429(limited_client):
    for _ in range(3):
        assert limited_client.get('/api/health').status_code == 200
    resp = limited_client.get('/api/health')
    assert resp.status_code == 429
    assert resp.get_json() == {'error': RATE_LIMIT_MESSAGE}


def test_limit_applies_across_routes(limited_client):
    limited_client.get('/api/health')
    limited_client.post('/api/login', json={})
    limited_client.get('/api/dashboard')
    assert limited_client.post('/api/register', json={}).status_code == 429


def test_limit_is_per_client_address(limited_client):
    for _ in range(3):
        limited_client.get('/api/health', environ_base={'REMOTE_ADDR': '10.0.0.1'})
    assert limited_client.get('/api/health', environ_base={'REMOTE_ADDR': '10.0.0.1'}).status_code == 429
    assert limited_client.get('/api/health', environ_base={'REMOTE_ADDR': '10.0.0.2'}).status_code == 200


class TestLimiterDisabled(unittest.TestCase):
    """Rate limiting switched off through Settings"""

    def test_no_429_when_disabled(self):
        with tempfile.TemporaryDirectory() as tmp:
            settings = Settings(
                jwt_secret='test-secret-key',
                bcrypt_rounds=4,
                rate_limit='1 per minute',
                rate_limit_enabled=False,
                storage_backend='json',
                json_path=Path(tmp) / 'data.json',
                seed_demo=False,
            )
            store = JsonStore(settings.json_path)
            client = create_app(settings, store=store).test_client()
            for _ in range(5):
                self.assertEqual(client.get('/api/health').status_code, 200)
            print("✓ Rate limiter disabled through settings")
