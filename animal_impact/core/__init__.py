"""
Core domain: storage backends, authentication, aggregation and seeding.
"""

from animal_impact.core.auth import AuthService, Identity
from animal_impact.core.dashboard import DashboardService
from animal_impact.core.database import SQLiteStore
from animal_impact.core.json_store import JsonStore
from animal_impact.core.seed import seed_demo_data


def create_store(settings):
    """Build the storage backend selected by settings.storage_backend (not yet initialized)."""
    if settings.storage_backend == 'json':
        return JsonStore(settings.json_path)
    return SQLiteStore(settings.database_path)


__all__ = [
    'AuthService',
    'DashboardService',
    'Identity',
    'JsonStore',
    'SQLiteStore',
    'create_store',
    'seed_demo_data',
]
