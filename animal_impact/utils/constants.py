"""
================================================================================
CONSTANTS - System-Wide Configuration Values
================================================================================

Centralized repository for the hardcoded constants used throughout the
impact tracker. Organized by functional category.

Constant Categories:
    1. File Paths - Directory and file locations
    2. Impact Calculation - Dashboard aggregation rules
    3. Security - Password hashing, token lifetime, rate limiting
    4. Demo Account - Seeded demonstration user

Key Constants:

    Impact Calculation:
        ANIMALS_PER_CONVERSION = 365
            Average animals spared per person per year of vegan diet.
            Fixed research-derived figure, intentionally not configurable.

        RECENT_LIMIT = 10
            Maximum records per category in the dashboard "recent" lists

    Security:
        BCRYPT_COST_FACTOR = 10
            bcrypt work factor for stored password hashes

        TOKEN_EXPIRY_DAYS = 7
            Lifetime of issued session tokens

        DEFAULT_RATE_LIMIT = "100 per 15 minutes"
            Global per-client-address request budget

File Path Constants:
    All paths are relative to BASE_DIR (current working directory)
    Supports monkeypatching for test isolation

Usage:
    from animal_impact.utils.constants import ANIMALS_PER_CONVERSION

    animals = conversion_count * ANIMALS_PER_CONVERSION

Note:
    Values in this file are STATIC. For runtime-configurable settings,
    use config.json / environment via animal_impact.utils.config.

Author: Animal Impact Team
Last Modified: October 2026
================================================================================
"""

from pathlib import Path

# ==========================================
# FILE PATHS
# ==========================================
BASE_DIR = Path.cwd()
LOG_DIR = BASE_DIR / 'logs'
CONFIG_FILE = BASE_DIR / 'configs' / 'config.json'
DB_FILE = BASE_DIR / 'animal_impact.db'
PRODUCTION_DB_FILE = Path('/app/data/animal_impact.db')
JSON_DB_FILE = BASE_DIR / 'data.json'
STATIC_DIR = Path(__file__).resolve().parent.parent / 'web' / 'static'

# ==========================================
# IMPACT CALCULATION CONSTANTS
# ==========================================
"""
Dashboard aggregation rules
"""
ANIMALS_PER_CONVERSION = 365  # Animals spared per person per year going vegan
RECENT_LIMIT = 10  # Records per category in dashboard "recent" lists

# ==========================================
# SECURITY CONSTANTS
# ==========================================
"""
Authentication and request limiting
"""
BCRYPT_COST_FACTOR = 10
BCRYPT_MAX_PASSWORD_BYTES = 72  # bcrypt only reads the first 72 bytes
MIN_PASSWORD_LENGTH = 6
TOKEN_EXPIRY_DAYS = 7
TOKEN_ALGORITHM = 'HS256'
DEFAULT_JWT_SECRET = 'your-secret-key-change-in-production'
DEFAULT_RATE_LIMIT = "100 per 15 minutes"

# ==========================================
# SERVER DEFAULTS
# ==========================================
DEFAULT_HOST = '0.0.0.0'
DEFAULT_PORT = 3001
APP_VERSION = '1.0.0'

# ==========================================
# DEMO ACCOUNT
# ==========================================
"""
Fixed account seeded with sample records for demonstration
"""
DEMO_EMAIL = 'johndoe@gmail.com'
DEMO_NAME = 'John Doe'
DEMO_PASSWORD = 'password123'
