"""
Configuration Management Module

Handles loading, validating, and merging application configuration from
config.json and the process environment (.env supported via python-dotenv).

Precedence (lowest to highest):
    built-in defaults -> configs/config.json -> environment variables
"""

import os
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from . import constants

logger = logging.getLogger("animal_impact")

STORAGE_BACKENDS = ('sqlite', 'json')

# (environment variable, config section, config key, caster)
ENV_OVERRIDES = [
    ('HOST', 'server', 'host', str),
    ('PORT', 'server', 'port', int),
    ('APP_ENV', 'server', 'environment', str),
    ('JWT_SECRET', 'security', 'jwt_secret', str),
    ('RATE_LIMIT', 'security', 'rate_limit', str),
    ('CORS_ORIGINS', 'security', 'cors_origins', str),
    ('STORAGE_BACKEND', 'storage', 'backend', str),
    ('DATABASE_PATH', 'storage', 'database_path', str),
    ('DATA_FILE', 'storage', 'json_path', str),
    ('SEED_DEMO', 'storage', 'seed_demo', lambda v: v.strip().lower() in ('1', 'true', 'yes', 'on')),
    ('LOG_LEVEL', 'logging', 'level', str),
]


def default_config() -> dict:
    return {
        "server": {
            "host": constants.DEFAULT_HOST,
            "port": constants.DEFAULT_PORT,
            "environment": "development",
        },
        "security": {
            "jwt_secret": None,
            "token_expiry_days": constants.TOKEN_EXPIRY_DAYS,
            "bcrypt_rounds": constants.BCRYPT_COST_FACTOR,
            "rate_limit": constants.DEFAULT_RATE_LIMIT,
            "cors_origins": "*",
        },
        "storage": {
            "backend": "sqlite",  # sqlite or json
            "database_path": None,
            "json_path": None,
            "seed_demo": True,
        },
        "logging": {
            "level": "INFO",
        },
    }


def load_config(config_file: Optional[Path] = None, use_env: bool = True) -> dict:
    """
    Load configuration from config.json with sensible defaults

    Args:
        config_file: Path to config.json (defaults to CONFIG_FILE)
        use_env: Apply environment overrides (.env is loaded first)

    Returns:
        dict: Configuration dictionary
    """
    config_file = Path(config_file) if config_file else constants.CONFIG_FILE
    defaults = default_config()

    if not config_file.exists():
        _save_config(config_file, defaults)
        merged = defaults
    else:
        try:
            with open(config_file, 'r') as f:
                config = json.load(f)

            # Merge with defaults to ensure all keys exist
            merged = _deep_merge(defaults, config)

            # Save merged config back if anything was added
            if merged != config:
                _save_config(config_file, merged)
        except json.JSONDecodeError as e:
            logger.error(f"Config file corrupted: {e}. Using defaults.")
            merged = defaults
        except OSError as e:
            logger.error(f"Error loading config: {e}. Using defaults.")
            merged = defaults

    if use_env:
        load_dotenv()
        merged = apply_env_overrides(merged, os.environ)
    return merged


def apply_env_overrides(config: dict, environ) -> dict:
    """
    Overlay environment variables onto a config dict

    NODE_ENV is honoured as a fallback for APP_ENV.
    Values that fail to parse are logged and ignored.
    """
    result = _deep_merge(config, {})
    if 'APP_ENV' not in environ and environ.get('NODE_ENV'):
        result['server']['environment'] = environ['NODE_ENV']
    for env_name, section, key, caster in ENV_OVERRIDES:
        raw = environ.get(env_name)
        if raw is None or raw == '':
            continue
        try:
            result[section][key] = caster(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid {env_name}={raw!r}")
    return result


def _deep_merge(defaults: dict, override: dict) -> dict:
    """
    Deep merge override config into defaults, preserving new defaults

    Args:
        defaults: Default configuration
        override: User-provided configuration

    Returns:
        dict: Merged configuration
    """
    result = {}
    for key, value in defaults.items():
        result[key] = _deep_merge(value, {}) if isinstance(value, dict) else value
    for key, value in override.items():
        if key in defaults and isinstance(defaults[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(defaults[key], value)
        else:
            result[key] = value
    return result


def _save_config(config_file: Path, config: dict):
    """
    Save configuration to file

    Args:
        config_file: Path to config file
        config: Configuration dictionary
    """
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w') as f:
            json.dump(config, f, indent=4)
    except OSError as e:
        logger.error(f"Failed to save config: {e}")


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings handed to the app factory and the CLI."""

    host: str = constants.DEFAULT_HOST
    port: int = constants.DEFAULT_PORT
    environment: str = 'development'
    jwt_secret: str = constants.DEFAULT_JWT_SECRET
    token_expiry_days: int = constants.TOKEN_EXPIRY_DAYS
    bcrypt_rounds: int = constants.BCRYPT_COST_FACTOR
    rate_limit: str = constants.DEFAULT_RATE_LIMIT
    rate_limit_enabled: bool = True
    cors_origins: str = '*'
    storage_backend: str = 'sqlite'
    database_path: Path = constants.DB_FILE
    json_path: Path = constants.JSON_DB_FILE
    seed_demo: bool = True
    log_level: str = 'INFO'

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    @property
    def storage_path(self) -> Path:
        return self.json_path if self.storage_backend == 'json' else self.database_path

    @classmethod
    def from_config(cls, config: dict) -> "Settings":
        server = config['server']
        security = config['security']
        storage = config['storage']

        environment = server.get('environment') or 'development'
        backend = str(storage.get('backend') or 'sqlite').lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(f"Unknown storage backend '{backend}' (expected one of {STORAGE_BACKENDS})")

        if storage.get('database_path'):
            database_path = Path(storage['database_path'])
        elif environment == 'production':
            database_path = constants.PRODUCTION_DB_FILE
        else:
            database_path = constants.DB_FILE

        json_path = Path(storage['json_path']) if storage.get('json_path') else constants.JSON_DB_FILE

        jwt_secret = security.get('jwt_secret') or constants.DEFAULT_JWT_SECRET
        if environment == 'production' and jwt_secret == constants.DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET is not set; using the built-in development secret in production")

        return cls(
            host=server.get('host', constants.DEFAULT_HOST),
            port=int(server.get('port', constants.DEFAULT_PORT)),
            environment=environment,
            jwt_secret=jwt_secret,
            token_expiry_days=int(security.get('token_expiry_days', constants.TOKEN_EXPIRY_DAYS)),
            bcrypt_rounds=int(security.get('bcrypt_rounds', constants.BCRYPT_COST_FACTOR)),
            rate_limit=security.get('rate_limit') or constants.DEFAULT_RATE_LIMIT,
            cors_origins=security.get('cors_origins') or '*',
            storage_backend=backend,
            database_path=database_path,
            json_path=json_path,
            seed_demo=bool(storage.get('seed_demo', True)),
            log_level=config.get('logging', {}).get('level', 'INFO'),
        )


def load_settings(config_file: Optional[Path] = None, use_env: bool = True) -> Settings:
    """Load config.json + environment and resolve them into Settings"""
    return Settings.from_config(load_config(config_file, use_env=use_env))
