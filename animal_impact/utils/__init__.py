"""
================================================================================
UTILS MODULE - Shared Utilities and Helpers
================================================================================

Shared infrastructure used across all application components.

Exported Functions:
    Logging:
        - setup_logging() - Initialize logging infrastructure
        - set_run_context(context) - Set execution context
        - audit_log() - Record security-sensitive events
        - logger - Main application logger

    Configuration:
        - load_config() - Load configuration from config.json + environment
        - load_settings() - Resolve configuration into a Settings object
        - Settings - Runtime settings dataclass

Usage:
    from animal_impact.utils import logger, load_settings
    from animal_impact.utils.constants import ANIMALS_PER_CONVERSION

Author: Animal Impact Team
Last Modified: October 2026
================================================================================
"""

from .logger import setup_logging, set_run_context, audit_log, logger
from .config import load_config, load_settings, Settings

__all__ = [
    'setup_logging',
    'set_run_context',
    'audit_log',
    'logger',
    'load_config',
    'load_settings',
    'Settings',
]
