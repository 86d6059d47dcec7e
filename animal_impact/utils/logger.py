"""
================================================================================
LOGGER - Unified Logging Configuration
================================================================================

Centralized logging infrastructure for all application contexts.

Logging Contexts:
    - 'cli' - Command-line interface operations
    - 'web' - REST API server
    - 'test' - Unit and integration tests
    - 'imported' - Library/module imports (minimal logging)

Log Destinations:
    1. File Logs - logs/{timestamp}.{context}.log
    2. Console Output - stdout
    3. Rotating Backups - 5MB max per file, 5 backup files

Log Format:
    {timestamp} {level} [{context}]: {message}
    Example: 2026-10-18 10:30:45 INFO [web]: Server running on port 3001

Audit Trail:
    Security-sensitive events (registration, login success/failure) go to
    the 'animal_impact.audit' logger via audit_log().

Features:
    - Context-aware records (run_context attribute on every record)
    - Rotating file handlers (prevents disk space issues)
    - UTF-8 encoding support
    - Graceful fallback if log directory unavailable
    - Test mode isolation (no log files when TEST_MODE is set)

Usage:
    from animal_impact.utils.logger import set_run_context, logger

    set_run_context('cli')
    logger.info('Database initialized')

Author: Animal Impact Team
Last Modified: October 2026
================================================================================
"""

import os
import sys
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

logger = logging.getLogger("animal_impact")
logger.setLevel(logging.INFO)

audit_logger = logging.getLogger("animal_impact.audit")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(run_context)s]: %(message)s"
AUDIT_FORMAT = "%(asctime)s AUDIT [%(run_context)s] ACTION:%(action)s USER:%(user)s IP:%(ip)s DETAILS:%(details)s"

# Global run context state
_RUN_CONTEXT = 'imported'


class RunContextFilter(logging.Filter):
    """
    Logging filter that adds run context to all log records
    Allows distinguishing between different execution contexts
    """

    def filter(self, record):
        record.run_context = _RUN_CONTEXT
        return True


def _file_handler(context: str):
    from animal_impact.utils.constants import LOG_DIR

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    handler = RotatingFileHandler(
        str(LOG_DIR / f"{timestamp}.{context}.log"),
        maxBytes=5_000_000,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RunContextFilter())
    return handler


def set_run_context(context: str, level: str = 'INFO'):
    """
    Set the execution context for logging

    Args:
        context: String identifier ('web', 'cli', 'test', etc)
        level: Log level name applied to the application logger
    """
    global _RUN_CONTEXT
    _RUN_CONTEXT = context

    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Clear existing handlers
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    if not os.environ.get('TEST_MODE') and context != 'imported':
        try:
            logger.addHandler(_file_handler(context))
        except OSError:
            pass  # Fall back to console-only logging

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler.addFilter(RunContextFilter())
    logger.addHandler(console_handler)

    # Audit records carry their own fields, so they get a dedicated handler
    for h in list(audit_logger.handlers):
        audit_logger.removeHandler(h)
        h.close()
    audit_handler = logging.StreamHandler(sys.stdout)
    audit_handler.setFormatter(logging.Formatter(AUDIT_FORMAT))
    audit_handler.addFilter(RunContextFilter())
    audit_logger.addHandler(audit_handler)
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False


def setup_logging(context: str = 'imported', level: str = 'INFO'):
    """
    Initialize logging for the application

    Args:
        context: Execution context identifier
        level: Log level name
    """
    set_run_context(context, level)
    return logger


def audit_log(action: str, details: str = '', user: str = None, ip: str = None):
    """Log security-sensitive operations"""
    audit_logger.info('', extra={
        'action': action,
        'details': details,
        'user': user or 'anonymous',
        'ip': ip or 'unknown',
    })


# Initialize with default context
set_run_context(_RUN_CONTEXT)
