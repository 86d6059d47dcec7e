"""
Application error types.

Services raise these; the web layer maps each one onto its HTTP status
code. Messages are safe to show to end users except for StorageError,
whose details stay in the server log.
"""

from typing import Iterable, List, Optional


class ImpactError(Exception):
    """Base class for all application errors."""

    status_code = 500
    public_message = 'Internal server error'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def to_dict(self) -> dict:
        return {'error': self.message}


class ValidationError(ImpactError):
    """Missing or malformed input."""

    status_code = 400
    public_message = 'Invalid request'

    def __init__(self, message: Optional[str] = None, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing: List[str] = list(missing or [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.missing:
            body['missing'] = self.missing
        return body


class ConflictError(ImpactError):
    """Duplicate registration email."""

    status_code = 400
    public_message = 'User already exists'


class AuthenticationError(ImpactError):
    """Missing token or bad credentials."""

    status_code = 401
    public_message = 'Authentication required'


class ForbiddenError(ImpactError):
    """Token present but invalid, tampered or expired."""

    status_code = 403
    public_message = 'Invalid or expired token'


class NotFoundError(ImpactError):
    status_code = 404
    public_message = 'Not found'


class StorageError(ImpactError):
    """Persistence backend failure. Never shown to clients verbatim."""

    status_code = 500
    public_message = 'Internal server error'

    def to_dict(self) -> dict:
        return {'error': self.public_message}
