"""
Authentication Module

Password hashing (bcrypt) and stateless session tokens (HS256 JWT).

A token embeds {"userId", "email"} and expires after TOKEN_EXPIRY_DAYS.
There is no server-side session state: logging out is the client
discarding its token.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

import bcrypt
import jwt

from animal_impact.core.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    ValidationError,
)
from animal_impact.utils.constants import (
    BCRYPT_COST_FACTOR,
    BCRYPT_MAX_PASSWORD_BYTES,
    DEFAULT_JWT_SECRET,
    MIN_PASSWORD_LENGTH,
    TOKEN_ALGORITHM,
    TOKEN_EXPIRY_DAYS,
)

logger = logging.getLogger("animal_impact")


@dataclass(frozen=True)
class Identity:
    """Caller identity extracted from a verified token."""

    user_id: int
    email: str


def public_user(user: Dict) -> Dict:
    """User fields that are safe to return to the client."""
    return {'id': user['id'], 'email': user['email'], 'name': user['name']}


def _password_bytes(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes of its input
    return password.encode('utf-8')[:BCRYPT_MAX_PASSWORD_BYTES]


class AuthService:
    """Registers users, checks credentials and issues/verifies tokens."""

    def __init__(self, store, secret: str = DEFAULT_JWT_SECRET,
                 token_expiry_days: int = TOKEN_EXPIRY_DAYS,
                 bcrypt_rounds: int = BCRYPT_COST_FACTOR):
        self.store = store
        self.secret = secret
        self.token_expiry = timedelta(days=token_expiry_days)
        self.bcrypt_rounds = bcrypt_rounds
        self._dummy_hash: Optional[bytes] = None

    @classmethod
    def from_settings(cls, store, settings) -> "AuthService":
        return cls(
            store,
            secret=settings.jwt_secret,
            token_expiry_days=settings.token_expiry_days,
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode('utf-8')

    def check_password(self, password: str, stored_hash: Optional[str]) -> bool:
        """
        Verify a password against a stored hash.

        Always performs a bcrypt comparison, even without a stored hash,
        so unknown users and wrong passwords take similar time.
        """
        if not stored_hash:
            if self._dummy_hash is None:
                self._dummy_hash = bcrypt.hashpw(b'dummy', bcrypt.gensalt(rounds=self.bcrypt_rounds))
            bcrypt.checkpw(_password_bytes(password), self._dummy_hash)
            return False
        try:
            return bcrypt.checkpw(_password_bytes(password), stored_hash.encode('utf-8'))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, user_id: int, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            'userId': user_id,
            'email': email,
            'iat': now,
            'exp': now + self.token_expiry,
        }
        return jwt.encode(payload, self.secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: Optional[str]) -> Identity:
        """
        Turn a bearer token into an Identity.

        Raises:
            AuthenticationError: no token supplied
            ForbiddenError: bad signature, malformed, expired or missing claims
        """
        if not token:
            raise AuthenticationError('Access token required')
        try:
            payload = jwt.decode(token, self.secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.InvalidTokenError as e:
            logger.debug(f"Token rejected: {e}")
            raise ForbiddenError('Invalid or expired token')

        user_id = payload.get('userId')
        email = payload.get('email')
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(email, str):
            raise ForbiddenError('Invalid or expired token')
        return Identity(user_id=user_id, email=email)

    # ------------------------------------------------------------------
    # Account flows
    # ------------------------------------------------------------------

    def register(self, email, name, password) -> Tuple[str, Dict]:
        """
        Create an account and return (token, public user).

        Raises:
            ValidationError: missing/non-string fields or short password
            ConflictError: email already registered
        """
        missing = [
            field_name for field_name, value in (('email', email), ('name', name), ('password', password))
            if not isinstance(value, str) or not value.strip()
        ]
        if missing:
            raise ValidationError('Email, name, and password are required', missing=missing)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

        email = email.strip()
        name = name.strip()
        if self.store.get_user_by_email(email) is not None:
            # Checked up front to skip hashing; the store enforces it again
            raise ConflictError('User already exists')

        user = self.store.create_user(email, name, self.hash_password(password))
        logger.info(f"Registered user {user['id']}")
        return self.issue_token(user['id'], user['email']), public_user(user)

    def login(self, email, password) -> Tuple[str, Dict]:
        """
        Check credentials and return (token, public user).

        Raises:
            ValidationError: email or password missing
            AuthenticationError: unknown email or wrong password
        """
        missing = [
            field_name for field_name, value in (('email', email), ('password', password))
            if not isinstance(value, str) or not value
        ]
        if missing:
            raise ValidationError('Email and password are required', missing=missing)

        user = self.store.get_user_by_email(email.strip())
        if not self.check_password(password, user['password'] if user else None):
            raise AuthenticationError('Invalid credentials')
        return self.issue_token(user['id'], user['email']), public_user(user)
