"""Identity operations: registration, credential checks and bearer tokens."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import re
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from taskbook.core.dates import utcnow
from taskbook.core.errors import UnauthorizedError, ValidationError
from taskbook.database.users import UserDB
from taskbook.models import LoginResult, User, UserRef

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
_HASH_SCHEME = "pbkdf2_sha256"


def hash_password(password: str, iterations: int = 240_000) -> str:
    """Hash a password for storage as scheme$iterations$salt$digest."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    encoded = base64.b64encode(digest).decode("ascii")
    return f"{_HASH_SCHEME}${iterations}${salt}${encoded}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a stored hash (constant-time compare)."""
    try:
        scheme, iterations, salt, encoded = password_hash.split("$")
        rounds = int(iterations)
    except ValueError:
        return False
    if scheme != _HASH_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), rounds)
    return hmac.compare_digest(base64.b64encode(digest).decode("ascii"), encoded)


def _token_digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class AuthService:
    """Local identity provider backed by the users/auth_tokens tables."""

    def __init__(
        self,
        users: UserDB,
        token_ttl: timedelta = timedelta(days=1),
        password_iterations: int = 240_000,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._users = users
        self._token_ttl = token_ttl
        self._iterations = password_iterations
        self._clock = clock

    def register(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> User:
        """Create a user.

        Raises:
            ValidationError: If the email or password is malformed.
            UnauthorizedError: If the email is already registered.
        """
        normalized = (email or "").strip().lower()
        if not _EMAIL_RE.match(normalized):
            raise ValidationError("Invalid email format")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if self._users.get_user_by_email(normalized):
            raise UnauthorizedError("User already exists")

        user = User(
            id=str(uuid.uuid4()),
            email=normalized,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            password_hash=hash_password(password, self._iterations),
            created_at=self._clock(),
        )
        self._users.insert_user(user)
        logger.info("Registered user %s", user.id)
        return user

    def validate_user(self, email: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, else None."""
        user = self._users.get_user_by_email((email or "").strip().lower())
        if not user:
            return None
        if not verify_password(password or "", user.password_hash):
            return None
        return user

    def issue_token(self, user: User) -> LoginResult:
        """Issue a fresh bearer token, dropping expired ones first."""
        token = secrets.token_urlsafe(32)
        now = self._clock()
        self._purge(now)
        self._users.insert_token(_token_digest(token), user.id, now, now + self._token_ttl)
        return LoginResult(access_token=token, user=UserRef(id=user.id, email=user.email))

    def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and issue a bearer token.

        Raises:
            UnauthorizedError: If the credentials do not match.
        """
        user = self.validate_user(email, password)
        if user is None:
            logger.info("Failed login attempt")
            raise UnauthorizedError("Invalid email or password")
        return self.issue_token(user)

    def resolve_token(self, token: Optional[str]) -> Optional[User]:
        """Return the user owning a live token; None for unknown or expired."""
        if not token:
            return None
        user = self._users.get_token_user(_token_digest(token), self._clock())
        if user is None:
            logger.debug("Token did not resolve to a user")
        return user

    def logout(self, token: str) -> bool:
        return self._users.delete_token(_token_digest(token))

    def _purge(self, now: datetime) -> int:
        removed = self._users.purge_expired_tokens(now)
        if removed:
            logger.info("Purged %d expired tokens", removed)
        return removed
