"""Sign-up, sign-in and lockout for manager accounts.

This is the identity provider the rest of the package talks to. Callers only
ever receive the principal id of an authenticated user.
"""

from __future__ import annotations

import hashlib
import hmac
from collections import deque
from datetime import datetime, timedelta
from secrets import token_hex
from typing import Deque, Dict, Optional

from sqlmodel import Session, select

from .exceptions import ValidationError
from .persistence import AuthUser

PBKDF2_ITERATIONS = 240_000
MIN_PASSWORD_LENGTH = 8


def hash_password(password: str, *, salt: Optional[str] = None) -> str:
    salt = salt or token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$", 3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthManager:
    """Register users, check credentials and rate limit failed sign-ins."""

    def __init__(self, *, max_attempts: int = 5, lockout_minutes: int = 15) -> None:
        self._max_attempts = max_attempts
        self._lockout_window = timedelta(minutes=lockout_minutes)
        self._login_attempts: Dict[str, Deque[datetime]] = {}

    def register(
        self, session: Session, email: str, password: str, *, full_name: Optional[str] = None
    ) -> AuthUser:
        address = normalize_email(email)
        if "@" not in address:
            raise ValidationError("Enter a valid email address.")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if session.exec(select(AuthUser).where(AuthUser.email == address)).first() is not None:
            raise ValidationError("An account with that email already exists.")
        user = AuthUser(email=address, password_hash=hash_password(password), full_name=(full_name or "").strip() or None)
        session.add(user)
        return user

    def authenticate(
        self, session: Session, email: str, password: str, *, at: Optional[datetime] = None
    ) -> Optional[AuthUser]:
        """Return the user for valid credentials, ``None`` otherwise or while locked out."""

        address = normalize_email(email)
        if self.is_locked(address, at=at):
            return None
        user = session.exec(select(AuthUser).where(AuthUser.email == address)).first()
        success = user is not None and verify_password(password or "", user.password_hash)
        self.record_login_attempt(address, success=success, at=at)
        return user if success else None

    # ------------------------------------------------------------------
    # Rate limiting helpers
    # ------------------------------------------------------------------
    def record_login_attempt(self, user_id: str, *, success: bool, at: Optional[datetime] = None) -> bool:
        """Record a login attempt and return whether authentication should proceed."""

        now = at or datetime.utcnow()
        bucket = self._login_attempts.setdefault(user_id, deque())
        self._prune(bucket, now)
        if success:
            bucket.clear()
            return True
        bucket.append(now)
        return len(bucket) < self._max_attempts

    def is_locked(self, user_id: str, *, at: Optional[datetime] = None) -> bool:
        """Return ``True`` when ``user_id`` is currently locked out."""

        now = at or datetime.utcnow()
        bucket = self._login_attempts.get(user_id)
        if not bucket:
            return False
        self._prune(bucket, now)
        return len(bucket) >= self._max_attempts

    def _prune(self, bucket: Deque[datetime], now: datetime) -> None:
        while bucket and now - bucket[0] > self._lockout_window:
            bucket.popleft()


__all__ = ["AuthManager", "hash_password", "verify_password", "normalize_email"]
