"""
Security: password hashing and JWT (best practices for APIs).
Challenge: Secure auth, no plain-text passwords, token validation, logout that
actually revokes previously issued tokens.
"""

from datetime import datetime, timezone, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from taskapi.config import get_settings

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """One-way salted hash for storage. Never store plain passwords."""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time comparison for login."""
    return pwd_context.verify(plain, hashed)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def create_access_token(subject: str | int, extra: dict[str, Any] | None = None) -> str:
    """Create JWT for authenticated user. Subject typically user id."""
    now = utcnow()
    expire = now + timedelta(minutes=settings.jwt_expire_minutes)
    # iat keeps sub-second precision so a logout in the same second still revokes the token
    to_encode = {"sub": str(subject), "iat": now.timestamp(), "exp": expire}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT. Returns payload or None if invalid."""
    try:
        return jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None


def token_is_revoked(payload: dict[str, Any], last_token_issue_at: datetime) -> bool:
    """Tokens issued before the user's last logout are no longer valid."""
    issued_at = payload.get("iat")
    if issued_at is None:
        return True
    return float(issued_at) < as_utc(last_token_issue_at).timestamp()
