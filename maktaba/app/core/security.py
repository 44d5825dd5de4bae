from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from maktaba.app.core.config import settings

ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 8

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Logged-out tokens and when they would have expired
_revoked_tokens: dict[str, datetime] = {}


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_password_strength(password: str) -> str | None:
    """Return why *password* is too weak, or None when it is acceptable.

    Letters may be from any script.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not re.search(r"[^\W\d_]", password):
        return "Password must contain at least one letter"
    if not re.search(r"\d", password):
        return "Password must contain at least one digit"
    return None


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": subject, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Raises ``JWTError`` for bad, expired or revoked tokens."""
    if token in _revoked_tokens:
        raise JWTError("Token has been revoked")
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])


def revoke_token(token: str) -> None:
    try:
        claims = jwt.get_unverified_claims(token)
        expires = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
    except (JWTError, KeyError, TypeError, ValueError):
        expires = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    _revoked_tokens[token] = expires


def cleanup_expired_tokens() -> int:
    """Drop revoked tokens that have expired anyway; returns how many."""
    now = datetime.now(timezone.utc)
    expired = [token for token, expires in _revoked_tokens.items() if expires <= now]
    for token in expired:
        del _revoked_tokens[token]
    return len(expired)
