"""JWT access tokens for the admin dashboard."""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from phishguard.core.config import get_settings

ADMIN_ROLE = "admin"


def create_access_token(subject: str | int, extra: dict[str, Any] | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_admin_token(subject: str | int) -> str:
    return create_access_token(subject, {"role": ADMIN_ROLE})


def decode_access_token(token: str) -> dict | None:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def is_admin_token(token: str | None) -> bool:
    """True if token is a valid, unexpired access token carrying the admin role."""
    if not token:
        return False
    claims = decode_access_token(token)
    if claims is None or claims.get("type") != "access":
        return False
    return claims.get("role") == ADMIN_ROLE
