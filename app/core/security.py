"""
Password hashing and staff access tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from app.core.config import get_settings


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(
    subject: str,
    role: str,
    res_id: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Create a signed JWT for a staff user.

    Args:
        subject: Staff user id
        role: "admin" or "subadmin"
        res_id: Restaurant the user is bound to (subadmins only)
        expires_minutes: Override for the configured lifetime
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    lifetime = expires_minutes if expires_minutes is not None else settings.jwt_expire_minutes
    payload: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=lifetime),
    }
    if res_id:
        payload["resID"] = res_id
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a token, raising jwt.PyJWTError when invalid or expired."""
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
