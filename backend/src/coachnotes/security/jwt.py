"""JWT token utilities.

Tokens are issued by the practice's auth service; this backend only
verifies them. create_access_token exists for tooling and tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from ..config import get_settings
from ..core.schemas.actor import UserRole


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token."""
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire, "type": "access", "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate an access token, None when invalid or expired."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None
    return payload


def get_identity_from_token(token: str) -> Optional[tuple[UUID, UserRole]]:
    """Extract (user id, role) from a token."""
    payload = decode_access_token(token)
    if not payload:
        return None

    try:
        user_id = UUID(str(payload.get("sub")))
        role = UserRole(payload.get("role", UserRole.COACH.value))
    except ValueError:
        return None

    return user_id, role
