"""
JWT token utilities for authentication.

Tokens are issued by the accounts service; this API only verifies them.
`create_access_token` is kept for operators and tests.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from app.config import get_settings
from app.schemas.auth import RequestUser, Role

settings = get_settings()


def create_access_token(
    user_id: UUID,
    role: Role,
    venue_id: Optional[UUID] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: The user's UUID
        role: Role claim checked by the route guards
        venue_id: Venue the user manages or works at, if any
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.jwt_access_token_expire_minutes)

    to_encode = {
        "sub": str(user_id),
        "role": Role(role).value,
        "venue_id": str(venue_id) if venue_id else None,
        "exp": expire,
        "type": "access",
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> Optional[RequestUser]:
    """
    Decode and validate a JWT access token.

    Args:
        token: The JWT token string

    Returns:
        The caller if the token is valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    user_id_str = payload.get("sub")
    role = str(payload.get("role") or "").lower()
    # Older tokens used camelCase
    venue_id = payload.get("venue_id") or payload.get("venueId")

    if user_id_str is None or payload.get("type") != "access":
        return None

    try:
        return RequestUser(id=UUID(user_id_str), role=Role(role), venue_id=venue_id)
    except ValueError:
        return None
