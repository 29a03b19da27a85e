"""
Authentication dependencies for FastAPI.
"""

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.auth.jwt import decode_access_token
from app.config import get_settings
from app.schemas.auth import RequestUser, Role

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

STAFF_ROLES = (Role.STAFF, Role.VENUE, Role.ADMIN)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> RequestUser:
    """
    Get the current authenticated caller.

    Raises 401 if not authenticated or token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = decode_access_token(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*roles: Role):
    """Dependency factory: the caller must hold one of `roles`."""

    async def dependency(user: RequestUser = Depends(get_current_user)) -> RequestUser:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return dependency


def caller_venue_id(user: RequestUser):
    """Venue a non-admin caller is bound to; 403 if the token carries none."""
    if user.venue_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing venue_id",
        )
    return user.venue_id


async def verify_sync_access(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_cron_secret: Optional[str] = Header(None, alias="X-Cron-Secret"),
    token: Optional[str] = Query(None),
) -> Optional[RequestUser]:
    """
    Verify access to the status sweep trigger via either:
    1. A bearer token of staff, venue or admin role
    2. The shared cron secret (X-Cron-Secret header or `token` query)

    Returns the caller if authenticated via JWT, None if via cron secret.
    """
    # Method 1: staff token takes precedence when present
    if credentials is not None:
        user = decode_access_token(credentials.credentials)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token",
            )
        if user.role not in STAFF_ROLES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    # Method 2: shared secret for external schedulers
    expected = get_settings().cron_secret
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="CRON_SECRET is not configured",
        )

    provided = x_cron_secret or token or ""
    if not provided or not secrets.compare_digest(provided, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid cron secret",
        )
    return None
