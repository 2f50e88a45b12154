"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from irl.auth.jwt import verify_token
from irl.auth.service import get_user_by_id
from irl.database import get_session
from irl.db.models import User

_bearer = HTTPBearer(auto_error=False)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer JWT, return the User.

    Raises 401 when the header is missing, the token is invalid, or the
    user no longer exists.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated", headers=_UNAUTHORIZED_HEADERS)
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e), headers=_UNAUTHORIZED_HEADERS) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None or user.deleted:
        raise HTTPException(status_code=401, detail="User not found", headers=_UNAUTHORIZED_HEADERS)
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user, plus a 403 for non-admins."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
