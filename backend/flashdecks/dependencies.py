from uuid import UUID
import jwt
from jwt import InvalidTokenError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.config import settings
from flashdecks.db.session import get_db
from flashdecks.db.repositories.user_repo import get_user_by_id
from flashdecks.models.user import User

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict | None:
    """Verify a bearer token issued by the auth service. Returns the claims or
    None if the signature or expiry is invalid."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except (InvalidTokenError, ValueError):
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _user_from_token(db: AsyncSession, token: str) -> User:
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        raise _unauthorized("Invalid or expired token")
    try:
        uid = UUID(str(payload["sub"]))
    except ValueError:
        raise _unauthorized("Invalid token")
    user = await get_user_by_id(db, uid)
    if not user:
        raise _unauthorized("User not found")
    return user


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return await _user_from_token(db, credentials.credentials)


async def get_optional_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User | None:
    """Like get_current_user, but anonymous requests get None (public decks)."""
    if not credentials or not credentials.credentials:
        return None
    return await _user_from_token(db, credentials.credentials)
