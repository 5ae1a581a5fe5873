from typing import Annotated

from ayomabar.database import User
from ayomabar.models.error import ErrorType, RequestError
from ayomabar.service.auth import verify_access_token

from .database import Database

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import col, select

bearer_scheme = HTTPBearer(auto_error=False, description="Access token from /auth/login")


async def get_current_user(
    db: Database,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
) -> User:
    """Resolve the bearer access token to a live user.

    Raises:
        RequestError: 401 when the header is missing, the token is invalid
            or expired, or its user no longer exists.
    """
    if credentials is None:
        raise RequestError(ErrorType.NOT_AUTHENTICATED, headers={"WWW-Authenticate": "Bearer"})
    payload = verify_access_token(credentials.credentials)
    if payload is None or not str(payload.get("sub", "")).isdigit():
        raise RequestError(ErrorType.INVALID_TOKEN, headers={"WWW-Authenticate": "Bearer"})

    user = (
        await db.exec(select(User).where(User.id == int(payload["sub"]), col(User.deleted_at).is_(None)))
    ).first()
    if user is None:
        raise RequestError(ErrorType.INVALID_TOKEN, headers={"WWW-Authenticate": "Bearer"})
    return user


async def get_admin_user(user: Annotated[User, Security(get_current_user)]) -> User:
    if not user.is_admin:
        raise RequestError(ErrorType.ADMIN_REQUIRED)
    return user


CurrentUser = Annotated[User, Security(get_current_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]
