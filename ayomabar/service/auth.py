from __future__ import annotations

from datetime import timedelta
import secrets

from ayomabar.config import settings
from ayomabar.database import User
from ayomabar.helpers import utcnow
from ayomabar.log import log

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlmodel import col, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

__all__ = [
    "TokenResponse",
    "authenticate_user",
    "create_access_token",
    "create_refresh_token",
    "get_password_hash",
    "issue_tokens",
    "verify_access_token",
    "verify_password",
    "verify_refresh_token",
]

logger = log("Auth")


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode(), password_hash.encode())
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def _claims(user: User) -> dict:
    return {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "roles": user.roles,
    }


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    to_encode = _claims(user)
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "jti": secrets.token_hex(16), "typ": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_refresh_token(user: User) -> str:
    to_encode = _claims(user)
    expire = utcnow() + timedelta(minutes=settings.refresh_token_expire_minutes)
    to_encode.update({"exp": expire, "jti": secrets.token_hex(16), "typ": "refresh"})
    return jwt.encode(to_encode, settings.refresh_secret_key, algorithm=settings.algorithm)


def issue_tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user),
        refresh_token=create_refresh_token(user),
        expires_in=settings.access_token_expire_minutes * 60,
    )


def _decode(token: str, key: str, typ: str) -> dict | None:
    try:
        payload = jwt.decode(token, key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("typ") != typ:
        return None
    return payload


def verify_access_token(token: str) -> dict | None:
    return _decode(token, settings.secret_key, "access")


def verify_refresh_token(token: str) -> dict | None:
    return _decode(token, settings.refresh_secret_key, "refresh")


async def authenticate_user(db: AsyncSession, login: str, password: str) -> User | None:
    """Authenticate a user by email or username.

    Args:
        db: Database session.
        login: Email address or username.
        password: Plain text password.

    Returns:
        The user when the credentials match, otherwise None.
    """
    user = (
        await db.exec(
            select(User).where(
                or_(User.email == login, User.username == login),
                col(User.deleted_at).is_(None),
            )
        )
    ).first()
    if user is None or not verify_password(password, user.password):
        return None
    return user
