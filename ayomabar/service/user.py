"""User directory operations.

Covers REST registration, profile edits and the Discord identity link used
by the chat-interaction surface to resolve an actor.
"""

import random
import re

from ayomabar.database import User, UserSocialite
from ayomabar.log import log
from ayomabar.models.error import ErrorType, RequestError

from .auth import get_password_hash

from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

logger = log("User")

DISCORD_SOCIALITE = "discord"


class RegisterReq(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    username: str = Field(min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)


class UpdateProfileReq(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    avatar: str | None = Field(default=None, max_length=500)
    bio: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=100)
    playstyle: str | None = Field(default=None, max_length=100)


class DiscordIdentity(BaseModel):
    discord_id: str
    username: str
    discriminator: str = "0"
    avatar: str | None = None


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = (await db.exec(select(User).where(User.id == user_id, col(User.deleted_at).is_(None)))).first()
    if user is None:
        raise RequestError(ErrorType.USER_NOT_FOUND)
    return user


async def register_user(db: AsyncSession, data: RegisterReq) -> User:
    if (await db.exec(select(User.id).where(User.email == data.email))).first() is not None:
        raise RequestError(ErrorType.EMAIL_TAKEN)
    if (await db.exec(select(User.id).where(User.username == data.username))).first() is not None:
        raise RequestError(ErrorType.USERNAME_TAKEN)

    user = User(
        name=data.name,
        username=data.username,
        email=str(data.email),
        password=get_password_hash(data.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Registered user {user.username} ({user.id})")
    return user


async def update_profile(db: AsyncSession, user: User, data: UpdateProfileReq) -> User:
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def generate_discord_username(username: str, discriminator: str) -> str:
    """Derive a local username from a Discord name.

    Lowercase alphanumerics only, at most 20 characters, then the legacy
    discriminator or a random 4-digit suffix for accounts without one.
    """
    clean = re.sub(r"[^a-z0-9]", "", username.lower())[:20] or "player"
    if discriminator and discriminator != "0":
        return f"{clean}_{discriminator}"
    return f"{clean}_{random.randint(0, 9999):04d}"  # noqa: S311


def discord_email(discord_id: str) -> str:
    return f"discord_{discord_id}@ayomabar.local"


async def _find_by_discord(db: AsyncSession, discord_id: str) -> User | None:
    return (
        await db.exec(
            select(User)
            .join(UserSocialite, col(UserSocialite.user_id) == col(User.id))
            .where(
                UserSocialite.socialite_name == DISCORD_SOCIALITE,
                UserSocialite.socialite_id == discord_id,
            )
        )
    ).first()


async def find_or_create_by_discord(db: AsyncSession, identity: DiscordIdentity) -> tuple[User, bool]:
    """Resolve the local account linked to a Discord user, creating it on first contact.

    The user row and its socialite link are inserted in one transaction. A
    concurrent first contact for the same Discord id loses on the unique
    identity key and re-reads the winner's row.

    Args:
        db: Database session.
        identity: The Discord user id, name and discriminator.

    Returns:
        The user and whether it was created by this call.
    """
    user = await _find_by_discord(db, identity.discord_id)
    if user is not None:
        return user, False

    for _ in range(3):
        username = generate_discord_username(identity.username, identity.discriminator)
        user = User(
            name=identity.username,
            username=username,
            email=discord_email(identity.discord_id),
            avatar=identity.avatar,
        )
        db.add(user)
        try:
            await db.flush()
            db.add(
                UserSocialite(
                    user_id=user.id,  # pyright: ignore[reportArgumentType]
                    socialite_name=DISCORD_SOCIALITE,
                    socialite_id=identity.discord_id,
                )
            )
            await db.commit()
        except IntegrityError:
            await db.rollback()
            existing = await _find_by_discord(db, identity.discord_id)
            if existing is not None:
                return existing, False
            # username suffix collision, try another one
            continue
        await db.refresh(user)
        logger.info(f"Created user {user.username} ({user.id}) for Discord user {identity.discord_id}")
        return user, True

    raise RequestError(ErrorType.USERNAME_TAKEN)
