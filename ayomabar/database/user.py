"""User directory database models."""

from datetime import datetime

from ayomabar.models.model import UTCBaseModel

from ._base import created_at_field, nullable_datetime_field, updated_at_field

from sqlmodel import JSON, Column, Field, ForeignKey, Integer, SQLModel, String, Text, UniqueConstraint


class User(SQLModel, table=True):
    __tablename__: str = "users"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    username: str = Field(sa_column=Column(String(50), nullable=False, unique=True, index=True))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True, index=True))
    password: str | None = Field(default=None, max_length=255, exclude=True)
    avatar: str | None = Field(default=None, max_length=500)
    bio: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    location: str | None = Field(default=None, max_length=100)
    playstyle: str | None = Field(default=None, max_length=100)
    roles: list[str] = Field(sa_column=Column(JSON, nullable=False), default_factory=lambda: ["user"])
    created_at: datetime = created_at_field()
    updated_at: datetime = updated_at_field()
    deleted_at: datetime | None = nullable_datetime_field()

    @property
    def is_admin(self) -> bool:
        return bool({"admin", "superadmin"} & set(self.roles or []))


class UserSocialite(SQLModel, table=True):
    """Link between a local account and an external identity (e.g. a Discord user id)."""

    __tablename__: str = "user_socialites"
    __table_args__ = (UniqueConstraint("socialite_name", "socialite_id", name="uq_user_socialites_identity"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id"), nullable=False, index=True))
    socialite_name: str = Field(max_length=50)
    socialite_id: str = Field(max_length=100)
    created_at: datetime = created_at_field()


class UserBrief(UTCBaseModel):
    id: int
    name: str
    username: str
    avatar: str | None = None


class UserResp(UserBrief):
    email: str
    bio: str | None = None
    location: str | None = None
    playstyle: str | None = None
    roles: list[str] = []
    created_at: datetime
    updated_at: datetime


class PublicUserResp(UserBrief):
    bio: str | None = None
    playstyle: str | None = None
    created_at: datetime
