"""Game catalog database models.

Games are reference data; rooms point at them by id. Each game can carry a
rank ladder whose entries bound the skill range a room accepts.
"""

from datetime import datetime

from ayomabar.models.model import UTCBaseModel

from ._base import created_at_field, nullable_datetime_field, updated_at_field

from sqlmodel import Column, Field, ForeignKey, Integer, SQLModel, String


class Game(SQLModel, table=True):
    __tablename__: str = "games"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_column=Column(String(200), nullable=False, index=True))
    genre: str | None = Field(default=None, max_length=100)
    platform: str | None = Field(default=None, max_length=100)
    release_date: datetime | None = nullable_datetime_field()
    created_at: datetime = created_at_field()
    updated_at: datetime = updated_at_field()
    deleted_at: datetime | None = nullable_datetime_field(index=True)


class GameRank(SQLModel, table=True):
    """One rung of a game's rank ladder. Lower tier means lower rank."""

    __tablename__: str = "game_ranks"

    id: int | None = Field(default=None, primary_key=True)
    game_id: int = Field(sa_column=Column(Integer, ForeignKey("games.id"), nullable=False, index=True))
    name: str = Field(max_length=100)
    tier: int = Field(default=0)
    created_at: datetime = created_at_field()


class GameRankResp(UTCBaseModel):
    id: int
    name: str
    tier: int


class GameBrief(UTCBaseModel):
    id: int
    title: str
    genre: str | None = None
    platform: str | None = None


class GameResp(GameBrief):
    release_date: datetime | None = None
    created_at: datetime
    updated_at: datetime
    ranks: list[GameRankResp] | None = None
