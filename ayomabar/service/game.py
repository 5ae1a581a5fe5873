"""Game catalog operations."""

from datetime import datetime
from typing import Literal

from ayomabar.database import Game, GameRank, GameRankResp, GameResp
from ayomabar.helpers import page_meta, utcnow
from ayomabar.log import log
from ayomabar.models.error import ErrorType, RequestError

from pydantic import BaseModel, Field
from sqlmodel import asc, col, desc, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

logger = log("Game")


class GameRankReq(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    tier: int = Field(ge=0)


class CreateGameReq(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    genre: str | None = Field(default=None, max_length=100)
    platform: str | None = Field(default=None, max_length=100)
    release_date: datetime | None = None
    ranks: list[GameRankReq] = []


class UpdateGameReq(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    genre: str | None = Field(default=None, max_length=100)
    platform: str | None = Field(default=None, max_length=100)
    release_date: datetime | None = None
    ranks: list[GameRankReq] | None = None


class GameListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: str | None = None
    genre: str | None = None
    platform: str | None = None
    sort_by: Literal["title", "created_at", "updated_at", "release_date"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


async def get_active_game(db: AsyncSession, game_id: int) -> Game:
    game = (await db.exec(select(Game).where(Game.id == game_id, col(Game.deleted_at).is_(None)))).first()
    if game is None:
        raise RequestError(ErrorType.GAME_NOT_FOUND)
    return game


async def get_ranks(db: AsyncSession, game_id: int) -> list[GameRank]:
    return list(
        (await db.exec(select(GameRank).where(GameRank.game_id == game_id).order_by(col(GameRank.tier)))).all()
    )


async def to_resp(db: AsyncSession, game: Game, with_ranks: bool = False) -> GameResp:
    resp = GameResp.model_validate(game)
    if with_ranks:
        resp.ranks = [GameRankResp.model_validate(rank) for rank in await get_ranks(db, game.id)]
    return resp


async def list_games(db: AsyncSession, query: GameListQuery) -> dict:
    conditions = [col(Game.deleted_at).is_(None)]
    if query.search and query.search.strip():
        conditions.append(func.lower(Game.title).contains(query.search.strip().lower()))
    if query.genre and query.genre.strip():
        conditions.append(func.lower(col(Game.genre)).contains(query.genre.strip().lower()))
    if query.platform and query.platform.strip():
        conditions.append(func.lower(col(Game.platform)).contains(query.platform.strip().lower()))

    order = asc if query.sort_order == "asc" else desc
    games = (
        await db.exec(
            select(Game)
            .where(*conditions)
            .order_by(order(getattr(Game, query.sort_by)), col(Game.id))
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
    ).all()
    total = (await db.exec(select(func.count()).select_from(Game).where(*conditions))).one()

    return {
        "data": [GameResp.model_validate(game) for game in games],
        "meta": page_meta(total, query.page, query.limit),
    }


async def _upsert_ranks(db: AsyncSession, game_id: int, ranks: list[GameRankReq]) -> None:
    # rooms may point at existing rungs, so rungs are matched by name and never removed here
    existing = {rank.name: rank for rank in await get_ranks(db, game_id)}
    for rank in ranks:
        row = existing.get(rank.name)
        if row is None:
            db.add(GameRank(game_id=game_id, name=rank.name, tier=rank.tier))
        else:
            row.tier = rank.tier
            db.add(row)


async def create_game(db: AsyncSession, data: CreateGameReq) -> Game:
    game = Game(**data.model_dump(exclude={"ranks"}))
    db.add(game)
    await db.flush()
    await _upsert_ranks(db, game.id, data.ranks)
    await db.commit()
    await db.refresh(game)
    logger.info(f"Created game {game.title} ({game.id})")
    return game


async def update_game(db: AsyncSession, game_id: int, data: UpdateGameReq) -> Game:
    game = await get_active_game(db, game_id)
    changes = data.model_dump(exclude_unset=True, exclude={"ranks"})
    for key, value in changes.items():
        setattr(game, key, value)
    if data.ranks is not None:
        await _upsert_ranks(db, game_id, data.ranks)
    game.updated_at = utcnow()
    db.add(game)
    await db.commit()
    await db.refresh(game)
    return game


async def delete_game(db: AsyncSession, game_id: int) -> None:
    game = await get_active_game(db, game_id)
    game.deleted_at = utcnow()
    db.add(game)
    await db.commit()
    logger.info(f"Deleted game {game.title} ({game.id})")
