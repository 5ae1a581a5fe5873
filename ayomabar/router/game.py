"""Game catalog endpoints. Reads are public; writes need an admin role."""

from typing import Annotated

from ayomabar.dependencies.database import Database
from ayomabar.dependencies.user import AdminUser
from ayomabar.models.model import envelope
from ayomabar.service import game as game_service
from ayomabar.service.game import CreateGameReq, GameListQuery, UpdateGameReq

from fastapi import APIRouter, Path, Query, status

router = APIRouter(prefix="/game", tags=["Games"])

GameId = Annotated[int, Path(description="Game ID", gt=0)]


@router.get("", name="List games", description="Paginated game catalog with search and filters.")
async def list_games(db: Database, query: Annotated[GameListQuery, Query()]):
    return envelope(await game_service.list_games(db, query), "Games retrieved successfully")


@router.get("/{game_id}", name="Get game", description="A game with its rank ladder.")
async def get_game(db: Database, game_id: GameId):
    game = await game_service.get_active_game(db, game_id)
    return envelope(await game_service.to_resp(db, game, with_ranks=True), "Game retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED, name="Create game", description="Admin only.")
async def create_game(db: Database, admin: AdminUser, body: CreateGameReq):
    game = await game_service.create_game(db, body)
    return envelope(
        await game_service.to_resp(db, game, with_ranks=True),
        "Game created successfully",
        status.HTTP_201_CREATED,
    )


@router.put("/{game_id}", name="Update game", description="Admin only. Ranks are matched by name and never removed.")
async def update_game(db: Database, admin: AdminUser, game_id: GameId, body: UpdateGameReq):
    game = await game_service.update_game(db, game_id, body)
    return envelope(await game_service.to_resp(db, game, with_ranks=True), "Game updated successfully")


@router.delete("/{game_id}", name="Delete game", description="Admin only. Soft delete.")
async def delete_game(db: Database, admin: AdminUser, game_id: GameId):
    await game_service.delete_game(db, game_id)
    return envelope({"message": "Game deleted successfully"}, "Game deleted successfully")
