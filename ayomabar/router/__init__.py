from .auth import router as auth_router
from .discord import router as discord_router
from .game import router as game_router
from .room import router as room_router
from .user import router as user_router

__all__ = [
    "auth_router",
    "discord_router",
    "game_router",
    "room_router",
    "user_router",
]
