from __future__ import annotations

from .game import Game, GameBrief, GameRank, GameRankResp, GameResp
from .room import PlayerReport, PlayerReportResp, Room, RoomRequest, RoomRequestResp, RoomResp
from .user import PublicUserResp, User, UserBrief, UserResp, UserSocialite

__all__ = [
    "Game",
    "GameBrief",
    "GameRank",
    "GameRankResp",
    "GameResp",
    "PlayerReport",
    "PlayerReportResp",
    "PublicUserResp",
    "Room",
    "RoomRequest",
    "RoomRequestResp",
    "RoomResp",
    "User",
    "UserBrief",
    "UserResp",
    "UserSocialite",
]
