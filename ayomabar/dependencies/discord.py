from typing import Annotated

from ayomabar.discord.client import DiscordClient, get_discord_client
from ayomabar.service.lobby_sync import LobbySync

from fastapi import Depends


def get_lobby_sync(client: Annotated[DiscordClient, Depends(get_discord_client)]) -> LobbySync:
    return LobbySync(client)


Lobby = Annotated[LobbySync, Depends(get_lobby_sync)]
