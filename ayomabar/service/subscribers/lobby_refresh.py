"""Redraws a room's Discord lobby card after changes made outside Discord."""

from ayomabar.discord.client import get_discord_client
from ayomabar.models.events import RoomMembershipChangedEvent, RoomUpdatedEvent
from ayomabar.service.event_hub import listen
from ayomabar.service.lobby_sync import LobbySync


@listen
async def refresh_lobby_on_membership_change(event: RoomMembershipChangedEvent) -> None:
    # button presses already answer with the redrawn card
    if event.source == "discord":
        return
    await LobbySync(get_discord_client()).refresh(event.room_id)


@listen
async def refresh_lobby_on_room_update(event: RoomUpdatedEvent) -> None:
    await LobbySync(get_discord_client()).refresh(event.room_id)
