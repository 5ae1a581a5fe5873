"""Keeps a room's Discord lobby message in step with the ledger.

Every method here runs after the lifecycle change it reflects has been
committed, usually as a background task. Transport failures are logged and
swallowed; they never touch lifecycle state.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime

from ayomabar.database import Game, Room, User
from ayomabar.dependencies.database import with_db
from ayomabar.discord.client import DiscordClient
from ayomabar.discord.lobby import LobbySnapshot, render_lobby
from ayomabar.helpers import utcnow
from ayomabar.log import discord_logger

from .room import participant_count, record_presentation

from httpx import HTTPError
from sqlmodel.ext.asyncio.session import AsyncSession

logger = discord_logger

type SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class LobbySync:
    def __init__(self, client: DiscordClient, session_factory: SessionFactory = with_db):
        self.client = client
        self.session_factory = session_factory

    async def snapshot(self, room_id: int) -> LobbySnapshot | None:
        """Read what the lobby card should show right now, or None for a deleted room."""
        async with self.session_factory() as db:
            room = await db.get(Room, room_id)
            if room is None or room.deleted_at is not None:
                return None
            game = await db.get(Game, room.game_id)
            host = await db.get(User, room.user_id)
            return LobbySnapshot(
                room=room,
                game_title=game.title if game else "Unknown Game",
                participant_count=await participant_count(db, room_id),
                host_name=host.username if host else "Unknown",
            )

    async def _remember(self, room_id: int, message: dict | None) -> None:
        if not message or "id" not in message:
            return
        async with self.session_factory() as db:
            await record_presentation(db, room_id, str(message["channel_id"]), str(message["id"]))

    async def publish_original(self, room_id: int, interaction_token: str, now: datetime | None = None) -> None:
        """Fill a deferred slash-command response with the lobby card and record where it lives."""
        snapshot = await self.snapshot(room_id)
        if snapshot is None:
            return
        try:
            message = await self.client.edit_original_response(
                interaction_token, render_lobby(snapshot, now or utcnow())
            )
        except HTTPError as e:
            logger.warning(f"Failed to publish lobby for room {room_id}: {e}")
            return
        await self._remember(room_id, message)

    async def followup(self, interaction_token: str, payload: dict) -> None:
        try:
            await self.client.create_followup(interaction_token, payload)
        except HTTPError as e:
            logger.warning(f"Failed to send follow-up message: {e}")

    async def refresh(self, room_id: int, now: datetime | None = None) -> bool:
        """Re-render the recorded lobby message with the bot token.

        Returns:
            Whether an edit was sent. Nothing is sent without a bot token or
            without a recorded message.
        """
        if not self.client.has_bot_token:
            return False
        snapshot = await self.snapshot(room_id)
        if snapshot is None:
            return False
        room = snapshot.room
        if not room.discord_channel_id or not room.discord_message_id:
            return False
        try:
            await self.client.edit_message(
                room.discord_channel_id,
                room.discord_message_id,
                render_lobby(snapshot, now or utcnow()),
            )
        except HTTPError as e:
            logger.warning(f"Failed to refresh lobby message {room.discord_message_id} of room {room_id}: {e}")
            return False
        return True

    async def bump(
        self,
        room_id: int,
        interaction_token: str,
        previous: tuple[str, str] | None,
        now: datetime | None = None,
    ) -> None:
        """Re-post a bumped room at the bottom of the channel.

        The previous message is deleted first. If that fails the new card is
        still posted, so the channel may briefly show two cards.

        Args:
            room_id: The bumped room.
            interaction_token: Token of the bump button interaction.
            previous: ``(channel_id, message_id)`` of the old lobby message.
            now: Render time.
        """
        if previous is not None and self.client.has_bot_token:
            try:
                await self.client.delete_message(*previous)
            except HTTPError as e:
                logger.warning(f"Could not delete old lobby message {previous[1]} of room {room_id}: {e}")

        snapshot = await self.snapshot(room_id)
        if snapshot is None:
            return
        try:
            message = await self.client.create_followup(
                interaction_token, render_lobby(snapshot, now or utcnow(), bumped=True)
            )
        except HTTPError as e:
            logger.warning(f"Failed to post bumped lobby for room {room_id}: {e}")
            return
        await self._remember(room_id, message)
        logger.info(f"Room {room_id} re-posted after bump")
