"""Discord interactions surface.

Turns one verified interaction payload into a lifecycle call and an
interaction response. Lifecycle changes are committed before the response
is built; anything that touches a Discord message beyond the response
itself is scheduled as a background task through ``LobbySync``.
"""

from datetime import datetime
from enum import IntEnum
from typing import Any

from ayomabar.config import settings
from ayomabar.database import User
from ayomabar.helpers import minutes_from_now, utcnow
from ayomabar.log import discord_logger
from ayomabar.models.error import RequestError
from ayomabar.models.events import (
    MembershipChange,
    RoomBumpedEvent,
    RoomCreatedEvent,
    RoomMembershipChangedEvent,
    UserRegisteredEvent,
)
from ayomabar.models.room import CreateRoomReq, RequestStatus, RoomType, TypePlay
from ayomabar.service import game as game_service, room as room_service
from ayomabar.service.event_hub import EventHub
from ayomabar.service.lobby_sync import LobbySync
from ayomabar.service.user import DiscordIdentity, find_or_create_by_discord

from .catalog import GAMES_PER_PAGE, game_embed, games_embed
from .commands import command_options
from .lobby import (
    EPHEMERAL,
    ButtonAction,
    Color,
    bump_ack_embed,
    error_embed,
    join_result_embed,
    notice_embed,
    parse_custom_id,
    render_lobby,
    room_info_embed,
)

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from fastapi import BackgroundTasks
from pydantic import ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

logger = discord_logger


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3


class ResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE = 4
    DEFERRED_CHANNEL_MESSAGE = 5
    UPDATE_MESSAGE = 7


def verify_signature(public_key: str, signature: str, timestamp: str, body: bytes) -> bool:
    """Check the Ed25519 signature Discord puts on every interaction request."""
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key))
        key.verify(bytes.fromhex(signature), timestamp.encode() + body)
    except (InvalidSignature, ValueError):
        return False
    return True


def respond(embed: dict[str, Any], *, ephemeral: bool = True) -> dict[str, Any]:
    data: dict[str, Any] = {"embeds": [embed]}
    if ephemeral:
        data["flags"] = EPHEMERAL
    return {"type": ResponseType.CHANNEL_MESSAGE, "data": data}


def discord_identity(interaction: dict[str, Any]) -> DiscordIdentity:
    # guild interactions carry the user under member, DMs at the top level
    user = (interaction.get("member") or {}).get("user") or interaction["user"]
    return DiscordIdentity(
        discord_id=str(user["id"]),
        username=user.get("global_name") or user["username"],
        discriminator=user.get("discriminator") or "0",
        avatar=user.get("avatar"),
    )


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


class InteractionHandler:
    """Handles one interaction.

    Args:
        db: Database session for lifecycle calls.
        sync: Lobby message writer used by background tasks.
        hub: Event hub notified after each committed change.
        background: Tasks run after the interaction response has been sent.
        now: Clock override for rendering and default expiry.
    """

    def __init__(
        self,
        db: AsyncSession,
        sync: LobbySync,
        hub: EventHub,
        background: BackgroundTasks,
        now: datetime | None = None,
    ):
        self.db = db
        self.sync = sync
        self.hub = hub
        self.background = background
        self.now = now or utcnow()

    async def handle(self, interaction: dict[str, Any]) -> dict[str, Any]:
        kind = interaction.get("type")
        if kind == InteractionType.PING:
            return {"type": ResponseType.PONG}
        try:
            if kind == InteractionType.APPLICATION_COMMAND:
                return await self.on_command(interaction)
            if kind == InteractionType.MESSAGE_COMPONENT:
                return await self.on_component(interaction)
        except RequestError as e:
            logger.info(f"Interaction refused ({e.msg_key}): {e.formatted_message}")
            return respond(error_embed(e))
        return respond(notice_embed("❓ Unsupported Interaction", "This interaction is not supported.", Color.ERROR))

    async def actor(self, interaction: dict[str, Any]) -> User:
        user, created = await find_or_create_by_discord(self.db, discord_identity(interaction))
        if created:
            self.hub.emit(UserRegisteredEvent(user_id=user.id, username=user.username, source="discord"))
        return user

    # slash commands

    async def on_command(self, interaction: dict[str, Any]) -> dict[str, Any]:
        data = interaction.get("data") or {}
        options = command_options(data)
        match data.get("name"):
            case "room":
                return await self.create_room(interaction, options)
            case "games":
                return await self.list_games(options)
            case "game":
                return await self.show_game(options)
        return respond(notice_embed("❓ Unknown Command", f"/{data.get('name')} is not a known command.", Color.ERROR))

    async def create_room(self, interaction: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
        user = await self.actor(interaction)
        try:
            scheduled_at = datetime.fromisoformat(options["scheduled_at"]) if options.get("scheduled_at") else None
            data = CreateRoomReq(
                game_id=options.get("game_id") or 0,
                room_code=options.get("room_code"),
                max_slot=options.get("max_players") or 4,
                min_slot=options.get("min_players") or 1,
                type_play=options.get("type_play") or TypePlay.CASUAL,
                room_type=options.get("room_type") or RoomType.PUBLIC,
                scheduled_at=scheduled_at,
            )
        except ValidationError as e:
            return respond(notice_embed("❌ Invalid Room Options", _validation_message(e), Color.ERROR))
        except ValueError:
            return respond(
                notice_embed(
                    "❌ Invalid Date",
                    "scheduled_at must be an ISO date, for example 2025-01-31T20:00:00Z",
                    Color.ERROR,
                )
            )

        room = await room_service.create_room(
            self.db,
            user.id,
            data,
            default_expires_at=minutes_from_now(settings.room_lobby_ttl_minutes, self.now),
        )
        self.hub.emit(RoomCreatedEvent(room_id=room.id, user_id=user.id, source="discord"))
        self.background.add_task(self.sync.publish_original, room.id, interaction["token"])
        logger.info(f"Room {room.id} created from Discord by {user.username}")
        return {"type": ResponseType.DEFERRED_CHANNEL_MESSAGE}

    async def list_games(self, options: dict[str, Any]) -> dict[str, Any]:
        query = game_service.GameListQuery(
            page=max(int(options.get("page") or 1), 1),
            limit=GAMES_PER_PAGE,
            search=options.get("search"),
            genre=options.get("genre"),
            platform=options.get("platform"),
            sort_by="title",
            sort_order="asc",
        )
        result = await game_service.list_games(self.db, query)
        embed = games_embed(
            result["data"],
            result["meta"],
            self.now,
            search=query.search,
            genre=query.genre,
            platform=query.platform,
        )
        return respond(embed, ephemeral=False)

    async def show_game(self, options: dict[str, Any]) -> dict[str, Any]:
        game = await game_service.get_active_game(self.db, int(options.get("id") or 0))
        resp = await game_service.to_resp(self.db, game, with_ranks=True)
        return respond(game_embed(resp, self.now), ephemeral=False)

    # buttons

    async def on_component(self, interaction: dict[str, Any]) -> dict[str, Any]:
        parsed = parse_custom_id((interaction.get("data") or {}).get("custom_id", ""))
        if parsed is None:
            return respond(notice_embed("❓ Unknown Button", "This button is no longer supported.", Color.ERROR))
        action, room_id = parsed
        user = await self.actor(interaction)
        match action:
            case ButtonAction.JOIN:
                return await self.join(interaction, user, room_id)
            case ButtonAction.INFO:
                return await self.info(room_id)
            case ButtonAction.BUMP:
                return await self.bump(interaction, user, room_id)
        return respond(notice_embed("❓ Unknown Button", "This button is no longer supported.", Color.ERROR))

    async def join(self, interaction: dict[str, Any], user: User, room_id: int) -> dict[str, Any]:
        result = await room_service.join_room(self.db, user.id, room_id)
        status = RequestStatus(result.request.status)
        change = MembershipChange.JOINED if status == RequestStatus.ACCEPTED else MembershipChange.REQUESTED
        self.hub.emit(RoomMembershipChangedEvent(room_id=room_id, user_id=user.id, change=change, source="discord"))

        snapshot = await self.sync.snapshot(room_id)
        if snapshot is None:
            return respond(notice_embed("✅ Done", result.message))
        self.background.add_task(
            self.sync.followup,
            interaction["token"],
            {
                "embeds": [
                    join_result_embed(
                        room_id, snapshot.game_title, status, snapshot.participant_count, snapshot.room.max_slot
                    )
                ],
                "flags": EPHEMERAL,
            },
        )
        # the pressed message is the lobby card, so update it in place
        return {"type": ResponseType.UPDATE_MESSAGE, "data": render_lobby(snapshot, self.now)}

    async def info(self, room_id: int) -> dict[str, Any]:
        room = await room_service.get_room(self.db, room_id)
        return respond(room_info_embed(room, self.now))

    async def bump(self, interaction: dict[str, Any], user: User, room_id: int) -> dict[str, Any]:
        before = await room_service.get_active_room(self.db, room_id)
        previous = None
        if before.discord_channel_id and before.discord_message_id:
            previous = (before.discord_channel_id, before.discord_message_id)
        elif interaction.get("message"):
            previous = (str(interaction.get("channel_id")), str(interaction["message"]["id"]))

        room = await room_service.bump_room(self.db, user.id, room_id, self.now)
        self.hub.emit(RoomBumpedEvent(room_id=room_id, user_id=user.id, source="discord"))
        self.background.add_task(self.sync.bump, room_id, interaction["token"], previous)
        return respond(bump_ack_embed(room))
