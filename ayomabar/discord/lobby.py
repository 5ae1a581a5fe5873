"""What a room looks like on Discord.

Pure functions from lifecycle state to Discord message payloads (embeds and
button rows). Nothing here talks to Discord or the database, so every
decision about labels, colors and disabled controls is testable in
isolation. Expiry is always recomputed from the ``now`` passed in.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from ayomabar.database import Room, RoomResp
from ayomabar.helpers import discord_timestamp
from ayomabar.models.error import ErrorKind, RequestError
from ayomabar.models.room import RequestStatus, RoomStatus, check_room_expiration

EPHEMERAL = 1 << 6


class Color(IntEnum):
    INFO = 0x5865F2
    SUCCESS = 0x57F287
    WARNING = 0xFEE75C
    DANGER = 0xED4245
    ERROR = 0xFF6B6B
    CATALOG = 0x4ECDC4


class ButtonStyle(IntEnum):
    PRIMARY = 1
    SECONDARY = 2
    SUCCESS = 3
    DANGER = 4


class JoinControlState(Enum):
    """The three faces of the join button. Each value is (label, style, emoji)."""

    JOINABLE = ("Join Room", ButtonStyle.SUCCESS, "🎮")
    FULL = ("Room Full", ButtonStyle.SECONDARY, "🎮")
    EXPIRED = ("Expired - Cannot Join", ButtonStyle.DANGER, "🔒")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def style(self) -> ButtonStyle:
        return self.value[1]

    @property
    def emoji(self) -> str:
        return self.value[2]

    @property
    def disabled(self) -> bool:
        return self is not JoinControlState.JOINABLE


def resolve_join_control(is_full: bool, is_expired: bool) -> JoinControlState:
    if is_expired:
        return JoinControlState.EXPIRED
    if is_full:
        return JoinControlState.FULL
    return JoinControlState.JOINABLE


class ButtonAction(Enum):
    JOIN = "join_room"
    INFO = "room_info"
    BUMP = "bump_room"


def custom_id(action: ButtonAction, room_id: int) -> str:
    return f"{action.value}_{room_id}"


def parse_custom_id(value: str) -> tuple[ButtonAction, int] | None:
    prefix, _, raw_id = value.rpartition("_")
    if not raw_id.isdigit():
        return None
    try:
        return ButtonAction(prefix), int(raw_id)
    except ValueError:
        return None


def _button(action: ButtonAction, room_id: int, label: str, style: ButtonStyle, emoji: str, disabled: bool = False):
    return {
        "type": 2,
        "custom_id": custom_id(action, room_id),
        "label": label,
        "style": int(style),
        "emoji": {"name": emoji},
        "disabled": disabled,
    }


def room_buttons(room_id: int, is_full: bool, is_expired: bool) -> dict[str, Any]:
    """Build the action row shown under a lobby card.

    Join is disabled when the room is full or expired, bump only when it is
    expired, and info is always available.
    """
    join = resolve_join_control(is_full, is_expired)
    return {
        "type": 1,
        "components": [
            _button(ButtonAction.JOIN, room_id, join.label, join.style, join.emoji, join.disabled),
            _button(ButtonAction.INFO, room_id, "Room Info", ButtonStyle.PRIMARY, "ℹ️"),
            _button(ButtonAction.BUMP, room_id, "Bump", ButtonStyle.SECONDARY, "⬆️", is_expired),
        ],
    }


def make_field(name: str, value: str, inline: bool = True) -> dict[str, Any]:
    return {"name": name, "value": value, "inline": inline}


def make_embed(title: str, description: str, color: Color, *fields: dict[str, Any], **extra: Any) -> dict[str, Any]:
    embed: dict[str, Any] = {"title": title, "color": int(color)}
    if description:
        embed["description"] = description
    if fields:
        embed["fields"] = list(fields)
    embed.update(extra)
    return embed


@dataclass
class LobbySnapshot:
    """Everything needed to draw one lobby card, read fresh from the ledger."""

    room: Room
    game_title: str
    participant_count: int
    host_name: str

    @property
    def is_full(self) -> bool:
        return self.participant_count >= self.room.max_slot


def lobby_embed(snapshot: LobbySnapshot, now: datetime, *, bumped: bool = False) -> dict[str, Any]:
    room = snapshot.room
    is_expired = check_room_expiration(room.status, room.expires_at, now).is_expired
    status = "EXPIRED" if is_expired and not RoomStatus(room.status).is_terminal else str(room.status).upper()
    fields = [
        make_field("🆔 Room ID", f"#{room.id}"),
        make_field("👥 Players", f"{snapshot.participant_count}/{room.max_slot}"),
        make_field("🎯 Min Players", str(room.min_slot)),
        make_field("🎲 Type", str(room.type_play).upper()),
        make_field("🔓 Visibility", str(room.room_type).upper()),
        make_field("📊 Status", status),
    ]
    if room.room_code:
        fields.append(make_field("🔑 Room Code", room.room_code, inline=False))
    if room.scheduled_at:
        fields.append(make_field("📅 Scheduled At", discord_timestamp(room.scheduled_at, "F"), inline=False))
    if room.expires_at:
        fields.append(
            make_field(
                "⏰ Expires At",
                f"{discord_timestamp(room.expires_at, 'R')} ({discord_timestamp(room.expires_at, 'F')})",
                inline=False,
            )
        )

    if bumped:
        title = "⬆️ Room Bumped!"
        description = f"**{snapshot.game_title}** room is still looking for players!"
        footer = f"Bumped by {snapshot.host_name}"
    else:
        title = "🎮 Room Created Successfully!"
        description = f"**{snapshot.game_title}** room is now open for players!"
        footer = f"Created by {snapshot.host_name}"

    return make_embed(
        title,
        description,
        Color.DANGER if is_expired else Color.INFO,
        *fields,
        footer={"text": footer},
        timestamp=now.isoformat(),
    )


def render_lobby(snapshot: LobbySnapshot, now: datetime, *, bumped: bool = False) -> dict[str, Any]:
    """Full message payload (card plus buttons) for a room's lobby post."""
    room = snapshot.room
    is_expired = check_room_expiration(room.status, room.expires_at, now).is_expired
    return {
        "embeds": [lobby_embed(snapshot, now, bumped=bumped)],
        "components": [room_buttons(room.id, snapshot.is_full, is_expired)],  # pyright: ignore[reportArgumentType]
    }


def room_info_embed(room: RoomResp, now: datetime) -> dict[str, Any]:
    game_title = room.game.title if room.game else "Unknown"
    host = room.host.username if room.host else "Unknown"
    players = ", ".join(p.user.username for p in room.participants or [] if p.user) or "-"
    is_expired = check_room_expiration(room.status, room.expires_at, now).is_expired
    fields = [
        make_field("🎮 Game", game_title),
        make_field("👑 Host", host),
        make_field("👥 Players", f"{room.participants_count}/{room.max_slot}"),
        make_field("🎯 Min Players", str(room.min_slot)),
        make_field("🎲 Type", str(room.type_play).upper()),
        make_field("🔓 Visibility", str(room.room_type).upper()),
        make_field("📊 Status", "EXPIRED" if is_expired else str(room.status).upper()),
        make_field("🧑‍🤝‍🧑 Members", players, inline=False),
    ]
    if room.room_code:
        fields.append(make_field("🔑 Room Code", room.room_code, inline=False))
    if room.expires_at:
        fields.append(make_field("⏰ Expires At", discord_timestamp(room.expires_at, "R"), inline=False))
    return make_embed(f"ℹ️ Room #{room.id}", f"**{game_title}** lobby details", Color.INFO, *fields)


def join_result_embed(room_id: int, game_title: str, status: RequestStatus, count: int, max_slot: int):
    if status == RequestStatus.ACCEPTED:
        title = "✅ Joined Room!"
        description = f"You have successfully joined room #{room_id}!"
        color = Color.SUCCESS
    else:
        title = "✅ Join Request Sent!"
        description = f"Your join request for room #{room_id} has been sent to the host."
        color = Color.WARNING
    return make_embed(
        title,
        description,
        color,
        make_field("🎮 Game", game_title),
        make_field("👥 Players", f"{count}/{max_slot}"),
        make_field("📊 Request Status", str(status).upper()),
    )


_EXISTING_REQUEST_CARDS = {
    "request_pending": (
        "⏳ Request Already Pending",
        "You already have a pending request for this room.\nPlease wait for the host to approve it.",
        Color.WARNING,
    ),
    "request_accepted": ("✅ Already in Room", "You have already joined this room!", Color.SUCCESS),
    "request_rejected": (
        "❌ Request Rejected",
        "Your previous request was rejected by the host.\nYou cannot request to join this room again.",
        Color.DANGER,
    ),
}

_ERROR_TITLES = {
    "room_not_found": "❌ Room Not Found",
    "game_not_found": "❌ Game Not Found",
    "room_not_open": "🔒 Room Closed",
    "room_expired": "🔒 Room Expired",
    "room_full": "🚫 Room Full",
    "host_cannot_join": "⚠️ You are the Host",
    "not_room_host": "🚫 Host Only",
    "room_not_bumpable": "🔒 Cannot Bump",
    "active_room_exists": "⚠️ Active Room Exists",
    "invalid_slot_range": "❌ Invalid Player Count",
}

_KIND_COLORS = {
    ErrorKind.NOT_FOUND: Color.ERROR,
    ErrorKind.FORBIDDEN: Color.WARNING,
    ErrorKind.BAD_REQUEST: Color.DANGER,
    ErrorKind.CONFLICT: Color.DANGER,
}


def error_embed(error: RequestError) -> dict[str, Any]:
    """Render an engine error with the same granularity the REST surface reports."""
    card = _EXISTING_REQUEST_CARDS.get(error.msg_key)
    if card is not None:
        title, description, color = card
        return make_embed(title, description, color)
    title = _ERROR_TITLES.get(error.msg_key, "❌ Something went wrong")
    return make_embed(title, error.formatted_message, _KIND_COLORS.get(error.kind, Color.ERROR))


def notice_embed(title: str, description: str, color: Color = Color.SUCCESS) -> dict[str, Any]:
    return make_embed(title, description, color)


def bump_ack_embed(room: Room) -> dict[str, Any]:
    return make_embed(
        "⬆️ Room Bumped",
        f"Room #{room.id} was re-posted and its lobby clock reset.",
        Color.SUCCESS,
        make_field("⏰ Expires At", discord_timestamp(room.expires_at, "R") if room.expires_at else "-"),
    )
