"""Application command definitions and option parsing."""

from enum import IntEnum
from typing import Any

from ayomabar.models.room import RoomType, TypePlay


class OptionType(IntEnum):
    STRING = 3
    INTEGER = 4
    NUMBER = 10


def _choices(enum_cls) -> list[dict[str, str]]:
    return [{"name": member.value.replace("-", " ").title(), "value": member.value} for member in enum_cls]


ROOM_COMMAND = {
    "name": "room",
    "description": "Create a new game room",
    "type": 1,
    "options": [
        {
            "name": "game_id",
            "description": "The ID of the game",
            "type": OptionType.INTEGER,
            "required": True,
            "min_value": 1,
        },
        {
            "name": "room_code",
            "description": "Room code or link for joining (e.g., game code, Discord link)",
            "type": OptionType.STRING,
            "required": True,
            "max_length": 100,
        },
        {
            "name": "max_players",
            "description": "Maximum number of players allowed",
            "type": OptionType.INTEGER,
            "required": True,
            "min_value": 1,
            "max_value": 100,
        },
        {
            "name": "min_players",
            "description": "Minimum number of players required",
            "type": OptionType.INTEGER,
            "required": False,
            "min_value": 1,
            "max_value": 100,
        },
        {
            "name": "type_play",
            "description": "Type of gameplay",
            "type": OptionType.STRING,
            "required": False,
            "choices": _choices(TypePlay),
        },
        {
            "name": "room_type",
            "description": "Room visibility type",
            "type": OptionType.STRING,
            "required": False,
            "choices": _choices(RoomType),
        },
        {
            "name": "scheduled_at",
            "description": "Scheduled date/time (ISO format: YYYY-MM-DDTHH:mm:ssZ)",
            "type": OptionType.STRING,
            "required": False,
        },
    ],
}

GAMES_COMMAND = {
    "name": "games",
    "description": "List all available games",
    "type": 1,
    "options": [
        {"name": "page", "description": "Page number", "type": OptionType.INTEGER, "required": False, "min_value": 1},
        {"name": "search", "description": "Search games", "type": OptionType.STRING, "required": False},
        {"name": "genre", "description": "Filter by genre", "type": OptionType.STRING, "required": False},
        {"name": "platform", "description": "Filter by platform", "type": OptionType.STRING, "required": False},
    ],
}

GAME_COMMAND = {
    "name": "game",
    "description": "Get details about a specific game",
    "type": 1,
    "options": [
        {"name": "id", "description": "Game ID", "type": OptionType.INTEGER, "required": True, "min_value": 1},
    ],
}

COMMANDS: list[dict[str, Any]] = [ROOM_COMMAND, GAMES_COMMAND, GAME_COMMAND]


def command_options(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten the ``options`` list of a slash command interaction into a name to value mapping."""
    return {option["name"]: option.get("value") for option in data.get("options") or []}
