"""Register the bot's slash commands with Discord.

Usage: python scripts/register_discord_commands.py [--global]

Commands are registered on ``discord_development_guild_id`` when it is set,
which takes effect immediately; ``--global`` registers them for every guild,
which Discord may take up to an hour to roll out.
"""

import asyncio
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ayomabar.config import settings
from ayomabar.discord.client import discord_client
from ayomabar.discord.commands import COMMANDS
from ayomabar.log import system_logger

from httpx import HTTPError

logger = system_logger("RegisterCommands")


async def main() -> int:
    if not settings.discord_bot_token or not settings.discord_application_id:
        logger.error("discord_bot_token and discord_application_id must be set")
        return 1

    guild_id = None if "--global" in sys.argv else settings.discord_development_guild_id
    try:
        registered = await discord_client.overwrite_commands(COMMANDS, guild_id=guild_id)
    except HTTPError as e:
        logger.error(f"Registration failed: {e}")
        return 1

    scope = f"guild {guild_id}" if guild_id else "all guilds"
    names = ", ".join(command["name"] for command in COMMANDS)
    logger.success(f"Registered {len(registered or [])} command(s) for {scope}: {names}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
