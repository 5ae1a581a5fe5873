"""Discord REST transport.

A thin wrapper over the Discord HTTP API (v10) covering what the lobby
needs: editing interaction responses, sending follow-ups, editing and
deleting channel messages, and registering application commands.

Classes:
    DiscordClient: Sends requests, waits out 429 responses once, raises
        ``httpx.HTTPStatusError`` for anything else.
"""

import asyncio
from typing import Any

from ayomabar.config import settings
from ayomabar.log import discord_logger

from httpx import AsyncClient, HTTPStatusError, Response

logger = discord_logger


class DiscordClient:
    def __init__(
        self,
        bot_token: str,
        application_id: str,
        base_url: str = "https://discord.com/api/v10",
        timeout: float = 10.0,
    ):
        self.bot_token = bot_token
        self.application_id = application_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def has_bot_token(self) -> bool:
        return bool(self.bot_token)

    @property
    def header(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.bot_token:
            headers["Authorization"] = f"Bot {self.bot_token}"
        return headers

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request to the Discord API.

        Args:
            method: HTTP method.
            path: Path relative to the API base, starting with ``/``.
            **kwargs: Passed to ``httpx.AsyncClient.request``.

        Returns:
            The decoded JSON body, or None for empty responses.

        Raises:
            HTTPStatusError: For non-2xx responses other than a single 429.
        """
        url = f"{self.base_url}{path}"
        async with AsyncClient(timeout=self.timeout) as client:
            for attempt in range(2):
                response = await client.request(method, url, headers=self.header, **kwargs)
                if response.status_code == 429 and attempt == 0:
                    wait_seconds = self._retry_after(response)
                    logger.warning(f"Rate limited on {method} {path}, retrying in {wait_seconds:.2f}s")
                    await asyncio.sleep(wait_seconds)
                    continue
                try:
                    response.raise_for_status()
                except HTTPStatusError:
                    logger.warning(f"{method} {path} failed with {response.status_code}: {response.text[:200]}")
                    raise
                if response.status_code == 204 or not response.content:
                    return None
                return response.json()
        return None

    @staticmethod
    def _retry_after(response: Response) -> float:
        try:
            return float(response.json().get("retry_after", 1.0))
        except ValueError:
            return float(response.headers.get("Retry-After", 1.0))

    # interaction webhooks (authorised by the interaction token, no bot token needed)

    async def edit_original_response(self, interaction_token: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request(
            "PATCH",
            f"/webhooks/{self.application_id}/{interaction_token}/messages/@original",
            json=payload,
        )

    async def create_followup(self, interaction_token: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request(
            "POST",
            f"/webhooks/{self.application_id}/{interaction_token}",
            params={"wait": "true"},
            json=payload,
        )

    # channel messages (bot token)

    async def edit_message(self, channel_id: str, message_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("PATCH", f"/channels/{channel_id}/messages/{message_id}", json=payload)

    async def delete_message(self, channel_id: str, message_id: str) -> None:
        await self.request("DELETE", f"/channels/{channel_id}/messages/{message_id}")

    # application commands

    async def overwrite_commands(self, commands: list[dict[str, Any]], guild_id: str | None = None) -> list[dict]:
        if guild_id:
            path = f"/applications/{self.application_id}/guilds/{guild_id}/commands"
        else:
            path = f"/applications/{self.application_id}/commands"
        return await self.request("PUT", path, json=commands)


discord_client = DiscordClient(
    bot_token=settings.discord_bot_token,
    application_id=settings.discord_application_id,
    base_url=settings.discord_api_base_url,
)


def get_discord_client() -> DiscordClient:
    return discord_client
