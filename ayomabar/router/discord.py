"""Discord interactions webhook.

Discord POSTs every slash command and button press here. Requests are
authenticated by the Ed25519 signature over timestamp + raw body.
"""

import json
from typing import Annotated

from ayomabar.config import settings
from ayomabar.dependencies.database import Database
from ayomabar.dependencies.discord import Lobby
from ayomabar.dependencies.event_hub import EventHub
from ayomabar.discord.interactions import InteractionHandler, verify_signature
from ayomabar.log import discord_logger

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request, status

logger = discord_logger

router = APIRouter(prefix="/discord", tags=["Discord"], include_in_schema=False)


@router.post("/interactions", name="Discord interactions")
async def interactions(
    request: Request,
    db: Database,
    hub: EventHub,
    sync: Lobby,
    background: BackgroundTasks,
    signature: Annotated[str | None, Header(alias="X-Signature-Ed25519")] = None,
    timestamp: Annotated[str | None, Header(alias="X-Signature-Timestamp")] = None,
):
    body = await request.body()
    if (
        not settings.discord_public_key
        or signature is None
        or timestamp is None
        or not verify_signature(settings.discord_public_key, signature, timestamp, body)
    ):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Invalid request signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Malformed interaction body") from None

    return await InteractionHandler(db, sync, hub, background).handle(payload)
