"""Game catalog cards for the ``/games`` and ``/game`` commands."""

from datetime import datetime
from typing import Any

from ayomabar.database import GameResp

from .lobby import Color, make_embed, make_field

GAMES_PER_PAGE = 10


def _date(value: datetime | None, fmt: str = "%b %d, %Y") -> str:
    return value.strftime(fmt) if value else "-"


def games_embed(
    games: list[GameResp],
    meta: dict[str, Any],
    now: datetime,
    *,
    search: str | None = None,
    genre: str | None = None,
    platform: str | None = None,
) -> dict[str, Any]:
    if not games:
        return make_embed("🎮 No Games Found", "No games match your search criteria.", Color.ERROR)

    offset = (meta["page"] - 1) * meta["limit"]
    lines = [
        f"**{offset + index}.** {game.title}\n"
        f"Genre: {game.genre or '-'} • Platform: {game.platform or '-'} • Released: {_date(game.release_date)}"
        for index, game in enumerate(games, start=1)
    ]
    filters = []
    if search:
        filters.append(f'Search: "{search}"')
    if genre:
        filters.append(f'Genre: "{genre}"')
    if platform:
        filters.append(f'Platform: "{platform}"')

    fields = [make_field("🔍 Active Filters", " • ".join(filters), inline=False)] if filters else []
    return make_embed(
        "🎮 Available Games",
        "\n\n".join(lines),
        Color.CATALOG,
        *fields,
        footer={"text": f"Page {meta['page']} of {meta['total_pages']} • Total: {meta['total']} games"},
        timestamp=now.isoformat(),
    )


def game_embed(game: GameResp, now: datetime) -> dict[str, Any]:
    fields = []
    if game.genre:
        fields.append(make_field("🎯 Genre", game.genre))
    if game.platform:
        fields.append(make_field("💻 Platform", game.platform))
    if game.release_date:
        fields.append(make_field("📅 Release Date", _date(game.release_date, "%B %d, %Y")))
    fields.append(make_field("ℹ️ Game ID", str(game.id)))
    fields.append(make_field("📆 Added", _date(game.created_at)))
    if game.ranks:
        fields.append(make_field("🏅 Ranks", " → ".join(rank.name for rank in game.ranks), inline=False))
    return make_embed(f"🎮 {game.title}", "", Color.CATALOG, *fields, timestamp=now.isoformat())
