import os

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

SIGNING_KEY = Ed25519PrivateKey.generate()

# settings are read at import time, so configure before importing ayomabar
os.environ["DATABASE_DSN"] = "sqlite+aiosqlite://"
os.environ["DEBUG"] = "true"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["JWT_REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ["DISCORD_BOT_TOKEN"] = ""
os.environ["DISCORD_APPLICATION_ID"] = "1000"
os.environ["DISCORD_PUBLIC_KEY"] = SIGNING_KEY.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
os.environ["ENABLE_ROOM_EXPIRY_SWEEP"] = "false"
os.environ["ENABLE_ROOM_EVENT_PUBLISH"] = "false"

from collections.abc import AsyncIterator  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from typing import Any  # noqa: E402

from ayomabar.database import Game, GameRank, User  # noqa: E402
from ayomabar.dependencies.database import get_db  # noqa: E402
from ayomabar.dependencies.discord import get_lobby_sync  # noqa: E402
from ayomabar.discord.client import DiscordClient  # noqa: E402
from ayomabar.helpers import bg_tasks  # noqa: E402
from ayomabar.service.auth import create_access_token  # noqa: E402
from ayomabar.service.lobby_sync import LobbySync  # noqa: E402

from httpx import ASGITransport, AsyncClient, HTTPStatusError, Request, Response  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402


class FakeDiscordClient(DiscordClient):
    """Records every call instead of talking to Discord.

    Paths listed in ``fail_on`` (matched by substring plus method) answer
    with a 500 so callers exercise their failure handling.
    """

    def __init__(self, bot_token: str = ""):
        super().__init__(bot_token=bot_token, application_id="1000", base_url="https://discord.test/api/v10")
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_on: set[tuple[str, str]] = set()
        self._next_message_id = 9000

    async def request(self, method: str, path: str, **kwargs) -> Any:
        self.calls.append((method, path, kwargs))
        for fail_method, fragment in self.fail_on:
            if method == fail_method and fragment in path:
                request = Request(method, f"{self.base_url}{path}")
                raise HTTPStatusError("boom", request=request, response=Response(500, request=request))
        if method == "DELETE":
            return None
        self._next_message_id += 1
        return {"id": str(self._next_message_id), "channel_id": "555"}

    def calls_to(self, method: str, fragment: str = "") -> list[tuple[str, str, dict[str, Any]]]:
        return [call for call in self.calls if call[0] == method and fragment in call[1]]


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    @asynccontextmanager
    async def factory() -> AsyncIterator[AsyncSession]:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session

    return factory


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
async def drain_background_tasks():
    yield
    await bg_tasks.join()


@pytest.fixture
def discord_client() -> FakeDiscordClient:
    return FakeDiscordClient()


@pytest.fixture
def lobby_sync(discord_client, session_factory) -> LobbySync:
    return LobbySync(discord_client, session_factory=session_factory)


@pytest.fixture
async def client(session_factory, lobby_sync):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lobby_sync] = lambda: lobby_sync
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def create_user(db: AsyncSession, username: str, roles: list[str] | None = None) -> User:
    user = User(name=username.title(), username=username, email=f"{username}@example.com", roles=roles or ["user"])
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_game(db: AsyncSession, title: str = "Valorant", ranks: list[tuple[str, int]] | None = None) -> Game:
    game = Game(title=title, genre="Shooter", platform="PC")
    db.add(game)
    await db.flush()
    for name, tier in ranks or []:
        db.add(GameRank(game_id=game.id, name=name, tier=tier))
    await db.commit()
    await db.refresh(game)
    return game


def auth_header(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
async def host(db) -> User:
    return await create_user(db, "alice")


@pytest.fixture
async def bob(db) -> User:
    return await create_user(db, "bob")


@pytest.fixture
async def carol(db) -> User:
    return await create_user(db, "carol")


@pytest.fixture
async def game(db) -> Game:
    return await create_game(db)
