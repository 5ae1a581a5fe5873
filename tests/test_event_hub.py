from datetime import timedelta

from ayomabar.config import settings
from ayomabar.dependencies.scheduler import get_scheduler
from ayomabar.helpers import bg_tasks, utcnow
from ayomabar.models.events import (
    MembershipChange,
    RoomCreatedEvent,
    RoomEvent,
    RoomMembershipChangedEvent,
    RoomUpdatedEvent,
    UserRegisteredEvent,
)
from ayomabar.models.room import CreateRoomReq, RoomStatus
from ayomabar.service import room as room_service
from ayomabar.service.event_hub import EventHub
from ayomabar.service.subscribers import lobby_refresh, room_publish
from ayomabar.tasks import room_expiry

from redis.exceptions import ConnectionError as RedisConnectionError


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.published: list[tuple[str, str]] = []
        self.fail = fail

    async def publish(self, channel: str, message: str) -> int:
        if self.fail:
            raise RedisConnectionError("redis is down")
        self.published.append((channel, message))
        return 1


class RecordingLobbySync:
    refreshed: list[int] = []

    def __init__(self, client):
        self.client = client

    async def refresh(self, room_id: int) -> bool:
        RecordingLobbySync.refreshed.append(room_id)
        return True


async def test_listeners_receive_matching_events_only():
    hub = EventHub()
    rooms: list[RoomEvent] = []
    users: list[UserRegisteredEvent] = []

    @hub.listen
    async def on_room(event: RoomEvent):
        rooms.append(event)

    @hub.listen
    async def on_user(event: UserRegisteredEvent):
        users.append(event)

    hub.emit(RoomCreatedEvent(room_id=1, user_id=2))
    hub.emit(UserRegisteredEvent(user_id=2, username="neo_0001", source="discord"))
    await bg_tasks.join()

    assert [e.kind for e in rooms] == ["created"]
    assert [e.username for e in users] == ["neo_0001"]


async def test_failing_listener_does_not_reach_emitter():
    hub = EventHub()
    seen: list[int] = []

    @hub.listen
    async def broken(event: RoomUpdatedEvent):
        raise RuntimeError("listener blew up")

    @hub.listen
    async def working(event: RoomUpdatedEvent):
        seen.append(event.room_id)

    hub.emit(RoomUpdatedEvent(room_id=9, user_id=1))
    await bg_tasks.join()
    assert seen == [9]


def test_event_kinds():
    change = RoomMembershipChangedEvent(room_id=1, user_id=2, change=MembershipChange.KICKED)
    assert change.kind == "membership.kicked"
    assert room_publish.channel_for(change) == "lobby:room:membership.kicked"


async def test_publish_room_event(monkeypatch):
    redis = FakeRedis()
    event = RoomCreatedEvent(room_id=3, user_id=4)

    await room_publish.publish_room_event(event, redis)
    assert redis.published == []

    monkeypatch.setattr(settings, "enable_room_event_publish", True)
    await room_publish.publish_room_event(event, redis)
    assert redis.published == [("lobby:room:created", "3:4")]

    # publish failures are logged, not raised
    await room_publish.publish_room_event(event, FakeRedis(fail=True))


async def test_lobby_refresh_skips_discord_sourced_changes(monkeypatch):
    RecordingLobbySync.refreshed = []
    monkeypatch.setattr(lobby_refresh, "LobbySync", RecordingLobbySync)

    joined = MembershipChange.JOINED
    await lobby_refresh.refresh_lobby_on_membership_change(
        RoomMembershipChangedEvent(room_id=5, user_id=1, change=joined, source="discord")
    )
    await lobby_refresh.refresh_lobby_on_membership_change(
        RoomMembershipChangedEvent(room_id=6, user_id=1, change=joined)
    )
    await lobby_refresh.refresh_lobby_on_room_update(RoomUpdatedEvent(room_id=7, user_id=1))

    assert RecordingLobbySync.refreshed == [6, 7]


async def test_expiry_sweep_job(monkeypatch, session_factory, db, host, game):
    room = await room_service.create_room(
        db, host.id, CreateRoomReq(game_id=game.id, expires_at=utcnow() - timedelta(days=1))
    )
    monkeypatch.setattr(room_expiry, "with_db", session_factory)

    assert await room_expiry.close_expired_rooms_job() == 0

    monkeypatch.setattr(settings, "enable_room_expiry_sweep", True)
    assert await room_expiry.close_expired_rooms_job() == 1
    await db.refresh(room)
    assert room.status == RoomStatus.CLOSED


def test_expiry_sweep_is_scheduled():
    job = get_scheduler().get_job("close_expired_rooms")
    assert job is not None
    assert job.trigger.interval == timedelta(minutes=settings.room_expiry_sweep_interval_minutes)
