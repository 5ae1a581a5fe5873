from datetime import timedelta

from ayomabar.database import Room, RoomRequest
from ayomabar.helpers import utcnow
from ayomabar.models.error import ErrorKind, ErrorType, RequestError
from ayomabar.models.room import (
    CreateRoomReq,
    HostMembership,
    ParticipantMembership,
    ReportPlayerReq,
    RequestStatus,
    RoomListQuery,
    RoomStatus,
    RoomType,
    UpdateRoomReq,
)
from ayomabar.service import game as game_service, room as room_service

from conftest import create_game, create_user
from pydantic import ValidationError
import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select


async def make_room(db, host, game, **kwargs):
    data = CreateRoomReq(game_id=game.id, **kwargs)
    return await room_service.create_room(db, host.id, data)


async def live_requests(db, room_id):
    return (
        await db.exec(
            select(RoomRequest).where(RoomRequest.room_id == room_id, col(RoomRequest.deleted_at).is_(None))
        )
    ).all()


async def raises(error_type: ErrorType, coro) -> RequestError:
    with pytest.raises(RequestError) as exc_info:
        await coro
    assert exc_info.value.error_type == error_type
    return exc_info.value


async def test_create_room_inserts_host_membership(db, host, game):
    room = await make_room(db, host, game, min_slot=2, max_slot=5)

    assert room.status == RoomStatus.OPEN
    assert room.expires_at is None
    requests = await live_requests(db, room.id)
    assert len(requests) == 1
    assert requests[0].membership == HostMembership(host.id)
    assert requests[0].status == RequestStatus.ACCEPTED
    assert await room_service.participant_count(db, room.id) == 1


async def test_create_room_uses_default_expiry_only_when_unset(db, host, game):
    default = utcnow() + timedelta(minutes=5)
    room = await room_service.create_room(db, host.id, CreateRoomReq(game_id=game.id), default_expires_at=default)
    assert room_service.is_room_expired(room) is False
    assert room.expires_at is not None


async def test_create_room_missing_game(db, host):
    error = await raises(ErrorType.GAME_NOT_FOUND, room_service.create_room(db, host.id, CreateRoomReq(game_id=99)))
    assert error.kind == ErrorKind.NOT_FOUND


async def test_create_room_rejects_inverted_slots(db, host, game):
    error = await raises(ErrorType.INVALID_SLOT_RANGE, make_room(db, host, game, min_slot=5, max_slot=2))
    assert error.status_code == 400


async def test_create_room_validates_rank_range(db, host):
    game = await create_game(db, "Dota 2", ranks=[("Herald", 1), ("Ancient", 6)])
    other = await create_game(db, "Chess", ranks=[("Master", 9)])
    ranks = {r.name: r.id for r in await game_service.get_ranks(db, game.id)}
    other_rank = (await game_service.get_ranks(db, other.id))[0]

    await raises(
        ErrorType.INVALID_RANK_RANGE,
        make_room(db, host, game, rank_min_id=ranks["Ancient"], rank_max_id=ranks["Herald"]),
    )
    await raises(ErrorType.RANK_NOT_FOUND, make_room(db, host, game, rank_min_id=other_rank.id))

    room = await make_room(db, host, game, rank_min_id=ranks["Herald"], rank_max_id=ranks["Ancient"])
    assert room.rank_min_id == ranks["Herald"]


async def test_single_active_room_per_host(db, host, game):
    first = await make_room(db, host, game)
    error = await raises(ErrorType.ACTIVE_ROOM_EXISTS, make_room(db, host, game))
    assert str(first.id) in error.formatted_message
    assert error.kind == ErrorKind.CONFLICT


async def test_expired_room_does_not_block_a_new_one(db, host, game):
    await make_room(db, host, game, expires_at=utcnow() - timedelta(minutes=1))
    second = await make_room(db, host, game)
    assert second.id is not None


async def test_closed_room_does_not_block_a_new_one(db, host, game):
    first = await make_room(db, host, game)
    await room_service.update_room(db, host.id, first.id, UpdateRoomReq(status=RoomStatus.CLOSED))
    assert (await make_room(db, host, game)).id != first.id


async def test_public_room_fills_up(db, host, bob, carol, game):
    room = await make_room(db, host, game, min_slot=2, max_slot=2, room_type=RoomType.PUBLIC)

    result = await room_service.join_room(db, bob.id, room.id)
    assert result.request.status == RequestStatus.ACCEPTED
    assert result.message == room_service.JOINED_MESSAGE
    assert await room_service.participant_count(db, room.id) == 2

    await raises(ErrorType.ROOM_FULL, room_service.join_room(db, carol.id, room.id))
    assert await room_service.participant_count(db, room.id) == 2


async def test_private_room_approve_then_leave(db, host, bob, game):
    room = await make_room(db, host, game, room_type=RoomType.PRIVATE)

    result = await room_service.join_room(db, bob.id, room.id)
    assert result.request.status == RequestStatus.PENDING
    assert result.message == room_service.REQUESTED_MESSAGE
    assert await room_service.participant_count(db, room.id) == 1

    approved = await room_service.approve_request(db, host.id, result.request.id)
    assert approved.status == RequestStatus.ACCEPTED
    assert await room_service.participant_count(db, room.id) == 2

    left = await room_service.leave_room(db, bob.id, room.id)
    assert left.deleted_at is not None
    assert left.status == RequestStatus.ACCEPTED
    assert await room_service.participant_count(db, room.id) == 1


async def test_member_who_left_may_rejoin(db, host, bob, game):
    room = await make_room(db, host, game)
    await room_service.join_room(db, bob.id, room.id)
    await room_service.leave_room(db, bob.id, room.id)

    again = await room_service.join_room(db, bob.id, room.id)
    assert again.request.status == RequestStatus.ACCEPTED
    assert len([r for r in await live_requests(db, room.id) if r.user_id == bob.id]) == 1


async def test_kicked_member_is_blocked_for_good(db, host, bob, game):
    room = await make_room(db, host, game)
    await room_service.join_room(db, bob.id, room.id)

    kicked = await room_service.kick_player(db, host.id, room.id, bob.id)
    assert kicked.request.status == RequestStatus.REJECTED
    assert kicked.request.deleted_at is not None

    for _ in range(2):
        await raises(ErrorType.REQUEST_REJECTED, room_service.join_room(db, bob.id, room.id))


async def test_existing_request_sub_cases(db, host, bob, carol, game):
    room = await make_room(db, host, game, room_type=RoomType.PRIVATE, max_slot=5)
    pending = await room_service.join_room(db, bob.id, room.id)
    await raises(ErrorType.REQUEST_PENDING, room_service.join_room(db, bob.id, room.id))

    await room_service.approve_request(db, host.id, pending.request.id)
    await raises(ErrorType.REQUEST_ACCEPTED, room_service.join_room(db, bob.id, room.id))

    carol_request = await room_service.join_room(db, carol.id, room.id)
    await room_service.reject_request(db, host.id, carol_request.request.id)
    await raises(ErrorType.REQUEST_REJECTED, room_service.join_room(db, carol.id, room.id))


async def test_host_cannot_join_own_room(db, host, game):
    room = await make_room(db, host, game)
    await raises(ErrorType.HOST_CANNOT_JOIN, room_service.join_room(db, host.id, room.id))


async def test_join_refuses_expired_room_still_marked_open(db, host, bob, game):
    room = await make_room(db, host, game, expires_at=utcnow() - timedelta(seconds=1))
    assert room.status == RoomStatus.OPEN
    error = await raises(ErrorType.ROOM_EXPIRED, room_service.join_room(db, bob.id, room.id))
    assert error.status_code == 400


async def test_join_refuses_room_not_open(db, host, bob, game):
    room = await make_room(db, host, game)
    await room_service.update_room(db, host.id, room.id, UpdateRoomReq(status=RoomStatus.IN_PROGRESS))
    await raises(ErrorType.ROOM_NOT_OPEN, room_service.join_room(db, bob.id, room.id))


async def test_join_missing_room(db, bob):
    await raises(ErrorType.ROOM_NOT_FOUND, room_service.join_room(db, bob.id, 404))


async def test_approve_rechecks_capacity(db, host, bob, carol, game):
    room = await make_room(db, host, game, room_type=RoomType.PRIVATE, max_slot=2)
    first = await room_service.join_room(db, bob.id, room.id)
    second = await room_service.join_room(db, carol.id, room.id)

    await room_service.approve_request(db, host.id, first.request.id)
    error = await raises(ErrorType.ROOM_FULL_ON_APPROVE, room_service.approve_request(db, host.id, second.request.id))
    assert "cannot accept more players" in error.formatted_message
    assert await room_service.participant_count(db, room.id) == 2


async def test_review_preconditions(db, host, bob, carol, game):
    public = await make_room(db, host, game)
    joined = await room_service.join_room(db, bob.id, public.id)
    await raises(ErrorType.PUBLIC_ROOM_NO_APPROVAL, room_service.approve_request(db, host.id, joined.request.id))

    other_host = await create_user(db, "dave")
    private = await make_room(db, other_host, game, room_type=RoomType.PRIVATE)
    pending = await room_service.join_room(db, carol.id, private.id)
    error = await raises(ErrorType.NOT_ROOM_HOST, room_service.reject_request(db, host.id, pending.request.id))
    assert error.kind == ErrorKind.FORBIDDEN

    await room_service.reject_request(db, other_host.id, pending.request.id)
    error = await raises(
        ErrorType.REQUEST_ALREADY_RESOLVED, room_service.approve_request(db, other_host.id, pending.request.id)
    )
    assert "rejected" in error.formatted_message

    await raises(ErrorType.ROOM_REQUEST_NOT_FOUND, room_service.approve_request(db, host.id, 12345))


async def test_kick_preconditions(db, host, bob, carol, game):
    room = await make_room(db, host, game)
    await room_service.join_room(db, bob.id, room.id)

    await raises(ErrorType.CANNOT_KICK_SELF, room_service.kick_player(db, host.id, room.id, host.id))
    await raises(ErrorType.USER_NOT_IN_ROOM, room_service.kick_player(db, host.id, room.id, carol.id))
    await raises(ErrorType.NOT_ROOM_HOST, room_service.kick_player(db, bob.id, room.id, host.id))


async def test_leave_preconditions(db, host, bob, game):
    room = await make_room(db, host, game)
    await raises(ErrorType.NOT_ROOM_MEMBER, room_service.leave_room(db, bob.id, room.id))
    error = await raises(ErrorType.HOST_CANNOT_LEAVE, room_service.leave_room(db, host.id, room.id))
    assert error.kind == ErrorKind.FORBIDDEN


async def test_report_player(db, host, bob, carol, game):
    room = await make_room(db, host, game)
    await room_service.join_room(db, bob.id, room.id)

    report = await room_service.report_player(db, bob.id, room.id, host.id, "  left mid game again  ")
    assert report.reason == "left mid game again"

    await raises(ErrorType.DUPLICATE_REPORT, room_service.report_player(db, bob.id, room.id, host.id, "still rude!!"))
    await raises(ErrorType.CANNOT_REPORT_SELF, room_service.report_player(db, bob.id, room.id, bob.id, "reporting me"))
    await raises(
        ErrorType.REPORTER_NOT_MEMBER, room_service.report_player(db, carol.id, room.id, bob.id, "never met them")
    )
    error = await raises(
        ErrorType.REPORTED_NOT_IN_ROOM, room_service.report_player(db, bob.id, room.id, carol.id, "not even here")
    )
    assert error.kind == ErrorKind.NOT_FOUND


def test_report_reason_length_counts_stripped_text():
    assert ReportPlayerReq(reason="   spammed the chat   ").reason == "spammed the chat"
    for reason in (" " * 12, "  rude      "):
        with pytest.raises(ValidationError):
            ReportPlayerReq(reason=reason)


async def test_former_member_can_still_be_reported(db, host, bob, game):
    room = await make_room(db, host, game)
    await room_service.join_room(db, bob.id, room.id)
    await room_service.kick_player(db, host.id, room.id, bob.id)

    report = await room_service.report_player(db, host.id, room.id, bob.id, "toxic in voice chat")
    assert report.reported_user_id == bob.id


async def test_update_room_partial(db, host, bob, game):
    room = await make_room(db, host, game, room_code="ABC", max_slot=4)
    updated = await room_service.update_room(db, host.id, room.id, UpdateRoomReq(max_slot=6))
    assert updated.max_slot == 6
    assert updated.room_code == "ABC"

    cleared = await room_service.update_room(db, host.id, room.id, UpdateRoomReq(room_code=None))
    assert cleared.room_code is None

    await raises(ErrorType.NOT_ROOM_CREATOR, room_service.update_room(db, bob.id, room.id, UpdateRoomReq(max_slot=3)))
    too_many = UpdateRoomReq(min_slot=7)
    await raises(ErrorType.INVALID_SLOT_RANGE, room_service.update_room(db, host.id, room.id, too_many))
    await raises(ErrorType.GAME_NOT_FOUND, room_service.update_room(db, host.id, room.id, UpdateRoomReq(game_id=999)))


async def test_update_room_keeps_max_slot_above_participants(db, host, bob, carol, game):
    room = await make_room(db, host, game, max_slot=4)
    await room_service.join_room(db, bob.id, room.id)
    await room_service.join_room(db, carol.id, room.id)

    error = await raises(
        ErrorType.MAX_SLOT_BELOW_PARTICIPANTS, room_service.update_room(db, host.id, room.id, UpdateRoomReq(max_slot=2))
    )
    assert "(3)" in error.formatted_message


async def test_going_public_settles_pending_requests(db, host, bob, carol, game):
    room = await make_room(db, host, game, room_type=RoomType.PRIVATE, max_slot=2)
    bob_request = (await room_service.join_room(db, bob.id, room.id)).request
    await room_service.join_room(db, carol.id, room.id)

    await room_service.update_room(db, host.id, room.id, UpdateRoomReq(room_type=RoomType.PUBLIC))

    live = await live_requests(db, room.id)
    assert {r.user_id: r.status for r in live} == {host.id: RequestStatus.ACCEPTED, bob.id: RequestStatus.ACCEPTED}
    assert not [r for r in live if r.status == RequestStatus.PENDING]
    assert await room_service.participant_count(db, room.id) == 2
    await raises(ErrorType.PUBLIC_ROOM_NO_APPROVAL, room_service.approve_request(db, host.id, bob_request.id))

    # the overflow was withdrawn, not rejected
    await room_service.leave_room(db, bob.id, room.id)
    rejoined = await room_service.join_room(db, carol.id, room.id)
    assert rejoined.request.status == RequestStatus.ACCEPTED


async def test_going_public_with_a_bigger_room_accepts_everyone(db, host, bob, carol, game):
    room = await make_room(db, host, game, room_type=RoomType.PRIVATE, max_slot=2)
    await room_service.join_room(db, bob.id, room.id)
    await room_service.join_room(db, carol.id, room.id)

    await room_service.update_room(db, host.id, room.id, UpdateRoomReq(room_type=RoomType.PUBLIC, max_slot=5))

    assert await room_service.participant_count(db, room.id) == 3
    await raises(ErrorType.REQUEST_ACCEPTED, room_service.join_room(db, carol.id, room.id))


async def test_delete_room_cascades_to_memberships(db, host, bob, game):
    room = await make_room(db, host, game)
    await room_service.join_room(db, bob.id, room.id)

    await raises(ErrorType.NOT_ROOM_CREATOR, room_service.delete_room(db, bob.id, room.id))
    deleted = await room_service.delete_room(db, host.id, room.id)

    assert deleted.deleted_at is not None
    assert await live_requests(db, room.id) == []
    await raises(ErrorType.ROOM_NOT_FOUND, room_service.get_room(db, room.id))
    # a deleted room no longer counts as the host's active room
    assert (await make_room(db, host, game)).id != room.id


async def test_every_live_room_has_exactly_one_host_row(db, host, bob, carol, game):
    rooms = [await make_room(db, host, game, room_type=RoomType.PRIVATE)]
    rooms.append(await make_room(db, bob, game))
    await room_service.join_room(db, carol.id, rooms[0].id)
    await room_service.join_room(db, host.id, rooms[1].id)
    await room_service.leave_room(db, host.id, rooms[1].id)

    for room in rooms:
        hosts = [r for r in await live_requests(db, room.id) if isinstance(r.membership, HostMembership)]
        assert [h.user_id for h in hosts] == [room.user_id]
        for request in await live_requests(db, room.id):
            if not request.is_host:
                assert isinstance(request.membership, ParticipantMembership)


async def test_bump_resets_expiry(db, host, bob, game):
    now = utcnow()
    room = await make_room(db, host, game, expires_at=now - timedelta(minutes=3))

    await raises(ErrorType.NOT_ROOM_HOST, room_service.bump_room(db, bob.id, room.id, now))
    bumped = await room_service.bump_room(db, host.id, room.id, now)

    assert room_service.is_room_expired(bumped, now) is False
    assert bumped.last_bumped_at is not None
    assert room_service.is_room_expired(bumped, now + timedelta(minutes=6)) is True


async def test_bump_refuses_terminal_rooms(db, host, game):
    room = await make_room(db, host, game)
    await room_service.update_room(db, host.id, room.id, UpdateRoomReq(status=RoomStatus.COMPLETED))
    error = await raises(ErrorType.ROOM_NOT_BUMPABLE, room_service.bump_room(db, host.id, room.id))
    assert "completed" in error.formatted_message


async def test_bump_refuses_stale_room_while_host_runs_another(db, host, game):
    now = utcnow()
    stale = await make_room(db, host, game, expires_at=now - timedelta(minutes=1))
    current = await make_room(db, host, game)

    error = await raises(ErrorType.ACTIVE_ROOM_EXISTS, room_service.bump_room(db, host.id, stale.id, now))
    assert error.details["room_id"] == current.id
    assert room_service.is_room_expired(await db.get(Room, stale.id), now) is True

    await room_service.delete_room(db, host.id, current.id)
    bumped = await room_service.bump_room(db, host.id, stale.id, now)
    assert room_service.is_room_expired(bumped, now) is False


async def test_reopening_room_respects_single_active_room(db, host, game):
    first = await make_room(db, host, game)
    await room_service.update_room(db, host.id, first.id, UpdateRoomReq(status=RoomStatus.CLOSED))
    second = await make_room(db, host, game)

    for status in (RoomStatus.OPEN, RoomStatus.IN_PROGRESS):
        error = await raises(
            ErrorType.ACTIVE_ROOM_EXISTS,
            room_service.update_room(db, host.id, first.id, UpdateRoomReq(status=status)),
        )
        assert error.details["room_id"] == second.id
    assert (await db.get(Room, first.id)).status == RoomStatus.CLOSED

    # the active room itself can still change status
    started = await room_service.update_room(db, host.id, second.id, UpdateRoomReq(status=RoomStatus.IN_PROGRESS))
    assert started.status == RoomStatus.IN_PROGRESS


async def test_record_presentation(db, host, game):
    room = await make_room(db, host, game)
    await room_service.record_presentation(db, room.id, "123", "456")
    stored = await db.get(Room, room.id)
    assert (stored.discord_channel_id, stored.discord_message_id) == ("123", "456")


async def test_close_expired_rooms_respects_grace(db, host, bob, carol, game):
    now = utcnow()
    stale = await make_room(db, host, game, expires_at=now - timedelta(hours=2))
    recent = await make_room(db, bob, game, expires_at=now - timedelta(minutes=10))
    endless = await make_room(db, carol, game)

    closed = await room_service.close_expired_rooms(db, now, grace=timedelta(hours=1))

    assert closed == 1
    assert (await db.get(Room, stale.id)).status == RoomStatus.CLOSED
    assert (await db.get(Room, recent.id)).status == RoomStatus.OPEN
    assert (await db.get(Room, endless.id)).status == RoomStatus.OPEN
    # recently expired rooms can still be bumped back to life
    assert room_service.is_room_expired(await room_service.bump_room(db, bob.id, recent.id, now), now) is False


async def test_get_room_and_list_rooms(db, host, bob, carol, game):
    room = await make_room(db, host, game, max_slot=2)
    await room_service.join_room(db, bob.id, room.id)
    other = await make_room(db, carol, game, room_type=RoomType.PRIVATE)

    resp = await room_service.get_room(db, room.id)
    assert resp.participants_count == 2
    assert resp.is_full is True
    assert resp.is_expired is False
    assert resp.game.title == game.title
    assert resp.host.username == "alice"
    assert {p.user.username for p in resp.participants} == {"alice", "bob"}

    result = await room_service.list_rooms(db, RoomListQuery(room_type=RoomType.PRIVATE))
    assert [r.id for r in result["data"]] == [other.id]
    assert result["meta"]["total"] == 1

    page = await room_service.list_rooms(db, RoomListQuery(limit=1, sort_order="asc", sort_by="created_at"))
    assert page["meta"] == {
        "total": 2,
        "page": 1,
        "limit": 1,
        "total_pages": 2,
        "has_next_page": True,
        "has_previous_page": False,
    }
    assert page["data"][0].participants_count in (1, 2)


async def test_get_room_requests_for_host(db, host, bob, carol, game):
    room = await make_room(db, host, game, room_type=RoomType.PRIVATE)
    first = await room_service.join_room(db, bob.id, room.id)
    await room_service.join_room(db, carol.id, room.id)
    await room_service.approve_request(db, host.id, first.request.id)

    result = await room_service.get_room_requests(db, host.id, room.id)
    assert (result["total"], result["pending"], result["accepted"], result["rejected"]) == (3, 1, 2, 0)

    await raises(ErrorType.NOT_ROOM_HOST, room_service.get_room_requests(db, bob.id, room.id))


async def test_storage_rejects_second_live_membership(db, host, bob, game):
    # rollback expires every loaded row, so keep plain ids around
    room_id, bob_id = (await make_room(db, host, game)).id, bob.id
    await room_service.join_room(db, bob_id, room_id)

    db.add(RoomRequest(room_id=room_id, user_id=bob_id, status=RequestStatus.PENDING, is_host=False))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()

    # soft-deleted rows drop out of the live key, so history can pile up
    await room_service.leave_room(db, bob_id, room_id)
    await room_service.join_room(db, bob_id, room_id)
    await room_service.leave_room(db, bob_id, room_id)
    history = (
        await db.exec(select(RoomRequest).where(RoomRequest.room_id == room_id, RoomRequest.user_id == bob_id))
    ).all()
    assert len(history) == 2
