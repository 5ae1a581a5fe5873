"""Room lobby lifecycle.

Every operation here is transport-agnostic: it takes an actor id and typed
arguments, validates against the game catalog and the room request ledger,
mutates rows inside one transaction and returns ORM rows or raises
``RequestError``. The REST router and the Discord interaction handler are
thin adapters over these functions.

Capacity is always derived from the ledger. The host's seat counts as an
occupied slot everywhere a count is taken.

Join and approve lock the room row before counting, so two requests racing
for the last slot are serialised by the database. The unique key on live
ledger rows backs up the duplicate-membership pre-check.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from ayomabar.config import settings
from ayomabar.database import (
    Game,
    GameBrief,
    GameRank,
    PlayerReport,
    Room,
    RoomRequest,
    RoomRequestResp,
    RoomResp,
    User,
    UserBrief,
)
from ayomabar.helpers import as_utc, minutes_from_now, page_meta, utcnow
from ayomabar.log import log
from ayomabar.models.error import ErrorType, RequestError
from ayomabar.models.room import (
    CreateRoomReq,
    HostMembership,
    RequestStatus,
    RoomListQuery,
    RoomStatus,
    RoomType,
    UpdateRoomReq,
    check_room_expiration,
)

from .game import get_active_game

from sqlalchemy.exc import IntegrityError
from sqlmodel import asc, col, desc, func, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

logger = log("Room")

JOINED_MESSAGE = "Successfully joined the room"
REQUESTED_MESSAGE = "Join request sent, waiting for host approval"


@dataclass
class JoinResult:
    request: RoomRequest
    message: str


@dataclass
class KickResult:
    request: RoomRequest
    room: Room


def _occupies_slot():
    return or_(RoomRequest.status == RequestStatus.ACCEPTED, col(RoomRequest.is_host).is_(True))


async def participant_count(db: AsyncSession, room_id: int) -> int:
    """Count live rows that hold a seat in the room, the host included."""
    return (
        await db.exec(
            select(func.count())
            .select_from(RoomRequest)
            .where(
                RoomRequest.room_id == room_id,
                col(RoomRequest.deleted_at).is_(None),
                _occupies_slot(),
            )
        )
    ).one()


async def participant_counts(db: AsyncSession, room_ids: list[int]) -> dict[int, int]:
    if not room_ids:
        return {}
    rows = await db.exec(
        select(RoomRequest.room_id, func.count())
        .where(
            col(RoomRequest.room_id).in_(room_ids),
            col(RoomRequest.deleted_at).is_(None),
            _occupies_slot(),
        )
        .group_by(col(RoomRequest.room_id))
    )
    return {room_id: count for room_id, count in rows.all()}


async def get_live_request(db: AsyncSession, room_id: int, user_id: int) -> RoomRequest | None:
    return (
        await db.exec(
            select(RoomRequest).where(
                RoomRequest.room_id == room_id,
                RoomRequest.user_id == user_id,
                col(RoomRequest.deleted_at).is_(None),
            )
        )
    ).first()


async def _was_rejected(db: AsyncSession, room_id: int, user_id: int) -> bool:
    # kicked members keep a soft-deleted row with status rejected
    return (
        await db.exec(
            select(RoomRequest.id).where(
                RoomRequest.room_id == room_id,
                RoomRequest.user_id == user_id,
                RoomRequest.status == RequestStatus.REJECTED,
            )
        )
    ).first() is not None


async def _ever_requested(db: AsyncSession, room_id: int, user_id: int) -> bool:
    return (
        await db.exec(
            select(RoomRequest.id).where(
                RoomRequest.room_id == room_id,
                RoomRequest.user_id == user_id,
            )
        )
    ).first() is not None


async def get_active_room(db: AsyncSession, room_id: int, *, lock: bool = False) -> Room:
    stmt = select(Room).where(Room.id == room_id, col(Room.deleted_at).is_(None))
    if lock:
        stmt = stmt.with_for_update()
    room = (await db.exec(stmt)).first()
    if room is None:
        raise RequestError(ErrorType.ROOM_NOT_FOUND)
    return room


async def find_active_hosted_room(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    *,
    exclude_room_id: int | None = None,
) -> Room | None:
    """Find a room the user hosts that is open or in progress and not expired."""
    now = now or utcnow()
    stmt = select(Room).where(
        Room.user_id == user_id,
        col(Room.deleted_at).is_(None),
        col(Room.status).in_([RoomStatus.OPEN, RoomStatus.IN_PROGRESS]),
    )
    if exclude_room_id is not None:
        stmt = stmt.where(Room.id != exclude_room_id)
    candidates = (await db.exec(stmt.order_by(col(Room.id)))).all()
    for room in candidates:
        if not check_room_expiration(room.status, room.expires_at, now).is_expired:
            return room
    return None


async def _ensure_no_other_active_room(
    db: AsyncSession, user_id: int, now: datetime | None = None, *, room_id: int | None = None
) -> None:
    if not settings.enforce_single_active_room:
        return
    active = await find_active_hosted_room(db, user_id, now, exclude_room_id=room_id)
    if active is not None:
        raise RequestError(ErrorType.ACTIVE_ROOM_EXISTS, {"room_id": active.id})


def _validate_slots(min_slot: int, max_slot: int) -> None:
    ceiling = settings.room_max_slot_ceiling
    if not (1 <= min_slot <= max_slot <= ceiling):
        raise RequestError(
            ErrorType.INVALID_SLOT_RANGE,
            {"min_slot": min_slot, "max_slot": max_slot, "ceiling": ceiling},
        )


async def _validate_ranks(db: AsyncSession, game_id: int, rank_min_id: int | None, rank_max_id: int | None) -> None:
    tiers: dict[int, int] = {}
    for rank_id in (rank_min_id, rank_max_id):
        if rank_id is None or rank_id in tiers:
            continue
        rank = (await db.exec(select(GameRank).where(GameRank.id == rank_id, GameRank.game_id == game_id))).first()
        if rank is None:
            raise RequestError(ErrorType.RANK_NOT_FOUND, {"rank_id": rank_id})
        tiers[rank_id] = rank.tier

    if rank_min_id is not None and rank_max_id is not None and tiers[rank_min_id] > tiers[rank_max_id]:
        raise RequestError(ErrorType.INVALID_RANK_RANGE)


_NULLABLE_ROOM_FIELDS = {"rank_min_id", "rank_max_id", "room_code", "scheduled_at"}


def _require_host(room: Room, actor_id: int, action: str) -> None:
    if room.user_id != actor_id:
        raise RequestError(ErrorType.NOT_ROOM_HOST, {"action": action})


def _require_creator(room: Room, actor_id: int, action: str) -> None:
    if room.user_id != actor_id:
        raise RequestError(ErrorType.NOT_ROOM_CREATOR, {"action": action})


async def create_room(
    db: AsyncSession,
    actor_id: int,
    data: CreateRoomReq,
    *,
    default_expires_at: datetime | None = None,
) -> Room:
    """Create a room with the actor as its host.

    The room row and the host's accepted ledger row are committed together.

    Args:
        db: Database session.
        actor_id: The creating user, who becomes the host.
        data: Room configuration.
        default_expires_at: Expiry used when ``data`` leaves it unset. The
            Discord surface passes now + lobby TTL; REST passes nothing.

    Raises:
        RequestError: Game or rank missing, bad slot or rank range, or the
            actor already hosts an active room.
    """
    game = await get_active_game(db, data.game_id)
    _validate_slots(data.min_slot, data.max_slot)
    await _validate_ranks(db, data.game_id, data.rank_min_id, data.rank_max_id)

    await _ensure_no_other_active_room(db, actor_id)

    room = Room(
        game_id=data.game_id,
        user_id=actor_id,
        min_slot=data.min_slot,
        max_slot=data.max_slot,
        rank_min_id=data.rank_min_id,
        rank_max_id=data.rank_max_id,
        type_play=data.type_play,
        room_type=data.room_type,
        room_code=data.room_code,
        status=RoomStatus.OPEN,
        scheduled_at=data.scheduled_at,
        expires_at=data.expires_at or default_expires_at,
    )
    db.add(room)
    try:
        await db.flush()
        db.add(
            RoomRequest(
                room_id=room.id,
                user_id=actor_id,
                status=RequestStatus.ACCEPTED,
                is_host=True,
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(room)
    logger.info(f"Room {room.id} ({game.title}) created by user {actor_id}")
    return room


async def join_room(db: AsyncSession, actor_id: int, room_id: int) -> JoinResult:
    """Join a room, or ask to join a private one.

    Public rooms accept immediately; private rooms queue a pending request
    for the host.

    Raises:
        RequestError: Room missing, not open, expired or full; the actor is
            the host; or the actor already has a pending, accepted or
            rejected request for this room.
    """
    now = utcnow()
    room = await get_active_room(db, room_id, lock=True)
    if room.status != RoomStatus.OPEN:
        raise RequestError(ErrorType.ROOM_NOT_OPEN)
    if check_room_expiration(room.status, room.expires_at, now).is_expired:
        raise RequestError(ErrorType.ROOM_EXPIRED)
    if room.user_id == actor_id:
        raise RequestError(ErrorType.HOST_CANNOT_JOIN)

    await _raise_for_existing_request(db, room_id, actor_id)

    if await participant_count(db, room_id) >= room.max_slot:
        raise RequestError(ErrorType.ROOM_FULL)

    auto_accept = room.room_type == RoomType.PUBLIC
    request = RoomRequest(
        room_id=room_id,
        user_id=actor_id,
        status=RequestStatus.ACCEPTED if auto_accept else RequestStatus.PENDING,
        is_host=False,
    )
    db.add(request)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await _raise_for_existing_request(db, room_id, actor_id)
        raise RequestError(ErrorType.REQUEST_PENDING)
    await db.refresh(request)

    logger.info(f"User {actor_id} {'joined' if auto_accept else 'requested to join'} room {room_id}")
    return JoinResult(request=request, message=JOINED_MESSAGE if auto_accept else REQUESTED_MESSAGE)


async def _raise_for_existing_request(db: AsyncSession, room_id: int, user_id: int) -> None:
    existing = await get_live_request(db, room_id, user_id)
    if existing is not None:
        match existing.status:
            case RequestStatus.PENDING:
                raise RequestError(ErrorType.REQUEST_PENDING)
            case RequestStatus.ACCEPTED:
                raise RequestError(ErrorType.REQUEST_ACCEPTED)
            case _:
                raise RequestError(ErrorType.REQUEST_REJECTED)
    if await _was_rejected(db, room_id, user_id):
        raise RequestError(ErrorType.REQUEST_REJECTED)


async def _review_request(db: AsyncSession, host_id: int, request_id: int, decision: RequestStatus) -> RoomRequest:
    request = (
        await db.exec(select(RoomRequest).where(RoomRequest.id == request_id, col(RoomRequest.deleted_at).is_(None)))
    ).first()
    if request is None:
        raise RequestError(ErrorType.ROOM_REQUEST_NOT_FOUND)

    verb = "approve" if decision == RequestStatus.ACCEPTED else "reject"
    room = await get_active_room(db, request.room_id, lock=True)
    _require_host(room, host_id, f"{verb} requests")
    if room.room_type == RoomType.PUBLIC:
        raise RequestError(ErrorType.PUBLIC_ROOM_NO_APPROVAL)
    if request.status != RequestStatus.PENDING:
        raise RequestError(ErrorType.REQUEST_ALREADY_RESOLVED, {"status": str(request.status)})

    if decision == RequestStatus.ACCEPTED and await participant_count(db, room.id) >= room.max_slot:
        raise RequestError(ErrorType.ROOM_FULL_ON_APPROVE)

    request.status = decision
    request.updated_at = utcnow()
    db.add(request)
    await db.commit()
    await db.refresh(request)
    logger.info(f"Host {host_id} {verb}d request {request_id} of user {request.user_id} in room {room.id}")
    return request


async def approve_request(db: AsyncSession, host_id: int, request_id: int) -> RoomRequest:
    """Accept a pending request in a private room, re-checking capacity under the room lock."""
    return await _review_request(db, host_id, request_id, RequestStatus.ACCEPTED)


async def reject_request(db: AsyncSession, host_id: int, request_id: int) -> RoomRequest:
    return await _review_request(db, host_id, request_id, RequestStatus.REJECTED)


async def kick_player(db: AsyncSession, host_id: int, room_id: int, target_id: int) -> KickResult:
    """Remove a member from the room for good.

    The target's row is soft-deleted and marked rejected, so any later join
    attempt by the same user hits the permanent rejection path.
    """
    room = await get_active_room(db, room_id, lock=True)
    _require_host(room, host_id, "kick players")
    if target_id == host_id:
        raise RequestError(ErrorType.CANNOT_KICK_SELF)

    request = await get_live_request(db, room_id, target_id)
    if request is None:
        raise RequestError(ErrorType.USER_NOT_IN_ROOM)
    if isinstance(request.membership, HostMembership):
        raise RequestError(ErrorType.CANNOT_KICK_HOST)

    request.status = RequestStatus.REJECTED
    request.updated_at = utcnow()
    request.soft_delete()
    db.add(request)
    await db.commit()
    await db.refresh(request)
    logger.info(f"Host {host_id} kicked user {target_id} from room {room_id}")
    return KickResult(request=request, room=room)


async def leave_room(db: AsyncSession, actor_id: int, room_id: int) -> RoomRequest:
    room = await get_active_room(db, room_id)
    request = await get_live_request(db, room_id, actor_id)
    if request is None:
        raise RequestError(ErrorType.NOT_ROOM_MEMBER)
    if isinstance(request.membership, HostMembership):
        raise RequestError(ErrorType.HOST_CANNOT_LEAVE)

    request.soft_delete()
    db.add(request)
    await db.commit()
    await db.refresh(request)
    logger.info(f"User {actor_id} left room {room.id}")
    return request


async def report_player(
    db: AsyncSession,
    reporter_id: int,
    room_id: int,
    reported_user_id: int,
    reason: str,
) -> PlayerReport:
    """File a report against another player of the same room.

    Both parties must hold, or have held, a ledger row in the room. A
    reporter without one is refused as a bad request; a reported user
    without one is a missing lookup.
    """
    await get_active_room(db, room_id)
    if reporter_id == reported_user_id:
        raise RequestError(ErrorType.CANNOT_REPORT_SELF)
    if not await _ever_requested(db, room_id, reporter_id):
        raise RequestError(ErrorType.REPORTER_NOT_MEMBER)
    if not await _ever_requested(db, room_id, reported_user_id):
        raise RequestError(ErrorType.REPORTED_NOT_IN_ROOM)

    duplicate = (
        await db.exec(
            select(PlayerReport.id).where(
                PlayerReport.room_id == room_id,
                PlayerReport.reporter_id == reporter_id,
                PlayerReport.reported_user_id == reported_user_id,
            )
        )
    ).first()
    if duplicate is not None:
        raise RequestError(ErrorType.DUPLICATE_REPORT)

    report = PlayerReport(
        room_id=room_id,
        reporter_id=reporter_id,
        reported_user_id=reported_user_id,
        reason=reason.strip(),
    )
    db.add(report)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise RequestError(ErrorType.DUPLICATE_REPORT)
    await db.refresh(report)
    logger.info(f"User {reporter_id} reported user {reported_user_id} in room {room_id}")
    return report


async def _settle_pending_requests(db: AsyncSession, room_id: int, max_slot: int, now: datetime) -> None:
    """Resolve the queue of a room turning public.

    Pending requests are accepted oldest first while seats remain. The rest
    are withdrawn as if the user had left, so they may join again later.
    """
    pending = (
        await db.exec(
            select(RoomRequest)
            .where(
                RoomRequest.room_id == room_id,
                RoomRequest.status == RequestStatus.PENDING,
                col(RoomRequest.deleted_at).is_(None),
            )
            .order_by(col(RoomRequest.created_at), col(RoomRequest.id))
        )
    ).all()
    free = max_slot - await participant_count(db, room_id)
    for request in pending:
        if free > 0:
            request.status = RequestStatus.ACCEPTED
            request.updated_at = now
            free -= 1
        else:
            request.soft_delete()
        db.add(request)
    if pending:
        logger.info(f"Room {room_id} went public: settled {len(pending)} pending request(s)")


async def update_room(db: AsyncSession, actor_id: int, room_id: int, data: UpdateRoomReq) -> Room:
    """Apply the fields present in ``data``; absent fields are left untouched."""
    room = await get_active_room(db, room_id, lock=True)
    _require_creator(room, actor_id, "update")

    changes = data.model_dump(exclude_unset=True)
    if changes.get("game_id") is not None:
        await get_active_game(db, changes["game_id"])
    changes = {key: value for key, value in changes.items() if value is not None or key in _NULLABLE_ROOM_FIELDS}

    min_slot = changes.get("min_slot", room.min_slot)
    max_slot = changes.get("max_slot", room.max_slot)
    _validate_slots(min_slot, max_slot)
    if "max_slot" in changes:
        current = await participant_count(db, room_id)
        if max_slot < current:
            raise RequestError(ErrorType.MAX_SLOT_BELOW_PARTICIPANTS, {"max_slot": max_slot, "participants": current})

    if {"game_id", "rank_min_id", "rank_max_id"} & changes.keys():
        await _validate_ranks(
            db,
            changes.get("game_id", room.game_id),
            changes.get("rank_min_id", room.rank_min_id),
            changes.get("rank_max_id", room.rank_max_id),
        )

    if changes.get("status") in (RoomStatus.OPEN, RoomStatus.IN_PROGRESS):
        await _ensure_no_other_active_room(db, actor_id, room_id=room_id)

    now = utcnow()
    if changes.get("room_type") == RoomType.PUBLIC and room.room_type != RoomType.PUBLIC:
        await _settle_pending_requests(db, room_id, max_slot, now)

    for key, value in changes.items():
        setattr(room, key, value)
    room.updated_at = now
    db.add(room)
    await db.commit()
    await db.refresh(room)
    logger.info(f"Room {room_id} updated by user {actor_id}: {', '.join(changes) or 'no changes'}")
    return room


async def delete_room(db: AsyncSession, actor_id: int, room_id: int) -> Room:
    """Soft-delete a room and every live ledger row attached to it."""
    room = await get_active_room(db, room_id, lock=True)
    _require_creator(room, actor_id, "delete")

    requests = (
        await db.exec(
            select(RoomRequest).where(RoomRequest.room_id == room_id, col(RoomRequest.deleted_at).is_(None))
        )
    ).all()
    for request in requests:
        request.soft_delete()
        db.add(request)
    room.soft_delete()
    db.add(room)
    await db.commit()
    await db.refresh(room)
    logger.info(f"Room {room_id} deleted by user {actor_id} ({len(requests)} membership row(s) closed)")
    return room


async def bump_room(db: AsyncSession, actor_id: int, room_id: int, now: datetime | None = None) -> Room:
    """Reset the room's expiry clock. Only the host may bump, and never a closed or completed room."""
    now = now or utcnow()
    room = await get_active_room(db, room_id, lock=True)
    _require_host(room, actor_id, "bump the room")
    if RoomStatus(room.status).is_terminal:
        raise RequestError(ErrorType.ROOM_NOT_BUMPABLE, {"status": str(room.status)})
    await _ensure_no_other_active_room(db, actor_id, now, room_id=room_id)

    room.expires_at = minutes_from_now(settings.room_lobby_ttl_minutes, now)
    room.last_bumped_at = now
    room.updated_at = now
    db.add(room)
    await db.commit()
    await db.refresh(room)
    logger.info(f"Room {room_id} bumped by host {actor_id}, expires at {room.expires_at}")
    return room


async def record_presentation(db: AsyncSession, room_id: int, channel_id: str, message_id: str) -> None:
    """Remember where the room's lobby message lives."""
    room = await db.get(Room, room_id)
    if room is None:
        return
    room.discord_channel_id = channel_id
    room.discord_message_id = message_id
    db.add(room)
    await db.commit()


async def close_expired_rooms(db: AsyncSession, now: datetime | None = None, grace: timedelta | None = None) -> int:
    """Mark open rooms whose expiry passed more than ``grace`` ago as closed.

    Read-time expiry checks stay authoritative; this only tidies up rooms
    nobody bumped for a long while.

    Returns:
        Number of rooms closed.
    """
    now = now or utcnow()
    cutoff = now - (grace if grace is not None else timedelta(minutes=settings.room_expiry_sweep_grace_minutes))
    rooms = (
        await db.exec(
            select(Room).where(
                col(Room.deleted_at).is_(None),
                Room.status == RoomStatus.OPEN,
                col(Room.expires_at).is_not(None),
                col(Room.expires_at) < cutoff,
            )
        )
    ).all()
    for room in rooms:
        room.status = RoomStatus.CLOSED
        room.updated_at = now
        db.add(room)
    if rooms:
        await db.commit()
    return len(rooms)


async def _briefs(db: AsyncSession, game_ids: set[int], user_ids: set[int]):
    games: dict[int, GameBrief] = {}
    users: dict[int, UserBrief] = {}
    if game_ids:
        for game in (await db.exec(select(Game).where(col(Game.id).in_(game_ids)))).all():
            games[game.id] = GameBrief.model_validate(game)
    if user_ids:
        for user in (await db.exec(select(User).where(col(User.id).in_(user_ids)))).all():
            users[user.id] = UserBrief.model_validate(user)
    return games, users


def _room_resp(room: Room, count: int, now: datetime, games: dict, users: dict) -> RoomResp:
    resp = RoomResp.model_validate(room)
    resp.game = games.get(room.game_id)
    resp.host = users.get(room.user_id)
    resp.participants_count = count
    resp.is_full = count >= room.max_slot
    resp.is_expired = check_room_expiration(room.status, room.expires_at, now).is_expired
    return resp


async def build_room_resp(db: AsyncSession, room: Room, *, include_participants: bool = False) -> RoomResp:
    """Render a room with its live participant count and derived flags."""
    members: list[RoomRequest] = []
    if include_participants:
        members = list(
            (
                await db.exec(
                    select(RoomRequest)
                    .where(
                        RoomRequest.room_id == room.id,
                        col(RoomRequest.deleted_at).is_(None),
                        _occupies_slot(),
                    )
                    .order_by(col(RoomRequest.created_at), col(RoomRequest.id))
                )
            ).all()
        )
    games, users = await _briefs(db, {room.game_id}, {room.user_id} | {m.user_id for m in members})
    resp = _room_resp(room, await participant_count(db, room.id), utcnow(), games, users)
    if include_participants:
        resp.participants = [
            RoomRequestResp.model_validate(m).model_copy(update={"user": users.get(m.user_id)}) for m in members
        ]
    return resp


async def get_room(db: AsyncSession, room_id: int) -> RoomResp:
    room = await get_active_room(db, room_id)
    return await build_room_resp(db, room, include_participants=True)


async def list_rooms(db: AsyncSession, query: RoomListQuery) -> dict:
    conditions = [col(Room.deleted_at).is_(None)]
    if query.game_id is not None:
        conditions.append(Room.game_id == query.game_id)
    if query.user_id is not None:
        conditions.append(Room.user_id == query.user_id)
    if query.status is not None:
        conditions.append(Room.status == query.status)
    if query.type_play is not None:
        conditions.append(Room.type_play == query.type_play)
    if query.room_type is not None:
        conditions.append(Room.room_type == query.room_type)

    order = asc if query.sort_order == "asc" else desc
    rooms = (
        await db.exec(
            select(Room)
            .where(*conditions)
            .order_by(order(col(getattr(Room, query.sort_by))), col(Room.id))
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
    ).all()
    total = (await db.exec(select(func.count()).select_from(Room).where(*conditions))).one()

    counts = await participant_counts(db, [room.id for room in rooms])
    games, users = await _briefs(db, {room.game_id for room in rooms}, {room.user_id for room in rooms})
    now = utcnow()
    return {
        "data": [_room_resp(room, counts.get(room.id, 0), now, games, users) for room in rooms],
        "meta": page_meta(total, query.page, query.limit),
    }


async def get_room_requests(db: AsyncSession, host_id: int, room_id: int) -> dict:
    """List live ledger rows of a room for its host, newest first, with per-status totals."""
    room = await get_active_room(db, room_id)
    _require_host(room, host_id, "view join requests")

    requests = (
        await db.exec(
            select(RoomRequest)
            .where(RoomRequest.room_id == room_id, col(RoomRequest.deleted_at).is_(None))
            .order_by(col(RoomRequest.created_at).desc(), col(RoomRequest.id).desc())
        )
    ).all()
    _, users = await _briefs(db, set(), {r.user_id for r in requests})
    return {
        "room_id": room_id,
        "total": len(requests),
        "pending": sum(1 for r in requests if r.status == RequestStatus.PENDING),
        "accepted": sum(1 for r in requests if r.status == RequestStatus.ACCEPTED),
        "rejected": sum(1 for r in requests if r.status == RequestStatus.REJECTED),
        "requests": [
            RoomRequestResp.model_validate(r).model_copy(update={"user": users.get(r.user_id)}) for r in requests
        ],
    }


def is_room_expired(room: Room, now: datetime | None = None) -> bool:
    return check_room_expiration(room.status, as_utc(room.expires_at), now or utcnow()).is_expired
