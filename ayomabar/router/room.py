"""Room lobby endpoints.

Thin REST adapter over ``ayomabar.service.room``. Every response is wrapped
in the ``{success, message, data, statusCode}`` envelope and lifecycle
events are emitted only after the engine has committed.
"""

from typing import Annotated

from ayomabar.database import PlayerReportResp, RoomRequestResp, User
from ayomabar.dependencies.database import Database
from ayomabar.dependencies.event_hub import EventHub
from ayomabar.dependencies.user import CurrentUser
from ayomabar.models.events import (
    MembershipChange,
    PlayerReportedEvent,
    RoomCreatedEvent,
    RoomDeletedEvent,
    RoomMembershipChangedEvent,
    RoomUpdatedEvent,
)
from ayomabar.models.model import envelope
from ayomabar.models.room import CreateRoomReq, ReportPlayerReq, RequestStatus, RoomListQuery, UpdateRoomReq
from ayomabar.service import room as room_service

from fastapi import APIRouter, Path, Query, status

router = APIRouter(prefix="/room", tags=["Rooms"])

RoomId = Annotated[int, Path(description="Room ID", gt=0)]


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    name="Create room",
    description="Create a room hosted by the current user. The host takes the first slot.",
)
async def create_room(db: Database, hub: EventHub, current_user: CurrentUser, body: CreateRoomReq):
    """Create a new room.

    Args:
        db: Database session dependency.
        hub: Event hub dependency.
        current_user: The authenticated user, who becomes the host.
        body: Room configuration.

    Returns:
        dict: Envelope with the created room.

    Raises:
        RequestError: If the game or ranks are invalid, the slot range is
            invalid, or the user already hosts an active room.
    """
    room = await room_service.create_room(db, current_user.id, body)
    hub.emit(RoomCreatedEvent(room_id=room.id, user_id=current_user.id))
    resp = await room_service.build_room_resp(db, room, include_participants=True)
    return envelope(resp, "Room created successfully", status.HTTP_201_CREATED)


@router.get("", name="List rooms", description="Paginated room list with filters and sorting.")
async def list_rooms(db: Database, query: Annotated[RoomListQuery, Query()]):
    result = await room_service.list_rooms(db, query)
    return envelope(result, "Rooms retrieved successfully")


@router.get("/{room_id}", name="Get room", description="Room details with its current participants.")
async def get_room(db: Database, room_id: RoomId):
    return envelope(await room_service.get_room(db, room_id), "Room retrieved successfully")


@router.put("/{room_id}", name="Update room", description="Update a room. Only fields present in the body change.")
async def update_room(db: Database, hub: EventHub, current_user: CurrentUser, room_id: RoomId, body: UpdateRoomReq):
    room = await room_service.update_room(db, current_user.id, room_id, body)
    hub.emit(RoomUpdatedEvent(room_id=room.id, user_id=current_user.id))
    resp = await room_service.build_room_resp(db, room, include_participants=True)
    return envelope(resp, "Room updated successfully")


@router.delete("/{room_id}", name="Delete room", description="Soft-delete a room together with its memberships.")
async def delete_room(db: Database, hub: EventHub, current_user: CurrentUser, room_id: RoomId):
    await room_service.delete_room(db, current_user.id, room_id)
    hub.emit(RoomDeletedEvent(room_id=room_id, user_id=current_user.id))
    return envelope({"message": "Room deleted successfully"}, "Room deleted successfully")


@router.post(
    "/{room_id}/join",
    status_code=status.HTTP_201_CREATED,
    name="Join room",
    description="Join a public room immediately, or send a join request to a private room's host.",
)
async def join_room(db: Database, hub: EventHub, current_user: CurrentUser, room_id: RoomId):
    """Join a room or request to join it.

    Args:
        db: Database session dependency.
        hub: Event hub dependency.
        current_user: The joining user.
        room_id: Target room.

    Returns:
        dict: Envelope with the new membership row.

    Raises:
        RequestError: If the room is missing, closed, expired or full, the
            user is its host, or already has a request for it.
    """
    result = await room_service.join_room(db, current_user.id, room_id)
    change = (
        MembershipChange.JOINED if result.request.status == RequestStatus.ACCEPTED else MembershipChange.REQUESTED
    )
    hub.emit(RoomMembershipChangedEvent(room_id=room_id, user_id=current_user.id, change=change))
    return envelope(RoomRequestResp.model_validate(result.request), result.message, status.HTTP_201_CREATED)


@router.delete("/{room_id}/leave", name="Leave room", description="Leave a room you have joined or requested.")
async def leave_room(db: Database, hub: EventHub, current_user: CurrentUser, room_id: RoomId):
    await room_service.leave_room(db, current_user.id, room_id)
    hub.emit(RoomMembershipChangedEvent(room_id=room_id, user_id=current_user.id, change=MembershipChange.LEFT))
    return envelope({"message": "Successfully left the room"}, "Successfully left the room")


@router.get(
    "/{room_id}/requests",
    name="Get room requests",
    description="All live join requests of a room, newest first. Host only.",
)
async def get_room_requests(db: Database, current_user: CurrentUser, room_id: RoomId):
    result = await room_service.get_room_requests(db, current_user.id, room_id)
    return envelope(result, "Room requests retrieved successfully")


async def _review(db: Database, hub: EventHub, current_user: User, request_id: int, approve: bool):
    if approve:
        request = await room_service.approve_request(db, current_user.id, request_id)
    else:
        request = await room_service.reject_request(db, current_user.id, request_id)
    hub.emit(
        RoomMembershipChangedEvent(
            room_id=request.room_id,
            user_id=request.user_id,
            change=MembershipChange.APPROVED if approve else MembershipChange.REJECTED,
        )
    )
    return RoomRequestResp.model_validate(request)


@router.put(
    "/request/{request_id}/approve",
    name="Approve room request",
    description="Accept a pending join request of a private room. Host only.",
)
async def approve_request(
    db: Database,
    hub: EventHub,
    current_user: CurrentUser,
    request_id: Annotated[int, Path(description="Room request ID", gt=0)],
):
    resp = await _review(db, hub, current_user, request_id, approve=True)
    return envelope(resp, "Room request approved successfully")


@router.put(
    "/request/{request_id}/reject",
    name="Reject room request",
    description="Reject a pending join request of a private room. Host only.",
)
async def reject_request(
    db: Database,
    hub: EventHub,
    current_user: CurrentUser,
    request_id: Annotated[int, Path(description="Room request ID", gt=0)],
):
    resp = await _review(db, hub, current_user, request_id, approve=False)
    return envelope(resp, "Room request rejected successfully")


@router.delete(
    "/{room_id}/kick/{user_id}",
    name="Kick player",
    description="Remove a member from the room. A kicked user cannot rejoin. Host only.",
)
async def kick_player(
    db: Database,
    hub: EventHub,
    current_user: CurrentUser,
    room_id: RoomId,
    user_id: Annotated[int, Path(description="User to kick", gt=0)],
):
    await room_service.kick_player(db, current_user.id, room_id, user_id)
    hub.emit(RoomMembershipChangedEvent(room_id=room_id, user_id=user_id, change=MembershipChange.KICKED))
    target = await db.get(User, user_id)
    message = f"Successfully kicked {target.username if target else 'player'} from the room"
    return envelope({"message": message}, message)


@router.post(
    "/{room_id}/report/{user_id}",
    status_code=status.HTTP_201_CREATED,
    name="Report player",
    description="Report another player of the same room.",
)
async def report_player(
    db: Database,
    hub: EventHub,
    current_user: CurrentUser,
    room_id: RoomId,
    user_id: Annotated[int, Path(description="User to report", gt=0)],
    body: ReportPlayerReq,
):
    report = await room_service.report_player(db, current_user.id, room_id, user_id, body.reason)
    hub.emit(PlayerReportedEvent(room_id=room_id, user_id=current_user.id, reported_user_id=user_id))
    target = await db.get(User, user_id)
    message = f"Successfully reported {target.username if target else 'player'}"
    return envelope(PlayerReportResp.model_validate(report), message, status.HTTP_201_CREATED)
