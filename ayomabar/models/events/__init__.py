from ._base import LobbyEvent
from .room import (
    MembershipChange,
    PlayerReportedEvent,
    RoomBumpedEvent,
    RoomCreatedEvent,
    RoomDeletedEvent,
    RoomEvent,
    RoomMembershipChangedEvent,
    RoomUpdatedEvent,
)
from .user import UserRegisteredEvent

__all__ = [
    "LobbyEvent",
    "MembershipChange",
    "PlayerReportedEvent",
    "RoomBumpedEvent",
    "RoomCreatedEvent",
    "RoomDeletedEvent",
    "RoomEvent",
    "RoomMembershipChangedEvent",
    "RoomUpdatedEvent",
    "UserRegisteredEvent",
]
