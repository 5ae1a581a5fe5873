from enum import StrEnum

from ._base import LobbyEvent


class MembershipChange(StrEnum):
    JOINED = "joined"
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    KICKED = "kicked"
    LEFT = "left"


class RoomEvent(LobbyEvent):
    room_id: int
    user_id: int
    # "rest" or "discord"; the Discord adapter refreshes its own message
    source: str = "rest"

    @property
    def kind(self) -> str:
        raise NotImplementedError


class RoomCreatedEvent(RoomEvent):
    """Event fired after a room and its host seat are committed."""

    @property
    def kind(self) -> str:
        return "created"


class RoomUpdatedEvent(RoomEvent):
    @property
    def kind(self) -> str:
        return "updated"


class RoomDeletedEvent(RoomEvent):
    @property
    def kind(self) -> str:
        return "deleted"


class RoomBumpedEvent(RoomEvent):
    """Event fired after the host resets a room's expiry clock."""

    @property
    def kind(self) -> str:
        return "bumped"


class RoomMembershipChangedEvent(RoomEvent):
    """Event fired when a room's ledger changes.

    ``user_id`` is the member whose row changed, not necessarily the actor.
    """

    change: MembershipChange

    @property
    def kind(self) -> str:
        return f"membership.{self.change}"


class PlayerReportedEvent(RoomEvent):
    reported_user_id: int

    @property
    def kind(self) -> str:
        return "reported"
