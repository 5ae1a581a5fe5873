"""Room lobby database models.

A ``Room`` is one matchmaking lobby. Membership lives in ``RoomRequest``
rows (one live row per user per room, the host's row included) and
``PlayerReport`` records complaints raised inside a room.

Participant counts are never stored; they are derived from live accepted
requests every time they are needed.
"""

from datetime import datetime

from ayomabar.helpers import utcnow
from ayomabar.models.model import UTCBaseModel
from ayomabar.models.room import (
    HostMembership,
    Membership,
    ParticipantMembership,
    ReportStatus,
    RequestStatus,
    RoomStatus,
    RoomType,
    TypePlay,
)

from ._base import created_at_field, nullable_datetime_field, str_enum_column, updated_at_field
from .game import GameBrief
from .user import UserBrief

from sqlmodel import Boolean, Column, Field, ForeignKey, Integer, SQLModel, String, Text, UniqueConstraint


class Room(SQLModel, table=True):
    __tablename__: str = "rooms"

    id: int | None = Field(default=None, primary_key=True)
    game_id: int = Field(sa_column=Column(Integer, ForeignKey("games.id"), nullable=False, index=True))
    # creator and host; never reassigned
    user_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id"), nullable=False, index=True))
    min_slot: int = Field(default=1)
    max_slot: int = Field(default=4)
    rank_min_id: int | None = Field(
        sa_column=Column(Integer, ForeignKey("game_ranks.id"), nullable=True), default=None
    )
    rank_max_id: int | None = Field(
        sa_column=Column(Integer, ForeignKey("game_ranks.id"), nullable=True), default=None
    )
    type_play: TypePlay = Field(sa_column=str_enum_column(TypePlay), default=TypePlay.CASUAL)
    room_type: RoomType = Field(sa_column=str_enum_column(RoomType), default=RoomType.PUBLIC)
    room_code: str | None = Field(sa_column=Column(String(100), nullable=True), default=None)
    status: RoomStatus = Field(sa_column=str_enum_column(RoomStatus, index=True), default=RoomStatus.OPEN)
    scheduled_at: datetime | None = nullable_datetime_field()
    expires_at: datetime | None = nullable_datetime_field(index=True)

    discord_message_id: str | None = Field(sa_column=Column(String(32), nullable=True), default=None)
    discord_channel_id: str | None = Field(sa_column=Column(String(32), nullable=True), default=None)
    last_bumped_at: datetime | None = nullable_datetime_field()

    created_at: datetime = created_at_field()
    updated_at: datetime = updated_at_field()
    deleted_at: datetime | None = nullable_datetime_field(index=True)

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()


class RoomRequest(SQLModel, table=True):
    """One user's membership in one room.

    ``active`` is True while the row is live and NULL once it is soft-deleted.
    The unique key over (room_id, user_id, active) therefore allows any number
    of historical rows but only one live row per user and room.
    """

    __tablename__: str = "room_requests"
    __table_args__ = (UniqueConstraint("room_id", "user_id", "active", name="uq_room_requests_live_member"),)

    id: int | None = Field(default=None, primary_key=True)
    room_id: int = Field(sa_column=Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True))
    user_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id"), nullable=False, index=True))
    status: RequestStatus = Field(sa_column=str_enum_column(RequestStatus), default=RequestStatus.PENDING)
    is_host: bool = Field(default=False)
    active: bool | None = Field(sa_column=Column(Boolean, nullable=True, default=True), default=True)
    created_at: datetime = created_at_field()
    updated_at: datetime = updated_at_field()
    deleted_at: datetime | None = nullable_datetime_field()

    @property
    def membership(self) -> Membership:
        if self.is_host:
            return HostMembership(self.user_id)
        return ParticipantMembership(self.user_id, RequestStatus(self.status))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()
        self.active = None


class PlayerReport(SQLModel, table=True):
    __tablename__: str = "player_reports"
    __table_args__ = (
        UniqueConstraint("room_id", "reporter_id", "reported_user_id", name="uq_player_reports_triple"),
    )

    id: int | None = Field(default=None, primary_key=True)
    room_id: int = Field(sa_column=Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True))
    reporter_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id"), nullable=False))
    reported_user_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id"), nullable=False, index=True))
    reason: str = Field(sa_column=Column(Text, nullable=False))
    status: ReportStatus = Field(sa_column=str_enum_column(ReportStatus), default=ReportStatus.PENDING)
    created_at: datetime = created_at_field()


class RoomRequestResp(UTCBaseModel):
    id: int
    room_id: int
    user_id: int
    status: RequestStatus
    is_host: bool
    created_at: datetime
    updated_at: datetime
    user: UserBrief | None = None


class RoomResp(UTCBaseModel):
    id: int
    game_id: int
    user_id: int
    min_slot: int
    max_slot: int
    rank_min_id: int | None = None
    rank_max_id: int | None = None
    type_play: TypePlay
    room_type: RoomType
    room_code: str | None = None
    status: RoomStatus
    scheduled_at: datetime | None = None
    expires_at: datetime | None = None
    last_bumped_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    game: GameBrief | None = None
    host: UserBrief | None = None
    participants_count: int | None = None
    is_full: bool | None = None
    is_expired: bool | None = None
    participants: list[RoomRequestResp] | None = None


class PlayerReportResp(UTCBaseModel):
    id: int
    room_id: int
    reporter_id: int
    reported_user_id: int
    reason: str
    status: ReportStatus
    created_at: datetime
