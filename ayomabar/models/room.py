from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Literal

from ayomabar.helpers import as_utc

from pydantic import BaseModel, ConfigDict, Field


class TypePlay(StrEnum):
    CASUAL = "casual"
    COMPETITIVE = "competitive"
    CUSTOM = "custom"
    TOURNAMENT = "tournament"


class RoomType(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"


class RoomStatus(StrEnum):
    OPEN = "open"
    CLOSED = "closed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in {RoomStatus.CLOSED, RoomStatus.COMPLETED}

    @property
    def is_active(self) -> bool:
        return self in {RoomStatus.OPEN, RoomStatus.IN_PROGRESS}


class RequestStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ReportStatus(StrEnum):
    PENDING = "pending"


@dataclass(frozen=True)
class HostMembership:
    """The creator's permanent seat. Never kicked, never leaves, never reviewed."""

    user_id: int


@dataclass(frozen=True)
class ParticipantMembership:
    user_id: int
    status: RequestStatus


type Membership = HostMembership | ParticipantMembership


class CreateRoomReq(BaseModel):
    game_id: int = Field(gt=0)
    min_slot: int = Field(default=1, ge=1, le=100)
    max_slot: int = Field(default=4, ge=1, le=100)
    rank_min_id: int | None = Field(default=None, gt=0)
    rank_max_id: int | None = Field(default=None, gt=0)
    type_play: TypePlay = TypePlay.CASUAL
    room_type: RoomType = RoomType.PUBLIC
    room_code: str | None = Field(default=None, max_length=100)
    scheduled_at: datetime | None = None
    expires_at: datetime | None = None


class UpdateRoomReq(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    game_id: int | None = Field(default=None, gt=0)
    min_slot: int | None = Field(default=None, ge=1, le=100)
    max_slot: int | None = Field(default=None, ge=1, le=100)
    rank_min_id: int | None = Field(default=None, gt=0)
    rank_max_id: int | None = Field(default=None, gt=0)
    type_play: TypePlay | None = None
    room_type: RoomType | None = None
    room_code: str | None = Field(default=None, max_length=100)
    status: RoomStatus | None = None
    scheduled_at: datetime | None = None


class ReportPlayerReq(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str = Field(min_length=10, max_length=500)


RoomSortField = Literal["created_at", "updated_at", "scheduled_at", "status"]


class RoomListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    game_id: int | None = None
    user_id: int | None = None
    status: RoomStatus | None = None
    type_play: TypePlay | None = None
    room_type: RoomType | None = None
    sort_by: RoomSortField = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


@dataclass(frozen=True)
class ExpirationInfo:
    is_expired: bool
    time_until_expiration: timedelta | None = None


def check_room_expiration(status: RoomStatus | str, expires_at: datetime | None, now: datetime) -> ExpirationInfo:
    """Derive whether a room still accepts interaction.

    Closed and completed rooms are always expired. Otherwise a room expires
    once ``now`` reaches ``expires_at``; a room without an expiry never does.
    Always evaluate against a fresh ``now``; the result must not be stored.
    """
    if RoomStatus(status).is_terminal:
        return ExpirationInfo(is_expired=True)
    if expires_at is None:
        return ExpirationInfo(is_expired=False)

    remaining = as_utc(expires_at) - now  # pyright: ignore[reportOperatorIssue]
    if remaining <= timedelta(0):
        return ExpirationInfo(is_expired=True, time_until_expiration=timedelta(0))
    return ExpirationInfo(is_expired=False, time_until_expiration=remaining)
