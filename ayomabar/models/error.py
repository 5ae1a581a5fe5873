from enum import Enum, StrEnum
from typing import Any

from fastapi import HTTPException


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"

    @classmethod
    def from_status(cls, status_code: int) -> "ErrorKind":
        return {
            404: cls.NOT_FOUND,
            403: cls.FORBIDDEN,
            400: cls.BAD_REQUEST,
            409: cls.CONFLICT,
            401: cls.UNAUTHORIZED,
        }.get(status_code, cls.INTERNAL)


class ErrorType(Enum):
    """
    All possible error types that could be passed to the client.

    Each entry is a tuple of the message key, status code and fallback message. The fallback message may contain
    ``{placeholders}`` that are filled from the ``extra`` details given to ``RequestError``.

    Both the REST and the Discord surface render these, so keep messages surface-neutral.
    """

    UNKNOWN = ("unknown", 500, "An unexpected error occurred")

    # auth
    NOT_AUTHENTICATED = ("not_authenticated", 401, "Authentication required")
    INVALID_TOKEN = ("invalid_token", 401, "Invalid or expired token")
    INVALID_REFRESH_TOKEN = ("invalid_refresh_token", 401, "Invalid refresh token")
    INVALID_CREDENTIALS = ("invalid_credentials", 401, "Invalid credentials")
    EMAIL_TAKEN = ("email_taken", 409, "Email already exists")
    USERNAME_TAKEN = ("username_taken", 409, "Username already exists")
    ADMIN_REQUIRED = ("admin_required", 403, "Insufficient permissions")

    # lookups
    USER_NOT_FOUND = ("user_not_found", 404, "User not found")
    GAME_NOT_FOUND = ("game_not_found", 404, "Game not found")
    RANK_NOT_FOUND = ("rank_not_found", 404, "Rank {rank_id} not found for this game")
    ROOM_NOT_FOUND = ("room_not_found", 404, "Room not found")
    ROOM_REQUEST_NOT_FOUND = ("room_request_not_found", 404, "Room request not found")

    # room configuration
    INVALID_SLOT_RANGE = (
        "invalid_slot_range",
        400,
        "Slots must satisfy 1 <= min ({min_slot}) <= max ({max_slot}) <= {ceiling}",
    )
    INVALID_RANK_RANGE = ("invalid_rank_range", 400, "Minimum rank must not be above maximum rank")
    MAX_SLOT_BELOW_PARTICIPANTS = (
        "max_slot_below_participants",
        400,
        "Max slots ({max_slot}) cannot be lower than the current number of players ({participants})",
    )
    ACTIVE_ROOM_EXISTS = (
        "active_room_exists",
        409,
        "You already host an active room (#{room_id}). Close or delete it before creating another one",
    )
    NOT_ROOM_CREATOR = ("not_room_creator", 403, "You are not authorized to {action} this room")

    # joining
    ROOM_NOT_OPEN = ("room_not_open", 400, "Room is not open for joining")
    ROOM_EXPIRED = ("room_expired", 400, "Room has expired and is no longer open for joining")
    ROOM_FULL = ("room_full", 400, "Room is full")
    ROOM_FULL_ON_APPROVE = ("room_full", 400, "Room is full, cannot accept more players")
    HOST_CANNOT_JOIN = ("host_cannot_join", 400, "You are the host of this room")
    REQUEST_PENDING = (
        "request_pending",
        409,
        "You have already requested to join this room. Please wait for the host to review your request",
    )
    REQUEST_ACCEPTED = ("request_accepted", 409, "You are already a member of this room")
    REQUEST_REJECTED = (
        "request_rejected",
        409,
        "Your request to join this room was rejected. You cannot request to join this room again",
    )

    # host moderation
    NOT_ROOM_HOST = ("not_room_host", 403, "Only the room host can {action}")
    PUBLIC_ROOM_NO_APPROVAL = ("public_room_no_approval", 400, "Public rooms do not require manual approval")
    REQUEST_ALREADY_RESOLVED = ("request_already_resolved", 400, "This request has already been {status}")
    CANNOT_KICK_SELF = ("cannot_kick_self", 400, "You cannot kick yourself from your own room")
    USER_NOT_IN_ROOM = ("user_not_in_room", 404, "User is not in this room")
    CANNOT_KICK_HOST = ("cannot_kick_host", 403, "Cannot kick another host from the room")

    # leaving
    NOT_ROOM_MEMBER = ("not_room_member", 404, "You are not a member of this room")
    HOST_CANNOT_LEAVE = ("host_cannot_leave", 403, "Host cannot leave the room. Please delete the room instead")

    # reports
    CANNOT_REPORT_SELF = ("cannot_report_self", 400, "You cannot report yourself")
    REPORTER_NOT_MEMBER = ("reporter_not_member", 400, "You must be a member of this room to report players")
    REPORTED_NOT_IN_ROOM = ("reported_not_in_room", 404, "The reported user is not in this room")
    DUPLICATE_REPORT = ("duplicate_report", 400, "You have already reported this player in this room")

    # presentation
    ROOM_NOT_BUMPABLE = ("room_not_bumpable", 400, "Cannot bump a {status} room")


class RequestError(HTTPException):
    """
    A wrapper for API errors to simplify response composition.

    Attributes:
        error_type (ErrorType): The error type this instance was built from.
        msg_key (str): The key of the error message for localization.
        status_code (int): The status code to respond with.
        fallback_msg (str): The message template for clients without localization support.
        details (dict[str, Any]): Extra details, also used to fill the message template.

    Args:
        error_type (ErrorType): The error type to initialize from.
        extra (dict[str, Any] | None): Details to include in the response.
        status_code (int): Overrides the default one given by the error type.
        headers (dict[str, str] | None): Will be attached to the response header.
    """

    def __init__(
        self,
        error_type: ErrorType,
        extra: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.error_type = error_type
        self.msg_key, default_status, self.fallback_msg = error_type.value
        self.details = extra or {}

        final_status = status_code if status_code is not None else default_status
        super().__init__(final_status, detail=self.formatted_message, headers=headers)

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.from_status(self.status_code)

    @property
    def formatted_message(self) -> str:
        try:
            return self.fallback_msg.format(**self.details)
        except (KeyError, IndexError):
            return self.fallback_msg

    def __str__(self) -> str:
        return self.formatted_message
