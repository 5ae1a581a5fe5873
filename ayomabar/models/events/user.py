from ._base import LobbyEvent


class UserRegisteredEvent(LobbyEvent):
    """Event fired when a user registers an account, over REST or by first Discord contact."""

    user_id: int
    username: str
    source: str
