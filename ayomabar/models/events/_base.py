from pydantic import BaseModel


class LobbyEvent(BaseModel):
    """Base class for every event emitted on the in-process event hub."""
