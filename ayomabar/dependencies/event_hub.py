from typing import Annotated

from ayomabar.service.event_hub import (
    EventHub as OriginalEventHub,
    hub as event_hub,
)

from fast_depends import Depends as DIDepends
from fastapi import Depends


def get_event_hub() -> OriginalEventHub:
    return event_hub


EventHub = Annotated[OriginalEventHub, Depends(get_event_hub), DIDepends(get_event_hub)]
