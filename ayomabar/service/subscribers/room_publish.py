from ayomabar.config import settings
from ayomabar.dependencies.database import Redis
from ayomabar.log import log
from ayomabar.models.events import RoomEvent
from ayomabar.service.event_hub import listen

from redis.exceptions import RedisError

logger = log("RoomPublish")


def channel_for(event: RoomEvent) -> str:
    return f"lobby:room:{event.kind}"


@listen
async def publish_room_event(event: RoomEvent, redis: Redis) -> None:
    """Relay room lifecycle events to Redis pub/sub as ``<room_id>:<user_id>``."""
    if not settings.enable_room_event_publish:
        return
    try:
        await redis.publish(channel_for(event), f"{event.room_id}:{event.user_id}")
    except RedisError as e:
        logger.warning(f"Failed to publish {event.kind} of room {event.room_id}: {e}")
