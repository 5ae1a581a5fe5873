"""Expired room reconciliation.

Closes open rooms whose lobby expired long ago. Expiry is still checked at
read time everywhere; this job only keeps listings tidy.
"""

from ayomabar.config import settings
from ayomabar.dependencies.database import with_db
from ayomabar.dependencies.scheduler import get_scheduler
from ayomabar.log import log
from ayomabar.service.room import close_expired_rooms

logger = log("RoomExpiry")


@get_scheduler().scheduled_job(
    "interval",
    id="close_expired_rooms",
    minutes=settings.room_expiry_sweep_interval_minutes,
)
async def close_expired_rooms_job() -> int:
    if not settings.enable_room_expiry_sweep:
        return 0
    async with with_db() as session:
        closed = await close_expired_rooms(session)
    if closed:
        logger.success(f"Closed {closed} expired room(s)")
    return closed
