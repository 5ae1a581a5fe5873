from __future__ import annotations

from .background_task import BackgroundTasks, bg_tasks
from .pagination import page_meta
from .time import as_utc, discord_timestamp, minutes_from_now, unix_timestamp, utcnow

__all__ = [
    "BackgroundTasks",
    "as_utc",
    "bg_tasks",
    "discord_timestamp",
    "minutes_from_now",
    "page_meta",
    "unix_timestamp",
    "utcnow",
]
