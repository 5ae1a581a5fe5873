"""Logging setup.

All output goes through loguru. Records emitted by the standard library
``logging`` module (uvicorn, SQLAlchemy, apscheduler, httpx) are intercepted
and re-emitted through loguru so every line shares one format.
"""

import inspect
import logging
import sys

from ayomabar.config import settings

from loguru import logger

logger.remove()
logger.add(
    sys.stderr,
    level=settings.log_level,
    colorize=True,
    format=(
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> [<level>{level}</level>] "
        "| <cyan>{extra[name]}</cyan> | {message}"
    ),
)
logger.configure(extra={"name": "Main"})


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.bind(name=record.name).opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access", "apscheduler"):
    _std = logging.getLogger(_name)
    _std.handlers = [InterceptHandler()]
    _std.propagate = False
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


def log(name: str):
    """Get a logger bound to a component name."""
    return logger.bind(name=name)


def system_logger(name: str):
    return logger.bind(name=f"System:{name}")


discord_logger = log("Discord")
