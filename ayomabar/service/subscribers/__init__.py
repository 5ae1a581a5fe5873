"""Event hub listeners. Importing this package subscribes them."""

# ruff: noqa: F401

from . import lobby_refresh, room_publish
