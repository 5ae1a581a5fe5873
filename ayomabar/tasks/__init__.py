"""Scheduled jobs. Importing this package registers them on the scheduler."""

# ruff: noqa: F401

from . import room_expiry
