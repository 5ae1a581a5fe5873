"""Shared column helpers for the ORM layer."""

from datetime import datetime
from enum import StrEnum

from ayomabar.helpers import utcnow

from sqlalchemy import Enum as SAEnum
from sqlmodel import Column, DateTime, Field


def str_enum_column(enum_cls: type[StrEnum], *, nullable: bool = False, index: bool = False) -> Column:
    """A VARCHAR column storing enum values (not names), loaded back as enum members."""
    return Column(
        SAEnum(
            enum_cls,
            values_callable=lambda e: [member.value for member in e],
            native_enum=False,
            length=20,
            validate_strings=True,
        ),
        nullable=nullable,
        index=index,
    )


def created_at_field() -> datetime:
    return Field(sa_column=Column(DateTime(timezone=True), nullable=False), default_factory=utcnow)


def updated_at_field() -> datetime:
    return Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, onupdate=utcnow),
        default_factory=utcnow,
    )


def nullable_datetime_field(index: bool = False) -> datetime | None:
    return Field(sa_column=Column(DateTime(timezone=True), nullable=True, index=index), default=None)
