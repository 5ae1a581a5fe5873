"""initial schema: users, games, rooms, room requests, player reports

Revision ID: 5c1f0e7a9b21
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
import sqlmodel

# revision identifiers, used by Alembic.
revision: str = "5c1f0e7a9b21"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _enum(*values: str, name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=20)


def _timestamps(with_deleted: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]
    if with_deleted:
        columns.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sqlmodel.AutoString(length=100), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password", sqlmodel.AutoString(length=255), nullable=True),
        sa.Column("avatar", sqlmodel.AutoString(length=500), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sqlmodel.AutoString(length=100), nullable=True),
        sa.Column("playstyle", sqlmodel.AutoString(length=100), nullable=True),
        sa.Column("roles", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_socialites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("socialite_name", sqlmodel.AutoString(length=50), nullable=False),
        sa.Column("socialite_id", sqlmodel.AutoString(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("socialite_name", "socialite_id", name="uq_user_socialites_identity"),
    )
    op.create_index("ix_user_socialites_user_id", "user_socialites", ["user_id"])

    op.create_table(
        "games",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("genre", sqlmodel.AutoString(length=100), nullable=True),
        sa.Column("platform", sqlmodel.AutoString(length=100), nullable=True),
        sa.Column("release_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_games_title", "games", ["title"])
    op.create_index("ix_games_deleted_at", "games", ["deleted_at"])

    op.create_table(
        "game_ranks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("name", sqlmodel.AutoString(length=100), nullable=False),
        sa.Column("tier", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_game_ranks_game_id", "game_ranks", ["game_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("min_slot", sa.Integer(), nullable=False),
        sa.Column("max_slot", sa.Integer(), nullable=False),
        sa.Column("rank_min_id", sa.Integer(), sa.ForeignKey("game_ranks.id"), nullable=True),
        sa.Column("rank_max_id", sa.Integer(), sa.ForeignKey("game_ranks.id"), nullable=True),
        sa.Column(
            "type_play", _enum("casual", "competitive", "custom", "tournament", name="typeplay"), nullable=False
        ),
        sa.Column("room_type", _enum("public", "private", name="roomtype"), nullable=False),
        sa.Column("room_code", sa.String(length=100), nullable=True),
        sa.Column(
            "status", _enum("open", "closed", "in-progress", "completed", name="roomstatus"), nullable=False
        ),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("discord_message_id", sa.String(length=32), nullable=True),
        sa.Column("discord_channel_id", sa.String(length=32), nullable=True),
        sa.Column("last_bumped_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_rooms_game_id", "rooms", ["game_id"])
    op.create_index("ix_rooms_user_id", "rooms", ["user_id"])
    op.create_index("ix_rooms_status", "rooms", ["status"])
    op.create_index("ix_rooms_expires_at", "rooms", ["expires_at"])
    op.create_index("ix_rooms_deleted_at", "rooms", ["deleted_at"])

    op.create_table(
        "room_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", _enum("pending", "accepted", "rejected", name="requeststatus"), nullable=False),
        sa.Column("is_host", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("room_id", "user_id", "active", name="uq_room_requests_live_member"),
    )
    op.create_index("ix_room_requests_room_id", "room_requests", ["room_id"])
    op.create_index("ix_room_requests_user_id", "room_requests", ["user_id"])

    op.create_table(
        "player_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("reporter_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reported_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", _enum("pending", name="reportstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("room_id", "reporter_id", "reported_user_id", name="uq_player_reports_triple"),
    )
    op.create_index("ix_player_reports_room_id", "player_reports", ["room_id"])
    op.create_index("ix_player_reports_reported_user_id", "player_reports", ["reported_user_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("player_reports")
    op.drop_table("room_requests")
    op.drop_table("rooms")
    op.drop_table("game_ranks")
    op.drop_table("games")
    op.drop_table("user_socialites")
    op.drop_table("users")
