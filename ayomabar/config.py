from typing import Annotated

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # database
    mysql_host: Annotated[str, Field(default="localhost"), "database"]
    mysql_port: Annotated[int, Field(default=3306), "database"]
    mysql_database: Annotated[str, Field(default="ayomabar"), "database"]
    mysql_user: Annotated[str, Field(default="ayomabar"), "database"]
    mysql_password: Annotated[str, Field(default="password"), "database"]
    database_dsn: Annotated[str | None, Field(default=None), "database"]
    redis_url: Annotated[str, Field(default="redis://127.0.0.1:6379"), "database"]

    @property
    def database_url(self) -> str:
        if self.database_dsn:
            return self.database_dsn
        return f"mysql+aiomysql://{self.mysql_user}:{self.mysql_password}@{self.mysql_host}:{self.mysql_port}/{self.mysql_database}"

    # jwt
    secret_key: Annotated[str, Field(default="your_jwt_secret_here", alias="jwt_secret_key"), "jwt"]
    refresh_secret_key: Annotated[
        str, Field(default="your_jwt_refresh_secret_here", alias="jwt_refresh_secret_key"), "jwt"
    ]
    algorithm: Annotated[str, Field(default="HS256", alias="jwt_algorithm"), "jwt"]
    access_token_expire_minutes: Annotated[int, Field(default=15), "jwt"]
    refresh_token_expire_minutes: Annotated[int, Field(default=10080), "jwt"]  # 7 days

    # server
    host: Annotated[str, Field(default="0.0.0.0"), "server"]  # noqa: S104
    port: Annotated[int, Field(default=3000), "server"]
    debug: Annotated[bool, Field(default=False), "server"]
    cors_urls: Annotated[list[HttpUrl], Field(default=[]), "server"]

    # logging
    log_level: Annotated[str, Field(default="INFO"), "logging"]

    # monitoring
    sentry_dsn: Annotated[HttpUrl | None, Field(default=None), "monitoring"]

    # room
    room_max_slot_ceiling: Annotated[int, Field(default=100), "room"]
    room_lobby_ttl_minutes: Annotated[int, Field(default=5), "room"]
    enforce_single_active_room: Annotated[bool, Field(default=True), "room"]
    enable_room_event_publish: Annotated[bool, Field(default=False), "room"]

    # discord
    discord_bot_token: Annotated[str, Field(default=""), "discord"]
    discord_application_id: Annotated[str, Field(default=""), "discord"]
    discord_public_key: Annotated[str, Field(default=""), "discord"]
    discord_development_guild_id: Annotated[str | None, Field(default=None), "discord"]
    discord_api_base_url: Annotated[str, Field(default="https://discord.com/api/v10"), "discord"]

    # scheduler
    enable_room_expiry_sweep: Annotated[bool, Field(default=True), "scheduler"]
    room_expiry_sweep_interval_minutes: Annotated[int, Field(default=10), "scheduler"]
    room_expiry_sweep_grace_minutes: Annotated[int, Field(default=60), "scheduler"]


settings = Settings()  # pyright: ignore[reportCallIssue]
