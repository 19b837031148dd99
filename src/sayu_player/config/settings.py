"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.types import ConnectTimeoutSeconds, MaxQueueSize, VolumeFloat
from ..domain.shared.validators import validate_discord_snowflake, validate_log_level


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    # Name of the slash command group (``/sayu play`` ...)
    command_name: str = Field(
        default="sayu",
        min_length=1,
        max_length=32,
        pattern=r"^[a-z0-9_-]+$",
        validation_alias=AliasChoices("command_name", "command"),
    )
    test_guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("test_guild_ids", "test_guilds")
    )
    sync_on_startup: bool = True
    repository_url: str = "https://github.com/ItsArcal139/sayu-bot"
    help_url: str = "https://github.com/ItsArcal139/sayu-bot/blob/master/docs/help.md"

    @field_validator("test_guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Validate Discord snowflake IDs and convert lists to tuples."""
        # JSON arrays from env vars arrive as lists
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v


class AudioSettings(BaseModel):
    """Audio streaming configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: VolumeFloat = 0.5
    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            "before_options": "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5",
            "options": "-vn",
        }
    )
    ytdlp_format: str = "bestaudio/best"


class EngineSettings(BaseModel):
    """Per-guild playback engine configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    connect_timeout_seconds: ConnectTimeoutSeconds = Field(
        default=10.0,
        validation_alias=AliasChoices("connect_timeout_seconds", "connect_timeout"),
    )
    max_queue_size: MaxQueueSize = 200


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__COMMAND_NAME, DISCORD__TEST_GUILD_IDS (JSON array)
    - DISCORD__REPOSITORY_URL, DISCORD__HELP_URL
    - AUDIO__DEFAULT_VOLUME, AUDIO__YTDLP_FORMAT
    - ENGINE__CONNECT_TIMEOUT_SECONDS, ENGINE__MAX_QUEUE_SIZE
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return validate_log_level(v)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
