"""
Configuration Management for Tabs Bot

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The command line only overrides a handful of these values, so the bot can
run from a .env file alone.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Where tab state is published after each change."""
    FILE = "file"              # One JSON file holding every room
    ROOM_STATE = "room_state"  # A state event in each Matrix room


class MatrixSettings(BaseSettings):
    """Matrix homeserver connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TABSBOT_MATRIX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    homeserver: str = Field(
        ...,
        description="URL of the homeserver to connect to"
    )
    user: str = Field(
        ...,
        description="Username of the bot"
    )
    password: Optional[SecretStr] = Field(
        default=None,
        description="Password of the bot (prompted for when unset)"
    )
    device_name: str = Field(
        default="tabsbot",
        description="Device display name used at login"
    )
    sync_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        description="Long-polling timeout for /sync"
    )
    join_max_delay_seconds: int = Field(
        default=3600,
        ge=2,
        description="Give up joining an invited room once the retry delay exceeds this"
    )

    @field_validator('homeserver')
    @classmethod
    def validate_homeserver(cls, v: str) -> str:
        """Homeserver must be an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Homeserver must be an http(s) URL, got {v!r}")
        return v.rstrip("/")


class StorageSettings(BaseSettings):
    """Tab state storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TABSBOT_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: StorageBackend = Field(
        default=StorageBackend.ROOM_STATE,
        description="Where to publish tab state"
    )
    store_path: str = Field(
        default="tabs.json",
        description="JSON file used by the file backend"
    )
    namespace: str = Field(
        default="net.safaradeg.tab",
        description="State event type used by the room_state backend"
    )

    @field_validator('namespace')
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """The namespace cannot be the empty string."""
        if not v.strip():
            raise ValueError("The namespace cannot be the empty string.")
        return v.strip()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Level for the structured process log"
    )

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, log_level otherwise."""
        return "DEBUG" if self.debug_mode else self.log_level.upper()
