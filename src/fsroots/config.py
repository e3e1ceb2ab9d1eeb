"""fsroots configuration settings."""

import os
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fsroots.infrastructure.config.settings_utils import (
    env_bool,
    env_list,
    env_str,
)
from fsroots.infrastructure.logging_setup import configure_logging
from fsroots.infrastructure.storage.path_guard import AllowedRoots


class Settings(BaseSettings):
    """Application settings with env var support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Allowed roots, in priority order; comma or os.pathsep separated in env
    allowed_directories: list[str] = Field(
        default_factory=lambda: env_list(
            "FSROOTS_ALLOWED_DIRS", default=[], separators="," + os.pathsep
        )
    )

    # Authentication gate (credential checks happen in the dispatcher)
    enable_auth: bool = Field(default_factory=lambda: env_bool("FSROOTS_ENABLE_AUTH", False))
    api_key: Optional[str] = Field(default_factory=lambda: env_str("FSROOTS_API_KEY") or None)

    # Observability
    log_level: str = Field(default_factory=lambda: env_str("FSROOTS_LOG_LEVEL", "INFO"))
    log_json: bool = Field(default_factory=lambda: env_bool("FSROOTS_LOG_JSON", False))

    # I/O
    io_fsync: bool = Field(default_factory=lambda: env_bool("FSROOTS_IO_FSYNC", True))

    @model_validator(mode="after")
    def _check_auth_key(self) -> "Settings":
        if self.enable_auth and not self.api_key:
            raise ValueError("enable_auth requires FSROOTS_API_KEY to be set")
        return self

    def setup_logging(self) -> None:
        configure_logging(level=self.log_level, json_logs=self.log_json)

    def allowed_roots(self) -> AllowedRoots:
        """Resolve `allowed_directories` into the immutable root set."""
        return AllowedRoots.from_paths(self.allowed_directories)


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, with keyword overrides."""
    return Settings(**overrides)
