"""Bootstrapper configuration."""

import platform
import shlex
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

_FALSY = {"", "0", "false", "no", "off"}


class DatabaseAction(str, Enum):
    """What to do with an existing database."""

    DROP = "DROP"
    MIGRATE = "migrate"


# Lock files bundle install needs to write to
MAIN_LOCK_FILES: tuple[str, ...] = (
    "Gemfile.lock",
    "Gemfile.rails72.plugins.lock",
    "Gemfile.rails80.lock",
    "Gemfile.rails80.plugins.lock",
    "Gemfile.d/rubocop.rb.lock",
    "gems/tatl_tael/Gemfile.lock",
)

# Directories that must exist before the lock files can be created
REQUIRED_DIRS: tuple[str, ...] = (
    "gems/tatl_tael",
    "Gemfile.d",
)

# Probed for writability before bundle install
LOCK_FILE_PROBE: tuple[str, ...] = (
    MAIN_LOCK_FILES[0],
    MAIN_LOCK_FILES[1],
    "gems/activesupport-suspend_callbacks/Gemfile.lock",
)


class Settings(BaseSettings):
    """Bootstrapper settings loaded from environment variables."""

    # Automation (CI) indicator, suppresses interactive prompts
    automation: bool = Field(
        default=False, validation_alias=AliasChoices("JENKINS", "CI", "automation")
    )

    # OS identification, alters image build arguments
    os_name: str = Field(
        default_factory=platform.system, validation_alias=AliasChoices("OS", "os_name")
    )
    skip_docker_usermod: bool = Field(
        default=False,
        validation_alias=AliasChoices("CANVAS_SKIP_DOCKER_USERMOD", "skip_docker_usermod"),
    )
    docker_command: str = Field(
        default="docker compose",
        validation_alias=AliasChoices("DOCKER_COMMAND", "docker_command"),
    )

    # Project root detection
    root_marker_file: str = "README.md"
    root_marker_text: str = "Canvas LMS"

    # Compose stack
    app_service: str = "web"
    compose_files: list[str] = ["docker-compose.yml", "docker-compose.override.yml"]
    env_file: str = ".env"
    override_file: str = "docker-compose.override.yml"
    override_template: str = "config/docker-compose.override.yml.example"
    docker_config_dir: str = "docker-compose/config"
    config_dir: str = "config"

    # Dependency / asset installation
    install_script: str = "./script/install_assets.sh"

    # Database
    db_action: Optional[DatabaseAction] = None

    # Verification
    verify_url: str = "http://canvas.docker"
    verify_attempts: int = 5
    verify_timeout: float = 10.0
    verify_backoff_max: float = 30.0

    # Interaction
    assume_yes: bool = False

    # Logging
    log_file: str = "log/docker_dev_setup.log"
    log_level: str = "DEBUG"

    @field_validator("automation", "skip_docker_usermod", "assume_yes", mode="before")
    @classmethod
    def _non_empty_is_true(cls, value):
        # Shell semantics: any non-empty value switches the flag on
        if isinstance(value, str):
            return value.strip().lower() not in _FALSY
        return value

    @field_validator("db_action", mode="before")
    @classmethod
    def _normalize_db_action(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            return DatabaseAction.DROP if value.strip() == "DROP" else DatabaseAction.MIGRATE
        return value

    @property
    def docker_argv(self) -> list[str]:
        """DOCKER_COMMAND split into argv form."""
        return shlex.split(self.docker_command)

    @property
    def is_linux(self) -> bool:
        return self.os_name == "Linux"

    class Config:
        env_prefix = "STACKBOOT_"
        populate_by_name = True
