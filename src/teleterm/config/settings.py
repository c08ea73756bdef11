"""Configuration management for teleterm.

Loads settings from an optional YAML configuration file, with environment
variable overrides (``TELETERM_*``). Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from teleterm.domain.models import OTP_TIMEOUT_DEFAULT, OTP_TIMEOUT_MAX, OTP_TIMEOUT_MIN

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/teleterm.yaml")
DEFAULT_VISIBLE_LINES = 40


class BackendConfig(BaseModel):
    kind: Literal["auto", "tmux", "macos"] = Field(default="auto")
    tmux_binary: str = Field(default="tmux")
    attach_to_any_window: bool = Field(
        default=False, description="List every window, not only known terminal apps (macOS)"
    )
    settle_delay: float = Field(
        default=2.0, ge=0, description="Seconds to wait after injecting keys before capturing"
    )


class AuthConfig(BaseModel):
    weak_security: bool = Field(default=False, description="Skip one-time-password checks")
    default_otp_timeout: int = Field(
        default=OTP_TIMEOUT_DEFAULT, ge=OTP_TIMEOUT_MIN, le=OTP_TIMEOUT_MAX
    )


class TransportConfig(BaseModel):
    api_base_url: str = Field(default="https://api.telegram.org")
    poll_timeout: int = Field(default=30, ge=0, description="getUpdates long-poll seconds")
    http_timeout: float = Field(default=45.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for teleterm.

    Priority: env vars > .env file > YAML file > defaults. Command-line
    flags are applied on top by the CLI.
    """

    model_config = {
        "env_prefix": "TELETERM_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    bot_token: SecretStr = Field(default=SecretStr(""))
    api_key_file: Path = Field(default=Path("apikey.txt"))
    dbfile: Path = Field(default=Path("./mybot.sqlite"))

    visible_lines: int = Field(default=DEFAULT_VISIBLE_LINES)
    split_messages: bool = Field(default=False)

    backend: BackendConfig = Field(default_factory=BackendConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("visible_lines", mode="before")
    @classmethod
    def _positive_or_default(cls, value: Any) -> int:
        try:
            lines = int(value)
        except (TypeError, ValueError):
            return DEFAULT_VISIBLE_LINES
        return lines if lines > 0 else DEFAULT_VISIBLE_LINES

    @field_validator("split_messages", mode="before")
    @classmethod
    def _one_or_true(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML data arrives as init kwargs and must not shadow the environment.
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def resolve_bot_token(self) -> str:
        """Return the bot token, falling back to the api key file."""
        token = self.bot_token.get_secret_value().strip()
        if token:
            return token
        if self.api_key_file.exists():
            return self.api_key_file.read_text(encoding="utf-8").strip()
        return ""


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.debug("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
