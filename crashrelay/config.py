"""Process-level settings for crashrelay.

Read from ``CRASHRELAY_*`` environment variables or a ``.env`` file and
validated with pydantic. Per-adapter settings (project URLs, credentials,
tokens) are not here: they arrive with every event from the hosting system.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ADAPTER_NAMES: tuple[str, ...] = ("jira", "web_hook", "hall", "fogbugz", "campfire")


class Settings(BaseSettings):
    """Settings shared by every adapter and entry point.

    ``CRASHRELAY_HTTP_TIMEOUT_SECONDS=10`` sets ``http_timeout_seconds``;
    names are case-insensitive.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRASHRELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Adapters
    enabled_adapters: str = Field(
        default=",".join(ADAPTER_NAMES),
        description="Comma-separated adapter names to register",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for each outbound request to a third-party product",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="json for one JSON object per line, text for humans",
    )
    debug: bool = Field(
        default=False,
        description="Force DEBUG logging regardless of log_level",
    )

    # Entry point
    run_mode: Literal["cli", "webhook"] = Field(
        default="webhook",
        description="webhook serves HTTP; cli starts the interactive prompt",
    )
    webhook_host: str = Field(
        default="0.0.0.0",
        description="Interface the event receiver binds to",
    )
    webhook_port: int = Field(
        default=8080,
        description="Port the event receiver binds to",
    )
    webhook_api_key: str = Field(
        default="",
        description="Key callers must present when webhook_require_auth is set",
    )
    webhook_require_auth: bool = Field(
        default=False,
        description="Reject event and listing requests without the API key",
    )

    @field_validator("enabled_adapters")
    @classmethod
    def validate_enabled_adapters(cls, v: str) -> str:
        """Normalize the list and reject names with no adapter behind them."""
        names = [name.strip() for name in v.split(",") if name.strip()]
        if not names:
            raise ValueError("enabled_adapters must name at least one adapter")
        unknown = sorted(set(names) - set(ADAPTER_NAMES))
        if unknown:
            raise ValueError(f"Unknown adapters in enabled_adapters: {', '.join(unknown)}")
        return ",".join(names)

    @field_validator("http_timeout_seconds")
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be positive")
        return v

    @field_validator("webhook_port")
    @classmethod
    def validate_webhook_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("webhook_port must be between 1 and 65535")
        return v

    @property
    def adapter_names(self) -> list[str]:
        """Enabled adapter names in configured order."""
        return self.enabled_adapters.split(",")


def load_settings(env_file: str | None = None) -> Settings:
    """Load and validate settings.

    Args:
        env_file: Path of a .env file to read instead of ./.env.

    Raises:
        ValidationError: If a setting is missing or invalid.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["ADAPTER_NAMES", "Settings", "load_settings"]
