"""Configuration management using Pydantic."""

from __future__ import annotations

import warnings
from pathlib import Path

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from etsy_automation.exceptions import ConfigurationError
from etsy_automation.utils.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    DEFAULT_VIEWPORT,
    MANUAL_LOGIN_POLL_INTERVAL,
    MANUAL_LOGIN_TIMEOUT,
    MESSAGE_POLL_INTERVAL,
    ORDER_POLL_INTERVAL,
    POST_SUBMIT_TIMEOUT,
    SETTLE_DELAY,
    TWO_FACTOR_TIMEOUT,
)


class BrowserSettings(BaseSettings):
    """Browser configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ETSY_BROWSER_",
        env_file=".env",
        extra="ignore",
    )

    headless: bool = Field(
        default=False,
        description="Run headless (manual login needs a visible window)",
    )
    timeout: int = Field(default=DEFAULT_TIMEOUT, description="Page timeout (ms)")
    viewport_width: int = DEFAULT_VIEWPORT[0]
    viewport_height: int = DEFAULT_VIEWPORT[1]
    user_agent: str = DEFAULT_USER_AGENT
    lang: str = "en-US"
    user_data_dir: str | None = Field(
        default=None,
        description="Chrome profile directory (temporary profile if unset)",
    )


class AuthSettings(BaseSettings):
    """Login flow timing."""

    model_config = SettingsConfigDict(
        env_prefix="ETSY_AUTH_",
        env_file=".env",
        extra="ignore",
    )

    navigation_timeout: float = Field(
        default=POST_SUBMIT_TIMEOUT,
        description="Seconds to wait for navigation after submitting credentials",
    )
    two_factor_timeout: float = Field(
        default=TWO_FACTOR_TIMEOUT,
        description="Seconds to wait for the user to complete 2FA",
    )
    manual_login_timeout: float = Field(
        default=MANUAL_LOGIN_TIMEOUT,
        description="Seconds to wait for a manual login in the browser window",
    )
    manual_poll_interval: float = Field(
        default=MANUAL_LOGIN_POLL_INTERVAL,
        description="Seconds between login checks while waiting for manual login",
    )

    @model_validator(mode="after")
    def validate_timeouts(self) -> AuthSettings:
        """Reject non-positive timing values."""
        for name in (
            "navigation_timeout",
            "two_factor_timeout",
            "manual_login_timeout",
            "manual_poll_interval",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        return self


class PollingSettings(BaseSettings):
    """Poll intervals for the message and order pipelines."""

    model_config = SettingsConfigDict(
        env_prefix="ETSY_POLL_",
        env_file=".env",
        extra="ignore",
    )

    message_interval: float = Field(
        default=MESSAGE_POLL_INTERVAL, gt=0, description="Seconds between message polls"
    )
    order_interval: float = Field(
        default=ORDER_POLL_INTERVAL, gt=0, description="Seconds between order polls"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="ETSY_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    env: str = "development"
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = "INFO"
    log_json: bool = Field(default=False, description="Render logs as JSON")
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    session_file: Path = Path("./data/sessions/etsy-session.json")
    screenshot_dir: Path = Path("./data/debug")
    shop_name: str | None = Field(
        default=None,
        description="Shop identifier override (skips shop extraction)",
    )
    settle_delay: float = Field(
        default=SETTLE_DELAY,
        ge=0,
        description="Extra seconds after load for client-side rendering",
    )

    @model_validator(mode="after")
    def validate_production(self) -> Settings:
        """Warn about settings that do not suit unattended runs."""
        if self.env == "production" and self.debug:
            warnings.warn(
                "ETSY_DEBUG=true: Debug mode is ENABLED in production! "
                "Set ETSY_DEBUG=false.",
                UserWarning,
                stacklevel=2,
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton)."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings() -> Settings:
    """
    Load settings from environment.

    Raises:
        ConfigurationError: If a value from the environment is invalid
    """
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
