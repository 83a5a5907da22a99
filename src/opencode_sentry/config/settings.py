"""Environment-based configuration using pydantic-settings.

Values resolve in this order: explicit keyword argument, environment
variable, default.

Example:
    >>> from opencode_sentry.config import get_settings
    >>> settings = get_settings()
    >>> settings.environment
    'development'

    # Or with environment variables:
    # SENTRY_DSN=https://key@o0.ingest.sentry.io/1
    # SENTRY_TRACES_SAMPLE_RATE=0.25
    # TRACEPARENT=00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import AliasChoices, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SentrySettings(BaseSettings):
    """Sentry and trace-propagation settings.

    Example environment variables:
        SENTRY_DSN=https://...
        SENTRY_ENVIRONMENT=production
        SENTRY_RELEASE=opencode@1.4.0
        SENTRY_TRACES_SAMPLE_RATE=1.0
        SENTRY_DEBUG=true
        TRACEPARENT=00-<trace-id>-<parent-span-id>-<flags>
    """

    model_config = SettingsConfigDict(
        env_prefix="SENTRY_",
        extra="ignore",
        validate_default=True,
    )

    dsn: str | None = Field(default=None, description="Sentry DSN; telemetry is disabled without one")
    environment: str = "development"
    release: str = "opencode@local"
    traces_sample_rate: Annotated[float, Field(ge=0.0, le=1.0)] = 1.0
    debug: bool = Field(default=False, description="Verbose SDK and plugin logging")
    traceparent: str | None = Field(
        default=None,
        validation_alias=AliasChoices("traceparent", "TRACEPARENT"),
        description="W3C trace context of the parent process",
    )

    @field_validator("dsn", "traceparent", mode="before")
    @classmethod
    def _blank_is_none(cls, v: object) -> object:
        """Treat empty strings from the environment as unset."""
        return None if isinstance(v, str) and not v.strip() else v

    @field_validator("debug", mode="before")
    @classmethod
    def _strict_debug(cls, v: object) -> object:
        """Only the literal string "true" turns debug on."""
        return v == "true" if isinstance(v, str) else v

    @computed_field
    @property
    def enabled(self) -> bool:
        """Whether telemetry is sent anywhere."""
        return self.dsn is not None


@lru_cache(maxsize=1)
def get_settings() -> SentrySettings:
    """Get the settings resolved from the environment (cached)."""
    return SentrySettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
