"""Environment-driven settings for diaspora.

``DiasporaSettings`` reads ``DIASPORA_*`` environment variables (and an
optional ``.env`` file) so an application can tune logging and entity
identifier handling without code changes.

Examples:
    >>> from diaspora.core.settings import DiasporaSettings
    >>> settings = DiasporaSettings(log_level="DEBUG")
    >>> settings.id_property
    'id'

Tags:
    settings, configuration, pydantic, environment, diaspora
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from diaspora.core.errors import ConfigError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DiasporaSettings(BaseSettings):
    """Settings shared by adapters and access layers.

    Fields
    ──────
    log_level    : Structlog log level
    log_json     : JSON log output (None = auto-detect from TTY)
    service_name : ``service.name`` stamped on every log line
    id_property  : Record key holding an entity's identifier
    """

    model_config = SettingsConfigDict(
        env_prefix="DIASPORA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "diaspora"

    # ── Entities ─────────────────────────────────────────────────
    id_property: str = Field(
        default="id",
        min_length=1,
        description="Record key holding an entity's identifier",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> DiasporaSettings:
    """Return the process-wide settings (read once from the environment)."""
    return DiasporaSettings()


def configure_from_settings(settings: DiasporaSettings | None = None) -> DiasporaSettings:
    """Apply logging configuration from *settings* (defaults to :func:`get_settings`)."""
    from diaspora.core.logging import configure_logging

    settings = settings or get_settings()
    if not isinstance(settings, DiasporaSettings):
        raise ConfigError(f"Expected DiasporaSettings, got {type(settings).__name__}")
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service=settings.service_name,
    )
    return settings


__all__ = ["DiasporaSettings", "get_settings", "configure_from_settings"]
