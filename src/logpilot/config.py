"""Centralized configuration: Pydantic BaseSettings with TOML + dotenv sources.

Non-secret settings live in logpilot.toml. Environment variables override it
using ``__`` as the nested delimiter (e.g. ``PILOT__CONFIG_ROOT``).

Priority (highest wins): init args > env vars > .env > logpilot.toml

Usage::

    from logpilot.config import get_settings

    s = get_settings()
    print(s.pilot.topic_label)
    print(s.conf_dir)
"""

from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# ---------------------------------------------------------------------------
# Sub-models (each maps to a [section] in logpilot.toml)
# ---------------------------------------------------------------------------


class _StrictModel(BaseModel):
    """Base for all config sub-models; reject unknown keys so typos fail loudly."""

    model_config = {"extra": "forbid"}


class PilotConfig(_StrictModel):
    config_root: Path = Path("/etc/fluentd")
    template: Path | None = None  # path to the Jinja2 config template
    topic_label: str = "logtopic"
    infra_entrypoint: str = "/pause"  # entrypoint of the namespace-holder container
    group_label: str | None = None  # None = group by container name
    file_mode: int = 0o644

    @field_validator("topic_label", "infra_entrypoint")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class RuntimeConfig(_StrictModel):
    name: str | None = None  # "docker" | plugin runtime name | None = auto-detect


class EventsConfig(_StrictModel):
    resubscribe_delay_s: float = 0.0

    @field_validator("resubscribe_delay_s")
    @classmethod
    def clamp_delay(cls, v: float) -> float:
        return max(0.0, v)


class LoggingConfig(_StrictModel):
    level: str = "INFO"
    json_output: bool = True

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {v!r}")
        return level


# ---------------------------------------------------------------------------
# Root Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        toml_file="logpilot.toml",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    pilot: PilotConfig = PilotConfig()
    runtime: RuntimeConfig = RuntimeConfig()
    events: EventsConfig = EventsConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init > env vars > .env > logpilot.toml > file secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # --- Computed properties ---

    @cached_property
    def conf_dir(self) -> Path:
        """Directory holding one ``<container_id>.conf`` per log source."""
        return self.pilot.config_root / "conf.d"


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Settings | None = None


def get_settings() -> Settings:
    """Lazy cached singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for tests)."""
    global _settings
    _settings = None


def override_settings(settings: Settings) -> None:
    """Install an explicit Settings object (CLI flags, tests)."""
    global _settings
    _settings = settings
