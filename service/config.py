"""Service configuration using pydantic-settings with env var and YAML file support.

Env vars (TODO_ prefix) take precedence over YAML config file values.
Every setting has a default; invalid values cause an immediate exit.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import Optional

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_YAML_CONFIG_PATH = "config/todoqueue.yml"


class TodoSettings(BaseSettings):
    """todoqueue service configuration.

    Precedence (highest to lowest):
    1. Keyword arguments passed to the constructor
    2. TODO_-prefixed environment variables
    3. YAML config file at config/todoqueue.yml
    4. Defaults defined below
    """

    model_config = SettingsConfigDict(
        env_prefix="TODO_",
        yaml_file=_YAML_CONFIG_PATH,
        yaml_file_encoding="utf-8",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"

    # Routes are served at the root and, when non-empty, under this prefix too
    api_prefix: str = "/api"

    # Queue processor tick interval and simulated store write time (seconds)
    poll_interval: float = Field(default=1.0, ge=0.01, le=60.0)
    commit_delay: float = Field(default=0.2, ge=0.0, le=10.0)

    seed_todos: bool = True

    # Opt-in retry policy; defaults keep unbounded immediate retries
    max_retries: Optional[int] = Field(default=None, ge=1)
    retry_backoff: bool = False
    backoff_base: float = Field(default=1.0, gt=0.0)
    backoff_cap: float = Field(default=30.0, gt=0.0)

    @field_validator("api_prefix")
    @classmethod
    def normalise_prefix(cls, value: str) -> str:
        """Strip trailing slashes and ensure a leading one (empty disables)."""
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Return sources in priority order: init kwargs > env > YAML."""
        return (init_settings, env_settings, YamlConfigSettingsSource(settings_cls))


@lru_cache(maxsize=1)
def get_settings() -> TodoSettings:
    """Return the cached TodoSettings instance.

    Exits with a helpful error message if the configuration is invalid.
    """
    try:
        return TodoSettings()
    except pydantic.ValidationError as exc:
        problems = []
        for error in exc.errors():
            loc = error.get("loc", ())
            field = str(loc[0]) if loc else "<root>"
            problems.append(f"  TODO_{field.upper()}: {error.get('msg')}")

        print(
            "\nInvalid configuration:\n"
            + "\n".join(problems)
            + f"\nFix these environment variables or the values in {_YAML_CONFIG_PATH}\n",
            file=sys.stderr,
        )
        sys.exit(1)
