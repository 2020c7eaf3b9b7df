"""Engine configuration.

Settings come from the environment and can be overridden per call by
passing an explicit ``EngineConfig``:

    export TAK_DEFAULT_KOMI=5          # half-point ticks (2.5 points)
    export TAK_WARNINGS_ENABLED=false  # skip the Tak advisory search
    export TAK_STRICT_INVARIANTS=false # skip re-validation inside apply
    export TAK_LOG_LEVEL=DEBUG         # level of the ``tak_engine`` logger
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

_TRUTHY = {"1", "true", "yes", "on"}

_ENV_FIELDS = {
    "default_komi": "TAK_DEFAULT_KOMI",
    "log_level": "TAK_LOG_LEVEL",
}


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in _TRUTHY


class EngineConfig(BaseModel):
    """Tunable engine behaviour."""
    default_komi: int = Field(0, ge=0)
    tak_warnings_enabled: bool = True
    strict_invariants: bool = True
    log_level: str = "INFO"

    class Config:
        frozen = True

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build from ``TAK_*`` variables.

        Raises:
            ConfigurationError: a variable holds a value the model rejects.
        """
        raw = {
            "default_komi": os.environ.get("TAK_DEFAULT_KOMI", "0").strip(),
            "log_level": os.environ.get("TAK_LOG_LEVEL", "INFO"),
        }
        try:
            return cls(
                tak_warnings_enabled=_env_flag("TAK_WARNINGS_ENABLED", "true"),
                strict_invariants=_env_flag("TAK_STRICT_INVARIANTS", "true"),
                **raw,
            )
        except ValidationError as exc:
            bad = {
                _ENV_FIELDS.get(str(err["loc"][0]), str(err["loc"][0])): err["input"]
                for err in exc.errors()
            }
            raise ConfigurationError(
                "Invalid engine settings in environment", context=bad
            ) from exc


@lru_cache(maxsize=1)
def get_engine_config() -> EngineConfig:
    """Environment config, read once per process."""
    return EngineConfig.from_env()


def reset_engine_config() -> None:
    """Drop the cached config so the next call re-reads the environment."""
    get_engine_config.cache_clear()
